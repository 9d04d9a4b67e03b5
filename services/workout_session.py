"""
Workout Session State Machine
Owns the lifecycle of the one in-progress workout.

States: NONE -> ACTIVE -> {COMPLETED, CANCELLED}. ACTIVE is re-entered when
a persisted session is resumed.

Every mutation persists a snapshot of the whole session through a
single-worker background writer: the caller never waits on storage, and
snapshots land in the order the mutations happened. A failed write is
logged and superseded by the snapshot issued with the next mutation.

finish() is different: it drains the writer and then writes the history
entry, the lifts and the active-slot clear in one transaction. If storage
fails, nothing is applied and the session stays ACTIVE for a retry.
"""

import copy
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .errors import IntegrityViolation, PersistenceFailure, SessionStateError
from .models import (
    ExerciseSession,
    HistoricalLift,
    SessionState,
    SetRecord,
    WeightUnit,
    WorkoutSession,
    WorkoutSummary,
    WorkoutTemplate,
    utc_now,
)
from .progress_tracker import ProgressTracker
from .storage import OrderedWriter, StorageService
from .strength_standards import estimate_one_rep_max

logger = logging.getLogger(__name__)


class WorkoutSessionManager:
    """
    Single-slot session repository plus the operations allowed on it.

    The active session is only reachable through this object; storage keeps
    it under StorageService.ACTIVE_SESSION_KEY.
    """

    def __init__(self,
                 storage: StorageService,
                 progress: ProgressTracker,
                 clock: Callable[[], datetime] = utc_now):
        self.storage = storage
        self.progress = progress
        self.clock = clock
        self.writer = OrderedWriter(on_error=self._on_write_error)

        self.session: Optional[WorkoutSession] = None
        self.state = SessionState.NONE
        self._restored = False
        self._write_failed = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def restore(self) -> Optional[WorkoutSession]:
        """
        Load the persisted active session, if any.

        Call it at process start to resume a workout that was in progress.
        If storage cannot be read, the failure is logged and the read is
        retried before the next operation; nothing is accepted until it
        succeeds.
        """
        try:
            return self._load_persisted()
        except PersistenceFailure:
            logger.warning("Could not read the active session; will retry before the next operation",
                           exc_info=True)
            return None

    def _load_persisted(self) -> Optional[WorkoutSession]:
        existing = self.storage.load_active_session()
        self._restored = True
        if existing is not None:
            self.session = existing
            self.state = SessionState.ACTIVE
            logger.info("Restored active session %s (%s)", existing.id, existing.title)
        return existing

    def _ensure_restored(self) -> None:
        # Raises PersistenceFailure while the stored session cannot be read
        if not self._restored:
            self._load_persisted()

    def initialize(self, template: WorkoutTemplate) -> WorkoutSession:
        """
        Open a workout.

        An active session for the same workout is resumed unchanged, so
        opening the same workout twice is idempotent. Anything else starts a
        fresh session from the template.
        """
        self._ensure_restored()

        if (self.state == SessionState.ACTIVE
                and self.session is not None
                and self.session.workout_id == template.id):
            return self.session

        now = self.clock()
        self.session = WorkoutSession(
            id=f"session_{int(now.timestamp() * 1000)}",
            workout_id=template.id,
            title=template.title,
            exercises=[
                ExerciseSession(
                    exercise_id=ex.exercise_id,
                    target_sets=ex.sets,
                    target_reps=str(ex.reps),
                    allows_bodyweight=ex.bodyweight,
                )
                for ex in template.exercises
            ],
            started_at=now,
        )
        self.state = SessionState.ACTIVE
        logger.info("Started session %s for workout %s", self.session.id, template.id)
        self._persist()
        return self.session

    # ------------------------------------------------------------------
    # Set operations
    # ------------------------------------------------------------------

    def complete_set(self, weight: float, reps: int, unit: WeightUnit = WeightUnit.LBS) -> bool:
        """
        Log a set for the current exercise.

        Returns:
            False (and changes nothing) when reps or weight are invalid
        """
        session = self._require_active()
        exercise = self._exercise(session.current_exercise_index)
        if not self._valid_set(exercise, weight, reps):
            return False

        exercise.completed_sets.append(SetRecord(
            set_number=len(exercise.completed_sets) + 1,
            weight=weight,
            reps=int(reps),
            unit=WeightUnit(unit),
            completed=True,
            rest_started_at=self.clock(),
        ))
        exercise.refresh_completion()
        session.current_set_index = 0 if exercise.is_completed else len(exercise.completed_sets)

        self._persist()
        return True

    def update_set(self,
                   exercise_index: int,
                   set_index: int,
                   weight: float,
                   reps: int,
                   unit: WeightUnit = WeightUnit.LBS) -> bool:
        """Edit a logged set in place; False when the new values are invalid"""
        self._require_active()
        exercise, set_record = self._set(exercise_index, set_index)
        if not self._valid_set(exercise, weight, reps):
            return False

        set_record.weight = weight
        set_record.reps = int(reps)
        set_record.unit = WeightUnit(unit)
        set_record.completed = True

        self._persist()
        return True

    def delete_set(self, exercise_index: int, set_index: int) -> SetRecord:
        """
        Remove a logged set.

        Later sets are renumbered from 1 and the exercise's target drops by
        one, since the target counts sets performed or planned.
        """
        session = self._require_active()
        exercise, _ = self._set(exercise_index, set_index)

        removed = exercise.completed_sets.pop(set_index)
        exercise.renumber_sets()
        exercise.target_sets = max(1, exercise.target_sets - 1)
        exercise.refresh_completion()
        if exercise_index == session.current_exercise_index:
            session.current_set_index = 0 if exercise.is_completed else len(exercise.completed_sets)

        self._persist()
        return removed

    def add_set(self, exercise_index: int) -> ExerciseSession:
        """Plan one more set for an exercise"""
        session = self._require_active()
        exercise = self._exercise(exercise_index)

        exercise.target_sets += 1
        exercise.refresh_completion()
        if exercise_index == session.current_exercise_index and not exercise.is_completed:
            session.current_set_index = len(exercise.completed_sets)

        self._persist()
        return exercise

    # ------------------------------------------------------------------
    # Exercise operations
    # ------------------------------------------------------------------

    def add_exercise(self,
                     exercise_id: str,
                     sets: int = 3,
                     reps: str = "8",
                     bodyweight: bool = False) -> Optional[ExerciseSession]:
        """Append an exercise to the live session; None if sets < 1"""
        session = self._require_active()
        if sets < 1:
            return None

        exercise = ExerciseSession(
            exercise_id=exercise_id,
            target_sets=sets,
            target_reps=str(reps),
            allows_bodyweight=bodyweight,
        )
        session.exercises.append(exercise)

        self._persist()
        return exercise

    def delete_exercise(self, exercise_index: int) -> ExerciseSession:
        session = self._require_active()
        self._exercise(exercise_index)

        removed = session.exercises.pop(exercise_index)
        if exercise_index < session.current_exercise_index:
            session.current_exercise_index -= 1
        elif exercise_index == session.current_exercise_index:
            session.current_exercise_index = max(0, min(exercise_index, len(session.exercises) - 1))
            session.current_set_index = self._next_set_index()

        self._persist()
        return removed

    def jump_to_exercise(self, exercise_index: int) -> WorkoutSession:
        session = self._require_active()
        self._exercise(exercise_index)

        if exercise_index != session.current_exercise_index:
            session.current_exercise_index = exercise_index
            session.current_set_index = 0
            self._persist()
        return session

    def next_exercise(self) -> bool:
        """Move to the next exercise; False when already on the last one"""
        session = self._require_active()
        if session.current_exercise_index + 1 >= len(session.exercises):
            return False

        session.current_exercise_index += 1
        session.current_set_index = 0
        self._persist()
        return True

    # ------------------------------------------------------------------
    # Ending the workout
    # ------------------------------------------------------------------

    def would_discard_progress(self) -> bool:
        """True when cancelling now would throw away logged sets"""
        return (self.state == SessionState.ACTIVE
                and self.session is not None
                and self.session.total_sets > 0)

    def finish(self) -> WorkoutSummary:
        """
        Complete the workout.

        Writes the session to history, records the best set of every
        exercise that has sets, and clears the active slot, all in one
        transaction.

        Raises:
            PersistenceFailure: storage failed; nothing was applied and the
                session is still ACTIVE
        """
        session = self._require_active()
        self.writer.flush()

        now = self.clock()
        duration_minutes = int(round((now - session.started_at).total_seconds() / 60))
        total_sets = session.total_sets
        total_volume = session.total_volume
        best_sets = self._best_sets(session)

        snapshot = session.to_dict()
        snapshot['is_completed'] = True
        entry = {
            'id': f"{session.workout_id}{int(now.timestamp() * 1000)}",
            'workout_id': session.workout_id,
            'title': session.title,
            'session': snapshot,
            'finished_at': now.isoformat(),
            'duration_minutes': duration_minutes,
            'total_sets': total_sets,
            'total_volume': total_volume,
        }

        try:
            with self.storage.transaction():
                self.storage.append_workout_history(entry)

                personal_records = 0
                for exercise, best in best_sets:
                    new_pr = self.progress.record_lift(HistoricalLift(
                        parent_session_id=session.id,
                        exercise_id=exercise.exercise_id,
                        weight=best.weight,
                        reps=best.reps,
                        unit=best.unit,
                        recorded_at=now,
                    ))
                    if new_pr:
                        personal_records += 1

                self.storage.clear_active_session()
        except PersistenceFailure:
            logger.exception("Failed to finish session %s; it stays active", session.id)
            raise

        session.is_completed = True
        self.session = None
        self.state = SessionState.COMPLETED
        logger.info("Finished session %s: %d sets, %.0f volume, %d PRs",
                    session.id, total_sets, total_volume, personal_records)

        return WorkoutSummary(
            duration_minutes=duration_minutes,
            total_sets=total_sets,
            total_volume=total_volume,
            personal_record_count=personal_records,
            lifts_recorded=len(best_sets),
        )

    def cancel(self, confirmed: bool = False) -> bool:
        """
        Discard the workout.

        Nothing happens until the caller confirms; check
        would_discard_progress() to decide whether to ask.

        Returns:
            True if the session was cancelled
        """
        session = self._require_active()
        if not confirmed:
            return False

        self.writer.flush()
        self.storage.clear_active_session()

        self.session = None
        self.state = SessionState.CANCELLED
        logger.info("Cancelled session %s", session.id)
        return True

    def close(self) -> None:
        """Wait for outstanding writes and stop the writer"""
        self.writer.flush()
        self.writer.shutdown()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_active(self) -> WorkoutSession:
        self._ensure_restored()
        if self.state != SessionState.ACTIVE or self.session is None:
            raise SessionStateError(f"No active workout session (state: {self.state.value})")
        return self.session

    def _exercise(self, exercise_index: int) -> ExerciseSession:
        exercises = self.session.exercises
        if not 0 <= exercise_index < len(exercises):
            raise IntegrityViolation(f"Exercise index {exercise_index} out of range (0-{len(exercises) - 1})")
        return exercises[exercise_index]

    def _set(self, exercise_index: int, set_index: int) -> Tuple[ExerciseSession, SetRecord]:
        exercise = self._exercise(exercise_index)
        sets = exercise.completed_sets
        if not 0 <= set_index < len(sets):
            raise IntegrityViolation(
                f"Set index {set_index} out of range for exercise {exercise.exercise_id} ({len(sets)} sets)"
            )
        return exercise, sets[set_index]

    def _next_set_index(self) -> int:
        if not self.session.exercises:
            return 0
        exercise = self.session.exercises[self.session.current_exercise_index]
        return 0 if exercise.is_completed else len(exercise.completed_sets)

    @staticmethod
    def _valid_set(exercise: ExerciseSession, weight: float, reps: int) -> bool:
        if reps is None or reps <= 0:
            return False
        if weight is None or weight < 0:
            return False
        if weight == 0 and not exercise.allows_bodyweight:
            return False
        return True

    @staticmethod
    def _best_sets(session: WorkoutSession) -> List[Tuple[ExerciseSession, SetRecord]]:
        best = []
        for exercise in session.exercises:
            if not exercise.completed_sets:
                continue
            # max() keeps the first of equal sets
            top = max(exercise.completed_sets,
                      key=lambda s: estimate_one_rep_max(s.weight, s.reps))
            best.append((exercise, top))
        return best

    def _persist(self) -> None:
        if self._write_failed:
            logger.info("Retrying session write after an earlier failure")
            self._write_failed = False
        self.writer.submit(self.storage.save_active_session, copy.deepcopy(self.session))

    def _on_write_error(self, exc: BaseException) -> None:
        self._write_failed = True
