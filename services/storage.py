"""
Storage Service
Key-value persistence for the tracker, backed by SQLAlchemy.

Single-slot records (the active session, the rest timer, the user profile
and one progress record per exercise) are stored under fixed keys in
kv_store. Append-only records (workout history and historical lifts) go to
record_log. Values are JSON documents produced by the models' to_dict().

Every call runs in its own transaction unless it happens inside
transaction(), in which case all calls share one database session and are
committed or rolled back together.
"""

import json
import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import PersistenceFailure
from .models import (
    ExerciseProgress,
    HistoricalLift,
    RestTimerState,
    UserProfile,
    WorkoutSession,
    utc_now,
)

logger = logging.getLogger(__name__)


class StorageService:
    """Persistence contract used by the session, timer and analytics services"""

    ACTIVE_SESSION_KEY = "active_workout_session"
    REST_TIMER_KEY = "active_rest_timer"
    USER_PROFILE_KEY = "user_profile"
    PROGRESS_KEY_PREFIX = "exercise_progress:"

    WORKOUT_HISTORY = "workout_history"
    HISTORICAL_LIFT = "historical_lift"

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        self._local = threading.local()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator['StorageService']:
        """
        Group several storage calls into one all-or-nothing unit.

        Nested calls join the outer transaction. Any SQLAlchemy error rolls
        everything back and surfaces as PersistenceFailure.
        """
        if getattr(self._local, 'db', None) is not None:
            yield self
            return

        db = self._session_factory()
        self._local.db = db
        try:
            yield self
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceFailure(f"Transaction failed: {exc}") from exc
        except Exception:
            db.rollback()
            raise
        finally:
            self._local.db = None
            db.close()

    @contextmanager
    def _db(self) -> Iterator[Session]:
        current = getattr(self._local, 'db', None)
        if current is not None:
            yield current
            return

        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceFailure(f"Storage operation failed: {exc}") from exc
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Raw key-value / log access
    # ------------------------------------------------------------------

    def _get(self, key: str) -> Optional[Dict]:
        with self._db() as db:
            row = db.execute(
                text("SELECT value FROM kv_store WHERE key = :key"),
                {"key": key}
            ).fetchone()
        return json.loads(row[0]) if row else None

    def _put(self, key: str, value: Dict) -> None:
        # Delete + insert keeps the upsert portable across SQLite and PostgreSQL
        with self._db() as db:
            db.execute(text("DELETE FROM kv_store WHERE key = :key"), {"key": key})
            db.execute(
                text("INSERT INTO kv_store (key, value, updated_at) VALUES (:key, :value, :updated_at)"),
                {"key": key, "value": json.dumps(value), "updated_at": utc_now().isoformat()}
            )

    def _delete(self, key: str) -> None:
        with self._db() as db:
            db.execute(text("DELETE FROM kv_store WHERE key = :key"), {"key": key})

    def _append(self, kind: str, subject: Optional[str], payload: Dict, recorded_at: str) -> None:
        with self._db() as db:
            db.execute(
                text("""
                    INSERT INTO record_log (id, kind, subject, payload, recorded_at)
                    VALUES (:id, :kind, :subject, :payload, :recorded_at)
                """),
                {
                    "id": uuid.uuid4().hex,
                    "kind": kind,
                    "subject": subject,
                    "payload": json.dumps(payload),
                    "recorded_at": recorded_at,
                }
            )

    def _list(self, kind: str, subject: Optional[str] = None) -> List[Dict]:
        query = "SELECT payload FROM record_log WHERE kind = :kind"
        params = {"kind": kind}
        if subject is not None:
            query += " AND subject = :subject"
            params["subject"] = subject
        query += " ORDER BY recorded_at"

        with self._db() as db:
            rows = db.execute(text(query), params).fetchall()
        return [json.loads(row[0]) for row in rows]

    # ------------------------------------------------------------------
    # Active session slot
    # ------------------------------------------------------------------

    def load_active_session(self) -> Optional[WorkoutSession]:
        data = self._get(self.ACTIVE_SESSION_KEY)
        if data is None:
            return None
        try:
            session = WorkoutSession.from_dict(data)
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding unreadable active session record", exc_info=True)
            return None
        # A completed session is never resumed
        return None if session.is_completed else session

    def save_active_session(self, session: WorkoutSession) -> None:
        self._put(self.ACTIVE_SESSION_KEY, session.to_dict())

    def clear_active_session(self) -> None:
        self._delete(self.ACTIVE_SESSION_KEY)

    # ------------------------------------------------------------------
    # Workout history
    # ------------------------------------------------------------------

    def append_workout_history(self, entry: Dict) -> None:
        self._append(self.WORKOUT_HISTORY, entry.get('workout_id'), entry, entry['finished_at'])

    def load_workout_history(self) -> List[Dict]:
        return self._list(self.WORKOUT_HISTORY)

    # ------------------------------------------------------------------
    # Lifts and progress
    # ------------------------------------------------------------------

    def append_historical_lift(self, lift: HistoricalLift) -> None:
        self._append(
            self.HISTORICAL_LIFT,
            lift.exercise_id,
            lift.to_dict(),
            lift.recorded_at.isoformat()
        )

    def load_lift_history(self, exercise_id: str) -> List[HistoricalLift]:
        return [HistoricalLift.from_dict(d) for d in self._list(self.HISTORICAL_LIFT, exercise_id)]

    def load_exercise_progress(self, exercise_id: str) -> Optional[ExerciseProgress]:
        data = self._get(self.PROGRESS_KEY_PREFIX + exercise_id)
        return ExerciseProgress.from_dict(data) if data else None

    def save_exercise_progress(self, progress: ExerciseProgress) -> None:
        self._put(self.PROGRESS_KEY_PREFIX + progress.exercise_id, progress.to_dict())

    # ------------------------------------------------------------------
    # Rest timer
    # ------------------------------------------------------------------

    def load_rest_timer(self) -> Optional[RestTimerState]:
        data = self._get(self.REST_TIMER_KEY)
        return RestTimerState.from_dict(data) if data else None

    def save_rest_timer(self, state: RestTimerState) -> None:
        self._put(self.REST_TIMER_KEY, state.to_dict())

    def clear_rest_timer(self) -> None:
        self._delete(self.REST_TIMER_KEY)

    # ------------------------------------------------------------------
    # User profile
    # ------------------------------------------------------------------

    def load_user_profile(self) -> Optional[UserProfile]:
        data = self._get(self.USER_PROFILE_KEY)
        return UserProfile.from_dict(data) if data else None

    def save_user_profile(self, profile: UserProfile) -> None:
        self._put(self.USER_PROFILE_KEY, profile.to_dict())


class OrderedWriter:
    """
    Fire-and-forget writer.

    Writes are submitted to a single worker thread, so they run in the order
    they were issued and never block the caller. A failed write is logged
    and reported through on_error; it is not retried here.
    """

    def __init__(self, on_error: Optional[Callable[[BaseException], None]] = None):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="storage-writer")
        self._on_error = on_error

    def submit(self, fn: Callable, *args) -> Future:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(self._done)
        return future

    def _done(self, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.warning("Background write failed: %s", exc)
            if self._on_error is not None:
                self._on_error(exc)

    def flush(self) -> None:
        """Block until every write issued so far has finished"""
        # The worker finishes a write, callbacks included, before starting the next task
        self._executor.submit(lambda: None).result()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
