"""
Progress Tracker
Records the best lift of each finished exercise and keeps the personal
record for every exercise up to date.

record_lift is the single write path into ExerciseProgress, so the stored
personal record can only ever go up.
"""

import logging
from typing import Callable, Optional

import pandas as pd

from .models import (
    ExerciseProgress,
    HistoricalLift,
    LiftCategory,
    UserProfile,
    WeightUnit,
    to_lbs,
    utc_now,
)
from .storage import StorageService
from .strength_standards import (
    estimate_one_rep_max,
    lift_category,
    percentile,
    tier_from_percentile,
)

logger = logging.getLogger(__name__)


class ProgressTracker:
    """
    Owns ExerciseProgress and the historical lift log.

    Weights are converted to lbs before anything is stored, so personal
    records from kg and lbs sessions compare directly.
    """

    def __init__(self,
                 storage: StorageService,
                 default_profile: UserProfile,
                 clock: Callable = utc_now):
        self.storage = storage
        self.default_profile = default_profile
        self.clock = clock

    def get_profile(self) -> UserProfile:
        return self.storage.load_user_profile() or self.default_profile

    def save_profile(self, profile: UserProfile) -> None:
        self.storage.save_user_profile(profile)

    def get_progress(self, exercise_id: str) -> Optional[ExerciseProgress]:
        return self.storage.load_exercise_progress(exercise_id)

    def record_lift(self, lift: HistoricalLift, category: Optional[LiftCategory] = None) -> bool:
        """
        Append a lift to the history and update the exercise's personal record.

        Args:
            lift: Best set of an exercise (any unit)
            category: main/secondary; derived from the exercise id when omitted

        Returns:
            True if the lift's estimated 1RM set a new personal record
        """
        category = LiftCategory(category) if category else lift_category(lift.exercise_id)
        weight_lbs = to_lbs(lift.weight, lift.unit)
        estimate = estimate_one_rep_max(weight_lbs, lift.reps)

        canonical = HistoricalLift(
            parent_session_id=lift.parent_session_id,
            exercise_id=lift.exercise_id,
            weight=weight_lbs,
            reps=lift.reps,
            unit=WeightUnit.LBS,
            recorded_at=lift.recorded_at,
            category=category,
        )

        with self.storage.transaction():
            self.storage.append_historical_lift(canonical)

            stored = self.storage.load_exercise_progress(lift.exercise_id)
            if stored is not None and estimate <= stored.personal_record_weight:
                return False

            profile = self.get_profile()
            ranking = percentile(
                estimate,
                profile.bodyweight_lbs,
                profile.gender,
                lift.exercise_id,
                profile.age
            )
            ranking = min(100, max(0, int(round(ranking))))

            self.storage.save_exercise_progress(ExerciseProgress(
                exercise_id=lift.exercise_id,
                personal_record_weight=estimate,
                percentile_ranking=ranking,
                last_updated=self.clock(),
                tier=tier_from_percentile(ranking),
            ))

        logger.info("New personal record for %s: %.1f lbs (percentile %d)",
                    lift.exercise_id, estimate, ranking)
        return True

    def lift_history_frame(self, exercise_id: str) -> pd.DataFrame:
        """
        Historical lifts for one exercise as a DataFrame sorted by date,
        with an estimated_1rm column (lbs).
        """
        lifts = self.storage.load_lift_history(exercise_id)
        df = pd.DataFrame(
            [(l.recorded_at, l.weight, l.reps) for l in lifts],
            columns=['recorded_at', 'weight', 'reps']
        )
        if df.empty:
            df['estimated_1rm'] = pd.Series(dtype=float)
            return df

        df = df.sort_values('recorded_at').reset_index(drop=True)
        df['estimated_1rm'] = df.apply(
            lambda row: estimate_one_rep_max(row['weight'], row['reps']),
            axis=1
        )
        return df
