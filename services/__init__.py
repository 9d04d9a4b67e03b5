"""
Strength Tracker Services Package

Contains the core logic:
- WorkoutSessionManager: the in-progress workout state machine
- RestTimer: wall-clock rest countdown
- ProgressTracker: personal records and lift history
- strength_standards: 1RM estimation, percentiles and tiers
- strength_predictor: forecasting models and their ensemble
- StorageService: SQLAlchemy-backed persistence
"""

from .errors import IntegrityViolation, PersistenceFailure, SessionStateError, TrackerError
from .progress_tracker import ProgressTracker
from .rest_timer import RestTimer
from .storage import OrderedWriter, StorageService
from .strength_predictor import PREDICTION_MODELS, StrengthPredictor, predict, predict_all
from .strength_standards import (
    calculate_1rm,
    estimate_one_rep_max,
    next_tier_gap,
    percentile,
    tier_from_percentile,
)
from .workout_session import WorkoutSessionManager

__all__ = [
    'IntegrityViolation',
    'PersistenceFailure',
    'SessionStateError',
    'TrackerError',
    'ProgressTracker',
    'RestTimer',
    'OrderedWriter',
    'StorageService',
    'PREDICTION_MODELS',
    'StrengthPredictor',
    'predict',
    'predict_all',
    'calculate_1rm',
    'estimate_one_rep_max',
    'next_tier_gap',
    'percentile',
    'tier_from_percentile',
    'WorkoutSessionManager',
]
