"""
Workout Data Model
Value objects shared by the session state machine, the analytics engine
and the storage layer.

Every record converts to and from a plain dict (to_dict / from_dict) so the
storage layer can keep it as JSON. Timestamps are serialized with
isoformat(), which keeps microseconds and the UTC offset, so they
round-trip exactly.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional


KG_TO_LBS = 2.20462


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _dump_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _load_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class WeightUnit(str, Enum):
    LBS = "lbs"
    KG = "kg"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class LiftCategory(str, Enum):
    MAIN = "main"
    SECONDARY = "secondary"


class SessionState(str, Enum):
    """Lifecycle of the workout session state machine"""
    NONE = "none"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def to_lbs(weight: float, unit: WeightUnit) -> float:
    """Convert a weight to the canonical unit (lbs)"""
    if WeightUnit(unit) == WeightUnit.KG:
        return weight * KG_TO_LBS
    return weight


@dataclass
class SetRecord:
    """A single set inside an exercise"""
    set_number: int
    weight: float
    reps: int
    unit: WeightUnit = WeightUnit.LBS
    completed: bool = True
    rest_started_at: Optional[datetime] = None

    @property
    def volume(self) -> float:
        return self.weight * self.reps

    def to_dict(self) -> Dict:
        return {
            'set_number': self.set_number,
            'weight': self.weight,
            'reps': self.reps,
            'unit': WeightUnit(self.unit).value,
            'completed': self.completed,
            'rest_started_at': _dump_time(self.rest_started_at),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'SetRecord':
        return cls(
            set_number=data['set_number'],
            weight=data['weight'],
            reps=data['reps'],
            unit=WeightUnit(data.get('unit', 'lbs')),
            completed=data.get('completed', True),
            rest_started_at=_load_time(data.get('rest_started_at')),
        )


@dataclass
class ExerciseSession:
    """
    One exercise inside a live workout.

    target_reps is free text because templates encode ranges ("8-12").
    allows_bodyweight marks exercises where a set with weight 0 is valid.
    """
    exercise_id: str
    target_sets: int
    target_reps: str
    completed_sets: List[SetRecord] = field(default_factory=list)
    is_completed: bool = False
    allows_bodyweight: bool = False

    def refresh_completion(self) -> None:
        self.is_completed = len(self.completed_sets) >= self.target_sets

    def renumber_sets(self) -> None:
        for position, set_record in enumerate(self.completed_sets, start=1):
            set_record.set_number = position

    def to_dict(self) -> Dict:
        return {
            'exercise_id': self.exercise_id,
            'target_sets': self.target_sets,
            'target_reps': self.target_reps,
            'completed_sets': [s.to_dict() for s in self.completed_sets],
            'is_completed': self.is_completed,
            'allows_bodyweight': self.allows_bodyweight,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'ExerciseSession':
        return cls(
            exercise_id=data['exercise_id'],
            target_sets=data['target_sets'],
            target_reps=str(data['target_reps']),
            completed_sets=[SetRecord.from_dict(s) for s in data.get('completed_sets', [])],
            is_completed=data.get('is_completed', False),
            allows_bodyweight=data.get('allows_bodyweight', False),
        )


@dataclass
class WorkoutSession:
    """The in-progress workout (aggregate root)"""
    id: str
    workout_id: str
    title: str
    exercises: List[ExerciseSession]
    started_at: datetime
    current_exercise_index: int = 0
    current_set_index: int = 0
    is_completed: bool = False
    total_rest_seconds: float = 0

    @property
    def total_sets(self) -> int:
        return sum(len(ex.completed_sets) for ex in self.exercises)

    @property
    def total_volume(self) -> float:
        return sum(s.volume for ex in self.exercises for s in ex.completed_sets)

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'workout_id': self.workout_id,
            'title': self.title,
            'exercises': [ex.to_dict() for ex in self.exercises],
            'started_at': _dump_time(self.started_at),
            'current_exercise_index': self.current_exercise_index,
            'current_set_index': self.current_set_index,
            'is_completed': self.is_completed,
            'total_rest_seconds': self.total_rest_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'WorkoutSession':
        return cls(
            id=data['id'],
            workout_id=data['workout_id'],
            title=data['title'],
            exercises=[ExerciseSession.from_dict(ex) for ex in data['exercises']],
            started_at=_load_time(data['started_at']),
            current_exercise_index=data.get('current_exercise_index', 0),
            current_set_index=data.get('current_set_index', 0),
            is_completed=data.get('is_completed', False),
            total_rest_seconds=data.get('total_rest_seconds', 0),
        )


@dataclass
class TemplateExercise:
    exercise_id: str
    sets: int = 3
    reps: str = "8"
    bodyweight: bool = False


@dataclass
class WorkoutTemplate:
    """A planned workout that a session is started from"""
    id: str
    title: str
    exercises: List[TemplateExercise]


@dataclass
class HistoricalLift:
    """Best set of one exercise in one finished workout (append-only)"""
    parent_session_id: str
    exercise_id: str
    weight: float
    reps: int
    unit: WeightUnit = WeightUnit.LBS
    recorded_at: datetime = field(default_factory=utc_now)
    category: LiftCategory = LiftCategory.SECONDARY

    def to_dict(self) -> Dict:
        return {
            'parent_session_id': self.parent_session_id,
            'exercise_id': self.exercise_id,
            'weight': self.weight,
            'reps': self.reps,
            'unit': WeightUnit(self.unit).value,
            'recorded_at': _dump_time(self.recorded_at),
            'category': LiftCategory(self.category).value,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'HistoricalLift':
        return cls(
            parent_session_id=data['parent_session_id'],
            exercise_id=data['exercise_id'],
            weight=data['weight'],
            reps=data['reps'],
            unit=WeightUnit(data.get('unit', 'lbs')),
            recorded_at=_load_time(data['recorded_at']),
            category=LiftCategory(data.get('category', 'secondary')),
        )


@dataclass
class ExerciseProgress:
    """Personal record and ranking for one exercise (weights in lbs)"""
    exercise_id: str
    personal_record_weight: float
    percentile_ranking: int
    last_updated: datetime
    tier: str = "E"

    def to_dict(self) -> Dict:
        return {
            'exercise_id': self.exercise_id,
            'personal_record_weight': self.personal_record_weight,
            'percentile_ranking': self.percentile_ranking,
            'last_updated': _dump_time(self.last_updated),
            'tier': self.tier,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'ExerciseProgress':
        return cls(
            exercise_id=data['exercise_id'],
            personal_record_weight=data['personal_record_weight'],
            percentile_ranking=data['percentile_ranking'],
            last_updated=_load_time(data['last_updated']),
            tier=data.get('tier', 'E'),
        )


@dataclass
class RestTimerState:
    started_at: datetime
    duration_seconds: float

    def to_dict(self) -> Dict:
        return {
            'started_at': _dump_time(self.started_at),
            'duration_seconds': self.duration_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'RestTimerState':
        return cls(
            started_at=_load_time(data['started_at']),
            duration_seconds=data['duration_seconds'],
        )


@dataclass
class UserProfile:
    """Body measurements used to rank lifts against the standards tables"""
    bodyweight: float
    bodyweight_unit: WeightUnit = WeightUnit.LBS
    gender: Gender = Gender.MALE
    age: Optional[int] = None

    @property
    def bodyweight_lbs(self) -> float:
        return to_lbs(self.bodyweight, self.bodyweight_unit)

    def to_dict(self) -> Dict:
        return {
            'bodyweight': self.bodyweight,
            'bodyweight_unit': WeightUnit(self.bodyweight_unit).value,
            'gender': Gender(self.gender).value,
            'age': self.age,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'UserProfile':
        return cls(
            bodyweight=data['bodyweight'],
            bodyweight_unit=WeightUnit(data.get('bodyweight_unit', 'lbs')),
            gender=Gender(data.get('gender', 'male')),
            age=data.get('age'),
        )


@dataclass
class WorkoutSummary:
    """What finish() reports back to the caller"""
    duration_minutes: int
    total_sets: int
    total_volume: float
    personal_record_count: int
    lifts_recorded: int = 0

    def to_dict(self) -> Dict:
        return {
            'duration_minutes': self.duration_minutes,
            'total_sets': self.total_sets,
            'total_volume': self.total_volume,
            'personal_record_count': self.personal_record_count,
            'lifts_recorded': self.lifts_recorded,
        }
