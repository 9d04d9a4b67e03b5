"""
Request Bodies
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from services.models import Gender, WeightUnit


class TemplateExerciseIn(BaseModel):
    exercise_id: str
    sets: int = Field(default=3, ge=1)
    reps: str = "8"
    bodyweight: bool = False


class StartSessionIn(BaseModel):
    workout_id: str
    title: str
    exercises: List[TemplateExerciseIn] = []


class SetIn(BaseModel):
    weight: float
    reps: int
    unit: WeightUnit = WeightUnit.LBS
    # Start the rest timer after logging the set
    rest_seconds: Optional[int] = Field(default=None, gt=0)


class AddExerciseIn(BaseModel):
    exercise_id: str
    sets: int = 3
    reps: str = "8"
    bodyweight: bool = False


class CancelIn(BaseModel):
    confirmed: bool = False


class RestTimerIn(BaseModel):
    duration_seconds: Optional[int] = Field(default=None, gt=0)


class ProfileIn(BaseModel):
    bodyweight: float = Field(gt=0)
    bodyweight_unit: WeightUnit = WeightUnit.LBS
    gender: Gender = Gender.MALE
    age: Optional[int] = Field(default=None, gt=0, lt=120)


class LiftIn(BaseModel):
    exercise_id: str
    weight: float = Field(ge=0)
    reps: int = Field(ge=1)
    unit: WeightUnit = WeightUnit.LBS
    parent_session_id: str = "manual"


class SeriesIn(BaseModel):
    values: List[float]
    horizons: Optional[List[int]] = None
    models: Optional[List[str]] = None
