"""
Analytics Router
API endpoints for 1RM estimates, percentile rankings, tiers and personal records
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from services import ProgressTracker
from services.models import Gender, HistoricalLift, UserProfile, WeightUnit, to_lbs
from services.strength_standards import (
    GRADED_TIERS,
    estimate_one_rep_max,
    get_standard,
    graded_tier_from_percentile,
    lift_category,
    next_tier_gap,
    percentile,
    tier_from_percentile,
)

from .dependencies import get_progress_tracker, http_errors
from .schemas import LiftIn, ProfileIn

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/profile")
async def get_profile(tracker: ProgressTracker = Depends(get_progress_tracker)):
    """Profile used for percentile rankings (configured defaults until one is saved)"""
    with http_errors():
        return tracker.get_profile().to_dict()


@router.put("/profile")
async def update_profile(body: ProfileIn, tracker: ProgressTracker = Depends(get_progress_tracker)):
    profile = UserProfile(
        bodyweight=body.bodyweight,
        bodyweight_unit=body.bodyweight_unit,
        gender=body.gender,
        age=body.age,
    )
    with http_errors():
        tracker.save_profile(profile)
    return profile.to_dict()


@router.get("/1rm")
async def one_rep_max(
    weight: float = Query(..., ge=0),
    reps: int = Query(..., ge=1)
):
    """
    Estimated 1RM used for personal records (Epley).

    For other formulas see /predictions/1rm/calculate.
    """
    return {
        "weight": weight,
        "reps": reps,
        "estimated_1rm": round(estimate_one_rep_max(weight, reps), 1)
    }


@router.get("/percentile")
async def percentile_ranking(
    exercise_id: str,
    one_rep_max: float = Query(..., ge=0),
    unit: WeightUnit = WeightUnit.LBS,
    bodyweight: Optional[float] = Query(default=None, gt=0),
    gender: Optional[Gender] = None,
    age: Optional[int] = Query(default=None, gt=0, lt=120),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    """
    Rank a 1RM against the strength standards.

    Bodyweight, gender and age default to the saved profile. Exercises
    without standards rank at 0.

    - **bodyweight**: in the same unit as the 1RM
    """
    with http_errors():
        profile = tracker.get_profile()

    lift_lbs = to_lbs(one_rep_max, unit)
    bodyweight_lbs = to_lbs(bodyweight, unit) if bodyweight else profile.bodyweight_lbs
    gender = gender or profile.gender
    age = age or profile.age

    value = percentile(lift_lbs, bodyweight_lbs, gender, exercise_id, age)
    ranking = min(100, max(0, int(round(value))))
    gap = next_tier_gap(ranking)

    return {
        "exercise_id": exercise_id,
        "has_standards": get_standard(gender, exercise_id) is not None,
        "percentile": ranking,
        "tier": tier_from_percentile(ranking),
        "graded_tier": graded_tier_from_percentile(ranking),
        "next_tier": gap.tier_name,
        "points_needed": gap.points_needed
    }


@router.get("/tier")
async def tier(value: float = Query(..., ge=0, le=100)):
    """Tier for a percentile and the distance to the next one"""
    gap = next_tier_gap(value)
    graded_gap = next_tier_gap(value, GRADED_TIERS)
    return {
        "percentile": value,
        "tier": tier_from_percentile(value),
        "graded_tier": graded_tier_from_percentile(value),
        "next_tier": gap.tier_name,
        "points_needed": gap.points_needed,
        "max_tier_reached": gap.max_tier_reached,
        "next_graded_tier": graded_gap.tier_name,
        "graded_points_needed": graded_gap.points_needed
    }


@router.post("/lifts", status_code=201)
async def record_lift(body: LiftIn, tracker: ProgressTracker = Depends(get_progress_tracker)):
    """
    Record a lift outside a workout session.

    The lift is added to the exercise's history; the personal record only
    changes when the estimated 1RM beats it.
    """
    lift = HistoricalLift(
        parent_session_id=body.parent_session_id,
        exercise_id=body.exercise_id,
        weight=body.weight,
        reps=body.reps,
        unit=body.unit,
        recorded_at=tracker.clock(),
    )
    with http_errors():
        new_pr = tracker.record_lift(lift)
        progress = tracker.get_progress(body.exercise_id)
    return {
        "new_personal_record": new_pr,
        "category": lift_category(body.exercise_id).value,
        "progress": progress.to_dict() if progress else None
    }


@router.get("/lifts/{exercise_id}")
async def lift_history(exercise_id: str, tracker: ProgressTracker = Depends(get_progress_tracker)):
    """Historical lifts for an exercise with their estimated 1RMs (lbs)"""
    with http_errors():
        df = tracker.lift_history_frame(exercise_id)
    return {
        "exercise_id": exercise_id,
        "count": len(df),
        "lifts": [
            {
                "recorded_at": row.recorded_at.isoformat(),
                "weight": round(row.weight, 1),
                "reps": int(row.reps),
                "estimated_1rm": round(row.estimated_1rm, 1)
            }
            for row in df.itertuples()
        ]
    }


@router.get("/progress/{exercise_id}")
async def exercise_progress(exercise_id: str, tracker: ProgressTracker = Depends(get_progress_tracker)):
    """Personal record, percentile and tier for an exercise"""
    with http_errors():
        progress = tracker.get_progress(exercise_id)
    if progress is None:
        raise HTTPException(status_code=404, detail="No lifts recorded for this exercise")

    gap = next_tier_gap(progress.percentile_ranking)
    result = progress.to_dict()
    result.update({
        "category": lift_category(exercise_id).value,
        "graded_tier": graded_tier_from_percentile(progress.percentile_ranking),
        "next_tier": gap.tier_name,
        "points_needed": gap.points_needed
    })
    return result
