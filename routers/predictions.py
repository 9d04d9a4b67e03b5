"""
Predictions Router
API endpoints for strength forecasts
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from services import ProgressTracker, StrengthPredictor
from services.strength_predictor import MODEL_REGISTRY, get_models, predict_all
from services.strength_standards import calculate_1rm

from .dependencies import get_progress_tracker, http_errors
from .schemas import SeriesIn

router = APIRouter(prefix="/predictions", tags=["Predictions"])


def _resolve_models(names: Optional[List[str]]):
    try:
        return get_models(names)
    except KeyError as e:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown model {e}. Available: {', '.join(MODEL_REGISTRY)}"
        )


@router.get("/models")
async def list_models():
    """Registered prediction models; the default ensemble averages the first two"""
    return {
        "models": [
            {"key": key, "name": model.name, "description": model.description}
            for key, model in MODEL_REGISTRY.items()
        ],
        "default": [model.name for model in get_models()]
    }


@router.get("/strength/{exercise_id}")
async def predict_strength(
    exercise_id: str,
    models: Optional[List[str]] = Query(default=None),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    """
    Predict future strength for an exercise.

    Forecasts the estimated 1RM at 30, 90, 180 and 365 days from the
    exercise's lift history.

    - **exercise_id**: Exercise to predict
    - **models**: Registry keys to average instead of the default ensemble
    """
    predictor = StrengthPredictor(_resolve_models(models))

    with http_errors():
        df = tracker.lift_history_frame(exercise_id)

    if df.empty:
        raise HTTPException(status_code=404, detail="No lifts recorded for this exercise")

    forecast = predictor.forecast(df)
    return {
        "exercise_id": exercise_id,
        "current_estimated_1rm": forecast['current_1rm'],
        "data_points": forecast['data_points'],
        "predictions": forecast['ensemble'],
        "model_predictions": forecast['models']
    }


@router.get("/goal/{exercise_id}")
async def predict_goal_date(
    exercise_id: str,
    target_weight: float = Query(..., gt=0, description="Target 1RM to achieve (lbs)"),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    """
    Predict when you'll reach a specific strength goal.

    - **exercise_id**: Exercise to predict
    - **target_weight**: The 1RM you want to reach
    """
    with http_errors():
        df = tracker.lift_history_frame(exercise_id)

    if df.empty:
        raise HTTPException(status_code=404, detail="No lifts recorded for this exercise")

    return {
        "exercise_id": exercise_id,
        "target_weight": target_weight,
        "prediction": StrengthPredictor().target_date(df, target_weight)
    }


@router.post("/series")
async def predict_series(body: SeriesIn):
    """Forecast an arbitrary chronological series of 1RM estimates"""
    return predict_all(body.values, body.horizons, _resolve_models(body.models))


@router.get("/1rm/calculate")
async def calculate_one_rep_max(
    weight: float = Query(..., gt=0),
    reps: int = Query(..., ge=1, le=30),
    formula: str = Query(default="average", pattern="^(epley|brzycki|lombardi|oconner|mayhew|average)$")
):
    """
    Calculate estimated 1RM using various formulas.

    - **weight**: Weight lifted
    - **reps**: Number of reps completed
    - **formula**: Formula to use (epley, brzycki, lombardi, oconner, mayhew, average)
    """
    if reps == 1:
        return {
            "weight": weight,
            "reps": reps,
            "estimated_1rm": weight,
            "note": "1 rep = actual 1RM"
        }

    all_formulas = {
        name: round(calculate_1rm(weight, reps, name), 1)
        for name in ('epley', 'brzycki', 'lombardi', 'oconner', 'mayhew')
    }

    if formula == 'average':
        result = round(calculate_1rm(weight, reps, 'average'), 1)
    else:
        result = all_formulas[formula]

    return {
        "weight": weight,
        "reps": reps,
        "formula": formula,
        "estimated_1rm": result,
        "all_formulas": all_formulas
    }
