"""
Sessions Router
API endpoints for the in-progress workout
"""

from fastapi import APIRouter, Depends

from services import RestTimer, StorageService, WorkoutSessionManager
from services.models import TemplateExercise, WorkoutTemplate

from .dependencies import get_rest_timer, get_session_manager, get_storage, http_errors, rejected
from .schemas import AddExerciseIn, CancelIn, SetIn, StartSessionIn

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _session_view(manager: WorkoutSessionManager) -> dict:
    session = manager.session
    return {
        "state": manager.state.value,
        "session": session.to_dict() if session else None,
        "total_sets": session.total_sets if session else 0,
        "total_volume": session.total_volume if session else 0,
        "would_discard_progress": manager.would_discard_progress(),
    }


@router.post("", status_code=201)
async def start_session(body: StartSessionIn,
                        manager: WorkoutSessionManager = Depends(get_session_manager)):
    """
    Start a workout from a template, or resume it.

    Starting the workout that is already active returns it unchanged.
    """
    template = WorkoutTemplate(
        id=body.workout_id,
        title=body.title,
        exercises=[
            TemplateExercise(exercise_id=ex.exercise_id, sets=ex.sets, reps=ex.reps, bodyweight=ex.bodyweight)
            for ex in body.exercises
        ],
    )
    with http_errors():
        manager.initialize(template)
    return _session_view(manager)


@router.get("/active")
async def get_active_session(manager: WorkoutSessionManager = Depends(get_session_manager)):
    """The active session, if any, and the state machine's state"""
    return _session_view(manager)


@router.post("/active/sets", status_code=201)
async def complete_set(body: SetIn,
                       manager: WorkoutSessionManager = Depends(get_session_manager),
                       timer: RestTimer = Depends(get_rest_timer)):
    """
    Log a set for the current exercise.

    - **weight**: 0 is only accepted for bodyweight exercises
    - **reps**: must be at least 1
    - **rest_seconds**: optionally start the rest timer
    """
    with http_errors():
        accepted = manager.complete_set(body.weight, body.reps, body.unit)
    if not accepted:
        raise rejected("Reps must be positive and weight positive (or 0 for bodyweight exercises)")

    if body.rest_seconds:
        with http_errors():
            timer.start(body.rest_seconds)
    return _session_view(manager)


@router.put("/active/exercises/{exercise_index}/sets/{set_index}")
async def update_set(exercise_index: int,
                     set_index: int,
                     body: SetIn,
                     manager: WorkoutSessionManager = Depends(get_session_manager)):
    with http_errors():
        accepted = manager.update_set(exercise_index, set_index, body.weight, body.reps, body.unit)
    if not accepted:
        raise rejected("Reps must be positive and weight positive (or 0 for bodyweight exercises)")
    return _session_view(manager)


@router.delete("/active/exercises/{exercise_index}/sets/{set_index}")
async def delete_set(exercise_index: int,
                     set_index: int,
                     manager: WorkoutSessionManager = Depends(get_session_manager)):
    with http_errors():
        manager.delete_set(exercise_index, set_index)
    return _session_view(manager)


@router.post("/active/exercises/{exercise_index}/add-set")
async def add_set(exercise_index: int,
                  manager: WorkoutSessionManager = Depends(get_session_manager)):
    """Plan one more set for an exercise"""
    with http_errors():
        manager.add_set(exercise_index)
    return _session_view(manager)


@router.post("/active/exercises", status_code=201)
async def add_exercise(body: AddExerciseIn,
                       manager: WorkoutSessionManager = Depends(get_session_manager)):
    with http_errors():
        exercise = manager.add_exercise(body.exercise_id, body.sets, body.reps, body.bodyweight)
    if exercise is None:
        raise rejected("An exercise needs at least one set")
    return _session_view(manager)


@router.delete("/active/exercises/{exercise_index}")
async def delete_exercise(exercise_index: int,
                          manager: WorkoutSessionManager = Depends(get_session_manager)):
    with http_errors():
        manager.delete_exercise(exercise_index)
    return _session_view(manager)


@router.post("/active/exercises/{exercise_index}/jump")
async def jump_to_exercise(exercise_index: int,
                           manager: WorkoutSessionManager = Depends(get_session_manager)):
    with http_errors():
        manager.jump_to_exercise(exercise_index)
    return _session_view(manager)


@router.post("/active/next")
async def next_exercise(manager: WorkoutSessionManager = Depends(get_session_manager)):
    with http_errors():
        moved = manager.next_exercise()
    view = _session_view(manager)
    view["moved"] = moved
    return view


@router.post("/active/finish")
async def finish_session(manager: WorkoutSessionManager = Depends(get_session_manager)):
    """
    Finish the workout: records history and personal records.

    A storage failure returns 503 and leaves the session active so the
    request can be retried.
    """
    with http_errors():
        summary = manager.finish()
    return {
        "state": manager.state.value,
        "summary": summary.to_dict()
    }


@router.post("/active/cancel")
async def cancel_session(body: CancelIn,
                         manager: WorkoutSessionManager = Depends(get_session_manager)):
    """
    Cancel the workout.

    Without **confirmed** nothing is discarded; the response says whether
    logged sets would be lost.
    """
    with http_errors():
        would_discard = manager.would_discard_progress()
        cancelled = manager.cancel(confirmed=body.confirmed)
    return {
        "cancelled": cancelled,
        "would_discard_progress": would_discard,
        "state": manager.state.value
    }


@router.get("/history")
async def workout_history(storage: StorageService = Depends(get_storage)):
    """Finished workouts, oldest first"""
    with http_errors():
        history = storage.load_workout_history()
    return {
        "count": len(history),
        "workouts": history
    }
