"""
Router Dependencies
Access to the application's service objects and error translation
"""

from contextlib import contextmanager

from fastapi import HTTPException, Request

from services import (
    IntegrityViolation,
    PersistenceFailure,
    ProgressTracker,
    RestTimer,
    SessionStateError,
    StorageService,
    WorkoutSessionManager,
)


def get_session_manager(request: Request) -> WorkoutSessionManager:
    return request.app.state.session_manager


def get_rest_timer(request: Request) -> RestTimer:
    return request.app.state.rest_timer


def get_progress_tracker(request: Request) -> ProgressTracker:
    return request.app.state.progress_tracker


def get_storage(request: Request) -> StorageService:
    return request.app.state.storage


@contextmanager
def http_errors():
    """
    Turn domain exceptions into HTTP errors.

    - IntegrityViolation -> 404 (no such exercise/set)
    - SessionStateError  -> 409 (no active session)
    - PersistenceFailure -> 503 (storage unavailable)
    """
    try:
        yield
    except IntegrityViolation as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except SessionStateError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except PersistenceFailure as e:
        raise HTTPException(status_code=503, detail=f"Storage unavailable: {e}") from e


def rejected(reason: str) -> HTTPException:
    """A validation rejection: nothing was changed"""
    return HTTPException(status_code=422, detail={"accepted": False, "reason": reason})
