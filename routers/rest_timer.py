"""
Rest Timer Router
"""

from fastapi import APIRouter, Depends

from services import RestTimer

from .dependencies import get_rest_timer, http_errors
from .schemas import RestTimerIn

router = APIRouter(prefix="/rest-timer", tags=["Rest Timer"])


def _timer_view(timer: RestTimer) -> dict:
    remaining = timer.remaining()
    minutes, seconds = divmod(remaining, 60)
    return {
        "resting": remaining > 0,
        "remaining_seconds": remaining,
        "formatted": f"{minutes}:{seconds:02d}"
    }


@router.get("")
async def get_rest_timer_status(timer: RestTimer = Depends(get_rest_timer)):
    return _timer_view(timer)


@router.post("/start", status_code=201)
async def start_rest_timer(body: RestTimerIn, timer: RestTimer = Depends(get_rest_timer)):
    """Start (or restart) the rest countdown; defaults to the configured rest period"""
    with http_errors():
        timer.start(body.duration_seconds)
    return _timer_view(timer)


@router.post("/skip")
async def skip_rest_timer(timer: RestTimer = Depends(get_rest_timer)):
    timer.skip()
    return _timer_view(timer)
