"""
Rest Timer
A countdown between sets that stays correct across process suspension.

Only the start timestamp and the duration are stored. Remaining time is
recomputed from the clock on every read, so a process that was suspended
(or restarted) picks up exactly where wall-clock time says it should be.
"""

import logging
import math
from typing import Callable, Optional

from config import DEFAULT_REST_SECONDS
from .errors import PersistenceFailure
from .models import RestTimerState, utc_now
from .storage import StorageService

logger = logging.getLogger(__name__)


class RestTimer:
    def __init__(self, storage: StorageService, clock: Callable = utc_now):
        self.storage = storage
        self.clock = clock

    def start(self, duration_seconds: Optional[float] = None) -> RestTimerState:
        """Start (or restart) the countdown, replacing any running timer"""
        if duration_seconds is None:
            duration_seconds = DEFAULT_REST_SECONDS
        state = RestTimerState(started_at=self.clock(), duration_seconds=duration_seconds)
        self.storage.save_rest_timer(state)
        return state

    def _remaining_for(self, state: RestTimerState) -> int:
        elapsed = math.floor((self.clock() - state.started_at).total_seconds())
        return max(0, math.ceil(state.duration_seconds) - elapsed)

    def remaining(self) -> int:
        """
        Seconds left on the timer, 0 when not resting.

        Reaching 0 clears the stored timer.
        """
        state = self._load()
        if state is None:
            return 0

        remaining = self._remaining_for(state)
        if remaining == 0:
            self._clear()
        return remaining

    def is_resting(self) -> bool:
        return self.remaining() > 0

    def formatted(self) -> str:
        """Remaining time as M:SS"""
        minutes, seconds = divmod(self.remaining(), 60)
        return f"{minutes}:{seconds:02d}"

    def skip(self) -> bool:
        """End the rest period now; always leaves the timer not resting"""
        self._clear()
        return False

    def restore(self) -> None:
        """Process start: drop a timer that expired while we were not running"""
        state = self._load()
        if state is not None and self._remaining_for(state) == 0:
            logger.info("Clearing rest timer that expired while suspended")
            self._clear()

    def _load(self) -> Optional[RestTimerState]:
        try:
            return self.storage.load_rest_timer()
        except PersistenceFailure:
            logger.warning("Could not read rest timer", exc_info=True)
            return None

    def _clear(self) -> None:
        try:
            self.storage.clear_rest_timer()
        except PersistenceFailure:
            logger.warning("Could not clear rest timer; will retry on next read", exc_info=True)
