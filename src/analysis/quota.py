"""Per-model request quota tracking."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from src.analysis.config import ModelSpec

logger = logging.getLogger(__name__)

MINUTE_WINDOW = timedelta(minutes=1)


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(UTC)


@dataclass
class ModelQuotaState:
    """Request counters for one model within the current windows."""

    requests_this_minute: int
    requests_today: int
    window_start_minute: datetime
    window_start_day: date


class QuotaTracker:
    """Thread-safe per-model request counters.

    The minute window restarts once a minute has passed since it opened and
    the day window restarts when the UTC date changes. Checking the limits
    and recording a request happen under one lock, so concurrent callers can
    never both take the last slot.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        """Initialise the tracker.

        :param clock: Returns the current UTC time. Injectable for tests.
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._states: dict[str, ModelQuotaState] = {}

    def try_acquire(self, model: ModelSpec) -> bool:
        """Record a request for the model if it is under both limits.

        :param model: The model and its limits.
        :returns: True if the request was recorded, False if the model is at a limit.
        """
        with self._lock:
            state = self._current_state(model.name)
            if state.requests_this_minute >= model.rpm:
                logger.debug(f"Model {model.name} at per-minute limit ({model.rpm})")
                return False
            if state.requests_today >= model.rpd:
                logger.debug(f"Model {model.name} at per-day limit ({model.rpd})")
                return False

            state.requests_this_minute += 1
            state.requests_today += 1
            return True

    def snapshot(self, model_name: str) -> ModelQuotaState:
        """Return a copy of the model's counters with expired windows reset.

        :param model_name: The model name.
        :returns: The current counters.
        """
        with self._lock:
            state = self._current_state(model_name)
            return ModelQuotaState(
                requests_this_minute=state.requests_this_minute,
                requests_today=state.requests_today,
                window_start_minute=state.window_start_minute,
                window_start_day=state.window_start_day,
            )

    def _current_state(self, model_name: str) -> ModelQuotaState:
        """Get the model's state, rolling over expired windows. Caller holds the lock."""
        now = self._clock()
        state = self._states.get(model_name)
        if state is None:
            state = ModelQuotaState(0, 0, now, now.date())
            self._states[model_name] = state
            return state

        if now - state.window_start_minute >= MINUTE_WINDOW:
            state.requests_this_minute = 0
            state.window_start_minute = now
        if now.date() != state.window_start_day:
            state.requests_today = 0
            state.window_start_day = now.date()
        return state
