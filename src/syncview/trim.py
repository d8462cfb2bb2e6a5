from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class TrimPhase(Enum):
    IDLE = "idle"
    AWAITING_START = "awaiting_start"
    AWAITING_END = "awaiting_end"
    COMPLETE = "complete"


@dataclass
class TrimState:
    is_trim_mode: bool = False
    trim_start: float | None = None
    trim_end: float | None = None


class TrimSelector:
    def __init__(self) -> None:
        self.state = TrimState()

    @property
    def is_active(self) -> bool:
        return self.state.is_trim_mode

    @property
    def trim_start(self) -> float | None:
        return self.state.trim_start

    @property
    def trim_end(self) -> float | None:
        return self.state.trim_end

    @property
    def phase(self) -> TrimPhase:
        state = self.state
        if not state.is_trim_mode:
            return TrimPhase.IDLE
        if state.trim_start is None:
            return TrimPhase.AWAITING_START
        if state.trim_end is None:
            return TrimPhase.AWAITING_END
        return TrimPhase.COMPLETE

    @property
    def trim_range(self) -> tuple[float, float] | None:
        start, end = self.state.trim_start, self.state.trim_end
        if start is None or end is None:
            return None
        return (start, end)

    def toggle_trim_mode(self, current_time: float) -> TrimPhase:
        state = self.state
        if state.is_trim_mode:
            state.is_trim_mode = False
        else:
            state.is_trim_mode = True
            state.trim_start = current_time
            state.trim_end = None
        logger.debug("Trim mode %s", "on" if state.is_trim_mode else "off")
        return self.phase

    def click(self, time: float) -> bool:
        state = self.state
        if not state.is_trim_mode:
            return False
        if state.trim_start is None:
            state.trim_start = time
        elif state.trim_end is None:
            if time < state.trim_start:
                state.trim_start, state.trim_end = time, state.trim_start
            else:
                state.trim_end = time
        else:
            state.trim_start = time
            state.trim_end = None
        logger.debug("Trim marks start=%s end=%s", state.trim_start, state.trim_end)
        return True

    def set_trim_start(self, time: float | None) -> None:
        self.state.trim_start = time
        self._order_marks()

    def set_trim_end(self, time: float | None) -> None:
        self.state.trim_end = time
        self._order_marks()

    def _order_marks(self) -> None:
        state = self.state
        if state.trim_start is not None and state.trim_end is not None:
            if state.trim_end < state.trim_start:
                state.trim_start, state.trim_end = state.trim_end, state.trim_start

    def reset_trim(self) -> None:
        self.state.is_trim_mode = False
        self.state.trim_start = None
        self.state.trim_end = None
