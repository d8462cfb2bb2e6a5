from __future__ import annotations

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def stop(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]
VisibilityListener = Callable[[bool], None]


class ControlsAutoHide:
    def __init__(
        self,
        scheduler: Scheduler,
        *,
        delay: float = 3.0,
        on_change: VisibilityListener | None = None,
    ) -> None:
        self._scheduler = scheduler
        self.delay = delay
        self._on_change = on_change
        self._timer: TimerHandle | None = None
        self._playing = False
        self._visible = True
        self._closed = False

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def armed(self) -> bool:
        return self._timer is not None

    def pointer_moved(self) -> None:
        self._reset()

    def set_playing(self, playing: bool) -> None:
        if playing == self._playing:
            return
        self._playing = playing
        self._reset()

    def close(self) -> None:
        self._cancel()
        self._closed = True

    def _reset(self) -> None:
        if self._closed:
            return
        self._cancel()
        self._set_visible(True)
        if self._playing:
            self._timer = self._scheduler(self.delay, self._expire)

    def _expire(self) -> None:
        self._timer = None
        if self._closed or not self._playing:
            return
        self._set_visible(False)

    def _cancel(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    def _set_visible(self, visible: bool) -> None:
        if visible == self._visible:
            return
        self._visible = visible
        logger.debug("Controls %s", "shown" if visible else "hidden")
        if self._on_change is not None:
            self._on_change(visible)
