from __future__ import annotations

from concurrent.futures import Future

from .streams import ReadyState


class SimulatedStream:
    def __init__(
        self,
        src: str,
        *,
        duration: float,
        label: str | None = None,
        ready_state: int = ReadyState.HAVE_ENOUGH_DATA,
        fail_play: bool = False,
        fail_seek: bool = False,
    ) -> None:
        self.src = src
        self.label = label
        self.duration = float(duration)
        self.ready_state = int(ready_state)
        self.fail_play = fail_play
        self.fail_seek = fail_seek
        self.paused = True
        self.volume = 1.0
        self.muted = False
        self.play_requests = 0
        self._position = 0.0

    @property
    def current_time(self) -> float:
        return self._position

    @current_time.setter
    def current_time(self, value: float) -> None:
        if self.fail_seek:
            raise RuntimeError(f"seek rejected by {self.src}")
        self._position = min(max(0.0, float(value)), self.duration)

    def play(self) -> Future[None]:
        self.play_requests += 1
        result: Future[None] = Future()
        if self.fail_play:
            result.set_exception(RuntimeError(f"playback rejected by {self.src}"))
            return result
        self.paused = False
        result.set_result(None)
        return result

    def pause(self) -> None:
        self.paused = True

    def advance(self, seconds: float) -> float:
        if self.paused:
            return self._position
        self._position = min(self._position + seconds, self.duration)
        if self._position >= self.duration:
            self.paused = True
        return self._position
