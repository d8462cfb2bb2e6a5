from __future__ import annotations

import asyncio
import inspect
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from .errors import StreamOperationFailure
from .streams import ReadyState, StreamHandle, StreamRegistry, describe_stream
from .timeline import clamp_time
from .timeparse import SECONDS_PER_HOUR, hms_to_seconds

logger = logging.getLogger(__name__)

FailureListener = Callable[[StreamOperationFailure], None]


class FullscreenHost(Protocol):
    def request_fullscreen(self) -> Any: ...

    def exit_fullscreen(self) -> None: ...

    def is_fullscreen_active(self) -> bool: ...


@dataclass
class TransportState:
    is_playing: bool = False
    current_time: float = 0.0
    duration: float = 0.0
    is_fullscreen: bool = False
    volume: float = 0.5
    is_muted: bool = False


class TransportController:
    """Group play/pause/seek applied to every registered stream.

    Group flags are optimistic: they are updated once requests have been
    dispatched, without waiting for any stream to confirm. Each per-stream
    request is isolated, so one failing stream is logged and reported to the
    failure listeners while the command still reaches every other stream.
    """

    def __init__(
        self,
        registry: StreamRegistry,
        *,
        fullscreen: FullscreenHost | None = None,
        readiness_threshold: int = ReadyState.HAVE_CURRENT_DATA,
        volume: float = 0.5,
    ) -> None:
        self.registry = registry
        self.fullscreen = fullscreen
        self.readiness_threshold = int(readiness_threshold)
        self.state = TransportState(volume=volume, is_muted=volume == 0)
        self._failure_listeners: list[FailureListener] = []
        self._pending_tasks: set[asyncio.Task[Any]] = set()
        self._play_rejected: list[StreamHandle] = []

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

    @property
    def current_time(self) -> float:
        return self.state.current_time

    @property
    def duration(self) -> float:
        return self.state.duration

    @property
    def is_fullscreen(self) -> bool:
        return self.state.is_fullscreen

    def add_failure_listener(self, listener: FailureListener) -> None:
        self._failure_listeners.append(listener)

    def remove_failure_listener(self, listener: FailureListener) -> None:
        if listener in self._failure_listeners:
            self._failure_listeners.remove(listener)

    def play(self) -> None:
        self._play_rejected.clear()
        for stream in self.registry:
            if _ready_state(stream) < self.readiness_threshold:
                logger.debug("Skipping play for %s: not ready", describe_stream(stream))
                continue
            try:
                pending = stream.play()
            except Exception as exc:
                self._report("play", stream, exc)
                continue
            self._watch_pending("play", stream, pending)
        self.state.is_playing = True

    def pause(self) -> None:
        for stream in self.registry:
            try:
                stream.pause()
            except Exception as exc:
                self._report("pause", stream, exc)
        self.state.is_playing = False

    def stop(self) -> None:
        self.pause()
        self.seek(0.0)

    def seek(self, target: float) -> float:
        clamped = clamp_time(target, self.state.duration)
        for stream in self.registry:
            self._assign_position(stream, clamped)
        self.state.current_time = clamped
        return clamped

    def skip_time(self, delta: float) -> float:
        return self.seek(self.state.current_time + delta)

    def skip_to_hour(self, hour: int) -> float:
        return self.seek(hour * SECONDS_PER_HOUR)

    def go_to_time(self, hours: int, minutes: int, seconds: float) -> float:
        return self.seek(hms_to_seconds(hours, minutes, seconds))

    def toggle_play(self) -> None:
        if self.state.is_playing:
            self.pause()
        else:
            self.play()

    def toggle_fullscreen(self) -> None:
        host = self.fullscreen
        if not self.state.is_fullscreen:
            if host is not None:
                try:
                    pending = host.request_fullscreen()
                except Exception as exc:
                    logger.error("Fullscreen request failed: %s", exc)
                else:
                    self._watch_pending("fullscreen", host, pending, self._log_fullscreen_failure)
        elif host is not None:
            try:
                if host.is_fullscreen_active():
                    host.exit_fullscreen()
            except Exception as exc:
                logger.error("Fullscreen exit failed: %s", exc)
        self.state.is_fullscreen = not self.state.is_fullscreen

    def set_current_time(self, value: float) -> None:
        self.state.current_time = value

    def set_duration(self, value: float) -> None:
        self.state.duration = value

    def set_volume(self, volume: float) -> None:
        volume = min(1.0, max(0.0, volume))
        for stream in self.registry:
            try:
                stream.volume = volume  # type: ignore[attr-defined]
            except Exception as exc:
                self._report("volume", stream, exc)
        self.state.volume = volume
        self.state.is_muted = volume == 0

    def toggle_mute(self) -> None:
        muted = not self.state.is_muted
        for stream in self.registry:
            try:
                stream.muted = muted  # type: ignore[attr-defined]
            except Exception as exc:
                self._report("mute", stream, exc)
        self.state.is_muted = muted

    def resync(self, tolerance: float = 0.5) -> int:
        """Re-seek streams that drifted more than ``tolerance`` seconds."""
        target = self.state.current_time
        corrected = 0
        for stream in self.registry:
            try:
                position = float(stream.current_time)
            except Exception as exc:
                self._report("resync", stream, exc)
                continue
            if math.isfinite(position) and abs(position - target) <= tolerance:
                continue
            if self._assign_position(stream, target):
                corrected += 1
        if corrected:
            logger.debug("Resynced %d stream(s) to %.3f", corrected, target)
        return corrected

    def time_source(self) -> StreamHandle | None:
        for stream in self.registry:
            if _ready_state(stream) >= self.readiness_threshold and not self._was_rejected(stream):
                return stream
        return None

    def _was_rejected(self, stream: Any) -> bool:
        return any(rejected is stream for rejected in self._play_rejected)

    def _assign_position(self, stream: StreamHandle, position: float) -> bool:
        try:
            stream.current_time = position
        except Exception as exc:
            self._report("seek", stream, exc)
            return False
        return True

    def _watch_pending(
        self,
        operation: str,
        target: Any,
        pending: Any,
        on_error: Callable[[str, Any, BaseException], None] | None = None,
    ) -> None:
        on_error = on_error or self._report
        if pending is None:
            return
        if inspect.iscoroutine(pending):
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                pending.close()
                logger.warning(
                    "Dropped %s result for %s: no running event loop",
                    operation,
                    describe_stream(target),
                )
                return
            task = loop.create_task(pending)
            self._pending_tasks.add(task)
            task.add_done_callback(self._pending_tasks.discard)
            pending = task
        add_done_callback = getattr(pending, "add_done_callback", None)
        if add_done_callback is None:
            return

        def on_done(result: Any) -> None:
            if result.cancelled():
                return
            exc = result.exception()
            if exc is not None:
                on_error(operation, target, exc)

        add_done_callback(on_done)

    def _log_fullscreen_failure(self, operation: str, host: Any, exc: BaseException) -> None:
        logger.error("Fullscreen request failed: %s", exc)

    def _report(self, operation: str, stream: Any, exc: BaseException) -> None:
        if operation == "play" and not self._was_rejected(stream):
            self._play_rejected.append(stream)
        failure = StreamOperationFailure(operation, stream, exc)
        logger.error("%s", failure)
        for listener in list(self._failure_listeners):
            try:
                listener(failure)
            except Exception:
                logger.exception("Failure listener raised for %s", operation)


def _ready_state(stream: StreamHandle) -> int:
    try:
        return int(stream.ready_state)
    except (AttributeError, TypeError, ValueError):
        return ReadyState.HAVE_NOTHING
