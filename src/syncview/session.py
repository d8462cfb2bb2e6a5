from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable

from .config import AppConfig
from .errors import DegenerateTimeline, StreamOperationFailure
from .export import ExportAction, ExportRequest, ExportRequestBuilder, ExportTarget
from .idle import ControlsAutoHide, Scheduler
from .streams import StreamHandle, StreamRegistry
from .timeline import (
    ContainerRect,
    HourMarker,
    TrimOverlay,
    hour_markers,
    progress_percent,
    time_at_position,
    trim_overlay,
)
from .timeparse import convert_time_token_to_seconds, format_clock
from .transport import FullscreenHost, TransportController
from .trim import TrimPhase, TrimSelector

logger = logging.getLogger(__name__)

ChangeListener = Callable[["MultiViewSession"], None]

MAX_RECORDED_FAILURES = 50


@dataclass(frozen=True)
class TimelineSnapshot:
    current_time: float
    duration: float
    progress_percent: float
    clock: str
    trim: TrimOverlay
    hour_markers: list[HourMarker] = field(default_factory=list)


class MultiViewSession:
    """Everything one multi-view screen shares: streams, transport, trim, export.

    Create one per active session and hand it to whatever renders the tiles
    and the controls.
    """

    def __init__(
        self,
        export_action: ExportAction,
        *,
        config: AppConfig | None = None,
        fullscreen: FullscreenHost | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.registry = StreamRegistry()
        self.transport = TransportController(
            self.registry,
            fullscreen=fullscreen,
            readiness_threshold=self.config.readiness_threshold,
            volume=self.config.default_volume,
        )
        self.trim = TrimSelector()
        self.exporter = ExportRequestBuilder(self.registry, self.trim, export_action)
        self.auto_hide: ControlsAutoHide | None = None
        self.failures: list[StreamOperationFailure] = []
        self._listeners: list[ChangeListener] = []
        self.transport.add_failure_listener(self._record_failure)

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def attach_auto_hide(
        self,
        scheduler: Scheduler,
        on_change: Callable[[bool], None] | None = None,
    ) -> ControlsAutoHide:
        if self.auto_hide is not None:
            self.auto_hide.close()
        self.auto_hide = ControlsAutoHide(
            scheduler,
            delay=self.config.controls_hide_delay,
            on_change=on_change,
        )
        self.auto_hide.set_playing(self.transport.is_playing)
        return self.auto_hide

    def close(self) -> None:
        if self.auto_hide is not None:
            self.auto_hide.close()
            self.auto_hide = None
        self._listeners.clear()

    # Streams

    def register(self, handle: StreamHandle) -> bool:
        added = self.registry.register(handle)
        if added:
            self.report_duration(getattr(handle, "duration", 0.0))
            self._changed()
        return added

    def unregister(self, handle: StreamHandle) -> bool:
        removed = self.registry.unregister(handle)
        if removed:
            self._changed()
        return removed

    def select(self, index: int | None) -> None:
        self.registry.select(index)
        self._changed()

    def report_time(self, handle: StreamHandle, value: float) -> None:
        if handle is self.transport.time_source():
            self.transport.set_current_time(value)
            self._changed()

    def follow_time_source(self) -> None:
        source = self.transport.time_source()
        if source is not None:
            self.report_time(source, source.current_time)

    def report_duration(self, value: float) -> None:
        if self.transport.duration == 0 and math.isfinite(value) and value > 0:
            self.transport.set_duration(value)
            self._changed()

    # Transport

    def play(self) -> None:
        self.transport.play()
        self._playing_changed()

    def pause(self) -> None:
        self.transport.pause()
        self._playing_changed()

    def toggle_play(self) -> None:
        self.transport.toggle_play()
        self._playing_changed()

    def stop(self) -> None:
        self.transport.stop()
        self._playing_changed()

    def seek(self, target: float) -> float:
        result = self.transport.seek(target)
        self._changed()
        return result

    def skip_back(self) -> float:
        return self.skip_time(-self.config.skip_seconds)

    def skip_forward(self) -> float:
        return self.skip_time(self.config.skip_seconds)

    def skip_long(self) -> float:
        return self.skip_time(self.config.long_skip_seconds)

    def skip_time(self, delta: float) -> float:
        result = self.transport.skip_time(delta)
        self._changed()
        return result

    def skip_to_hour(self, hour: int) -> float:
        result = self.transport.skip_to_hour(hour)
        self._changed()
        return result

    def go_to(self, token: str) -> float:
        return self.seek(convert_time_token_to_seconds(token))

    def toggle_fullscreen(self) -> None:
        self.transport.toggle_fullscreen()
        self._changed()

    def set_volume(self, volume: float) -> None:
        self.transport.set_volume(volume)
        self._changed()

    def toggle_mute(self) -> None:
        self.transport.toggle_mute()
        self._changed()

    def resync(self) -> int:
        return self.transport.resync(self.config.resync_tolerance)

    # Timeline and trim

    def toggle_trim_mode(self) -> TrimPhase:
        phase = self.trim.toggle_trim_mode(self.transport.current_time)
        self._changed()
        return phase

    def reset_trim(self) -> None:
        self.trim.reset_trim()
        self._changed()

    def click_time(self, time: float) -> None:
        if self.trim.is_active:
            self.trim.click(time)
            self._changed()
        else:
            self.seek(time)

    def click_timeline(self, client_x: float, rect: ContainerRect) -> float | None:
        try:
            time = time_at_position(client_x, rect, self.transport.duration)
        except DegenerateTimeline as exc:
            logger.debug("Ignoring timeline click: %s", exc)
            return None
        self.click_time(time)
        return time

    def timeline_snapshot(self) -> TimelineSnapshot:
        duration = self.transport.duration
        current = self.transport.current_time
        return TimelineSnapshot(
            current_time=current,
            duration=duration,
            progress_percent=progress_percent(current, duration),
            clock=f"{format_clock(current)} / {format_clock(duration)}",
            trim=trim_overlay(self.trim.trim_start, self.trim.trim_end, duration),
            hour_markers=hour_markers(duration),
        )

    # Export

    def export_targets(self) -> list[ExportTarget]:
        return self.exporter.targets()

    def needs_export_choice(self) -> bool:
        return self.exporter.needs_selection()

    def request_export(self) -> ExportRequest:
        try:
            return self.exporter.request_export()
        finally:
            self._changed()

    def export_stream(self, index: int) -> ExportRequest:
        try:
            return self.exporter.export_stream(index)
        finally:
            self._changed()

    # Notifications

    def pointer_moved(self) -> None:
        if self.auto_hide is not None:
            self.auto_hide.pointer_moved()

    def _playing_changed(self) -> None:
        if self.auto_hide is not None:
            self.auto_hide.set_playing(self.transport.is_playing)
        self._changed()

    def _record_failure(self, failure: StreamOperationFailure) -> None:
        self.failures.append(failure)
        del self.failures[:-MAX_RECORDED_FAILURES]
        self._changed()

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)
