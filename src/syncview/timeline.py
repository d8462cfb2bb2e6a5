from __future__ import annotations

import math
from dataclasses import dataclass

from .errors import DegenerateTimeline
from .timeparse import SECONDS_PER_HOUR


@dataclass(frozen=True)
class ContainerRect:
    left: float
    width: float


@dataclass(frozen=True)
class HourMarker:
    hour: int
    percent: float


@dataclass(frozen=True)
class TrimOverlay:
    start_percent: float | None = None
    end_percent: float | None = None
    selection_left: float | None = None
    selection_width: float | None = None

    @property
    def has_selection(self) -> bool:
        return self.selection_left is not None


def is_degenerate(duration: float) -> bool:
    return not math.isfinite(duration) or duration <= 0


def clamp_time(value: float, duration: float) -> float:
    # NaN fails every comparison, so normalise it before min/max.
    if math.isnan(value):
        return 0.0
    upper = duration if not math.isnan(duration) and duration > 0 else 0.0
    return max(0.0, min(value, upper))


def fractional_position(client_x: float, rect: ContainerRect) -> float:
    if not math.isfinite(rect.width) or rect.width <= 0:
        return 0.0
    fraction = (client_x - rect.left) / rect.width
    if math.isnan(fraction):
        return 0.0
    return max(0.0, min(fraction, 1.0))


def time_from_fraction(fraction: float, duration: float) -> float:
    if is_degenerate(duration):
        return 0.0
    return fraction * duration


def time_at_position(client_x: float, rect: ContainerRect, duration: float) -> float:
    if is_degenerate(duration):
        raise DegenerateTimeline(f"Timeline duration is not usable: {duration!r}")
    if not math.isfinite(rect.width) or rect.width <= 0:
        raise DegenerateTimeline(f"Timeline width is not usable: {rect.width!r}")
    return time_from_fraction(fractional_position(client_x, rect), duration)


def percent_of(value: float, duration: float) -> float:
    if is_degenerate(duration) or not math.isfinite(value):
        return 0.0
    return value / duration * 100.0


def progress_percent(current_time: float, duration: float) -> float:
    return max(0.0, min(percent_of(current_time, duration), 100.0))


def trim_overlay(trim_start: float | None, trim_end: float | None, duration: float) -> TrimOverlay:
    if is_degenerate(duration):
        return TrimOverlay()
    start = percent_of(trim_start, duration) if trim_start is not None else None
    end = percent_of(trim_end, duration) if trim_end is not None else None
    if start is None or end is None:
        return TrimOverlay(start_percent=start, end_percent=end)
    return TrimOverlay(
        start_percent=start,
        end_percent=end,
        selection_left=start,
        selection_width=end - start,
    )


def hour_markers(duration: float) -> list[HourMarker]:
    if is_degenerate(duration):
        return []
    total_hours = math.ceil(duration / SECONDS_PER_HOUR)
    return [
        HourMarker(hour=hour, percent=hour * SECONDS_PER_HOUR / duration * 100.0)
        for hour in range(total_hours + 1)
    ]
