from __future__ import annotations

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget

from ..session import TimelineSnapshot
from ..timeline import HourMarker

TRACK_CHAR = "─"
PROGRESS_CHAR = "━"
START_CHAR = "["
END_CHAR = "]"


def percent_to_column(percent: float, width: int) -> int:
    if width <= 0:
        return 0
    column = int(percent / 100.0 * width)
    return max(0, min(column, width - 1))


def render_track(snapshot: TimelineSnapshot, width: int) -> Text:
    if width <= 0:
        return Text()
    filled = round(snapshot.progress_percent / 100.0 * width)
    text = Text(PROGRESS_CHAR * filled, style="bold cyan")
    text.append(TRACK_CHAR * (width - filled), style="grey50")
    trim = snapshot.trim
    if trim.has_selection and trim.start_percent is not None and trim.end_percent is not None:
        left = percent_to_column(trim.start_percent, width)
        right = percent_to_column(trim.end_percent, width)
        text.stylize("on dark_orange3", left, right + 1)
    if trim.start_percent is not None:
        column = percent_to_column(trim.start_percent, width)
        text = _replace_char(text, column, START_CHAR, "bold yellow")
    if trim.end_percent is not None:
        column = percent_to_column(trim.end_percent, width)
        text = _replace_char(text, column, END_CHAR, "bold yellow")
    return text


def render_hours(markers: list[HourMarker], width: int) -> Text:
    cells = [" "] * max(0, width)
    for marker in visible_markers(markers):
        column = percent_to_column(marker.percent, width)
        label = f"|{marker.hour}h"
        for offset, char in enumerate(label):
            if column + offset < width:
                cells[column + offset] = char
    return Text("".join(cells), style="grey62")


def visible_markers(markers: list[HourMarker]) -> list[HourMarker]:
    return [marker for marker in markers if marker.percent <= 100.0]


def hour_at_column(markers: list[HourMarker], column: int, width: int) -> int | None:
    best: HourMarker | None = None
    for marker in visible_markers(markers):
        start = percent_to_column(marker.percent, width)
        label_width = len(f"|{marker.hour}h")
        if start <= column < start + label_width:
            best = marker
    return best.hour if best is not None else None


def _replace_char(text: Text, column: int, char: str, style: str) -> Text:
    if column >= len(text):
        return text
    result = text[:column]
    result.append(char, style=style)
    result.append_text(text[column + 1 :])
    return result


class TimelineBar(Widget):
    DEFAULT_CSS = """
    TimelineBar {
        height: 2;
        width: 1fr;
    }
    """

    class Clicked(Message):
        def __init__(self, x: float, width: float) -> None:
            self.x = x
            self.width = width
            super().__init__()

    class HourClicked(Message):
        def __init__(self, hour: int) -> None:
            self.hour = hour
            super().__init__()

    def __init__(self, *, id: str | None = None) -> None:
        super().__init__(id=id)
        self._snapshot: TimelineSnapshot | None = None

    def update_snapshot(self, snapshot: TimelineSnapshot) -> None:
        self._snapshot = snapshot
        self.refresh()

    def render(self) -> Text:
        width = self.size.width
        if self._snapshot is None:
            return Text(TRACK_CHAR * width, style="grey50")
        text = render_track(self._snapshot, width)
        text.append("\n")
        text.append_text(render_hours(self._snapshot.hour_markers, width))
        return text

    def on_click(self, event: events.Click) -> None:
        width = self.size.width
        if event.y >= 1 and self._snapshot is not None:
            hour = hour_at_column(self._snapshot.hour_markers, event.x, width)
            if hour is not None:
                self.post_message(self.HourClicked(hour))
                return
        self.post_message(self.Clicked(event.x, width))
