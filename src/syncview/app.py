from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path

from textual import events
from textual.app import App, ComposeResult
from textual.containers import Grid, Vertical
from textual.theme import Theme
from textual.widgets import Label, Static

from .config import AppConfig, load_config
from .errors import ExportError, NoSelection
from .export import ExportAction, ExportRequest, HttpExportAction
from .logging_setup import configure_logging
from .paths import config_path, log_path
from .session import MultiViewSession
from .simulated import SimulatedStream
from .streams import ReadyState
from .timeline import ContainerRect
from .timeparse import convert_time_token_to_seconds, format_clock, format_trim_token
from .trim import TrimPhase
from .ui.screens import ExportTargetScreen, GoToTimeScreen, HelpScreen
from .ui.timeline_bar import TimelineBar

logger = logging.getLogger(__name__)

TICK_SECONDS = 0.25
RESYNC_EVERY_TICKS = 8
DEFAULT_DURATION = "3h"
TIP_TEXT = "Tip: press ? for help"
HELP_TEXT = """Keyboard shortcuts
space  play / pause all cameras
s  stop (pause and return to start)
left/right  skip back/forward
L  skip forward one hour
0-9  jump to hour marker
g  go to time (hh:mm:ss)
t  toggle trim mode
x  reset trim marks
d  download selected camera (choose when several)
[ / ]  select previous/next camera
m  mute / unmute
+ / -  volume up/down
r  resync drifting cameras
f  fullscreen
?  help
q  quit

Timeline
click  seek (or set trim marks in trim mode)
click hour label  jump to that hour

Trim mode
first click sets the start, second click sets the end
(clicks before the start swap the marks), a third click starts over
"""

SYNCVIEW_THEME = Theme(
    name="syncview-night",
    primary="#7aa2f7",
    secondary="#7dcfff",
    accent="#bb9af7",
    warning="#e0af68",
    error="#f7768e",
    success="#9ece6a",
    foreground="#c0caf5",
    background="#1a1b26",
    surface="#1f2335",
    panel="#24283b",
    boost="#2f334d",
    variables={
        "block-cursor-background": "#7aa2f7",
        "block-cursor-foreground": "#1a1b26",
        "footer-key-foreground": "#7aa2f7",
        "button-color-foreground": "#1a1b26",
        "button-focus-text-style": "bold",
    },
)

_TRIM_LABELS = {
    TrimPhase.IDLE: "off",
    TrimPhase.AWAITING_START: "click to set start",
    TrimPhase.AWAITING_END: "click to set end",
    TrimPhase.COMPLETE: "range set",
}


class StreamTile(Static):
    def __init__(self, stream: SimulatedStream, index: int) -> None:
        super().__init__(id=f"tile_{index}", classes="tile", markup=False)
        self.stream = stream
        self.index = index

    def refresh_tile(self, selected: bool) -> None:
        stream = self.stream
        if stream.ready_state < ReadyState.HAVE_CURRENT_DATA:
            state = "loading"
        elif stream.paused:
            state = "paused"
        else:
            state = "playing"
        title = stream.label or f"Camera {self.index + 1}"
        marker = "* " if selected else ""
        self.update(
            f"{marker}{title}\n{stream.src}\n\n{state}  {format_clock(stream.current_time)}"
        )
        self.set_class(selected, "selected")


class SyncViewApp(App):
    BINDINGS = [
        ("q", "quit", "Quit"),
        ("space", "toggle_play", "Play/Pause"),
        ("s", "stop", "Stop"),
        ("left", "skip_back", "Back"),
        ("right", "skip_forward", "Forward"),
        ("L", "skip_long", "+1h"),
        ("g", "go_to", "Go to"),
        ("t", "toggle_trim", "Trim"),
        ("x", "reset_trim", "Reset Trim"),
        ("d", "download", "Download"),
        ("[", "select_previous", "Prev Camera"),
        ("]", "select_next", "Next Camera"),
        ("m", "toggle_mute", "Mute"),
        ("plus", "volume_up", "Vol+"),
        ("minus", "volume_down", "Vol-"),
        ("r", "resync", "Resync"),
        ("f", "toggle_fullscreen", "Fullscreen"),
        ("?", "help", "Help"),
    ]

    CSS = """
    #root {
        height: 1fr;
    }

    #tiles {
        grid-size: 2;
        grid-gutter: 1 2;
        height: 1fr;
        padding: 1 1;
    }

    .tile {
        border: round $boost;
        background: $surface;
        padding: 0 1;
        height: 100%;
    }

    .tile.selected {
        border: round $accent;
    }

    #controls {
        height: auto;
        padding: 0 1;
        border-top: solid $boost;
    }

    #controls.hidden-controls {
        display: none;
    }

    #clock_status, #trim_status {
        height: 1;
    }

    #clock_status {
        color: $primary;
        text-style: bold;
    }

    #trim_status {
        color: $text-muted;
    }

    #message {
        height: 1;
        color: $warning;
        padding: 0 1;
    }

    #tip_bar {
        height: 1;
        color: $text-muted;
        padding: 0 1;
    }

    .fullscreen #message, .fullscreen #tip_bar {
        display: none;
    }
    """

    def __init__(
        self,
        streams: list[SimulatedStream],
        config: AppConfig | None = None,
        session: MultiViewSession | None = None,
    ) -> None:
        super().__init__()
        self.register_theme(SYNCVIEW_THEME)
        self.theme = SYNCVIEW_THEME.name
        self.config = config or AppConfig()
        self.streams = list(streams)
        self.session = session or MultiViewSession(
            self._build_export_action(),
            config=self.config,
            fullscreen=self,
        )
        self._fullscreen_active = False
        self._tick_count = 0
        self._tiles: list[StreamTile] = []
        self._timeline: TimelineBar | None = None
        self._clock_status: Label | None = None
        self._trim_status: Label | None = None
        self._message: Label | None = None

    def compose(self) -> ComposeResult:
        with Vertical(id="root"):
            with Grid(id="tiles"):
                for index, stream in enumerate(self.streams):
                    yield StreamTile(stream, index)
            with Vertical(id="controls"):
                yield Label("", id="clock_status")
                yield TimelineBar(id="timeline")
                yield Label("", id="trim_status")
            yield Label("", id="message")
            yield Static(TIP_TEXT, id="tip_bar")

    def on_mount(self) -> None:
        self._tiles = list(self.query(StreamTile))
        self._timeline = self.query_one("#timeline", TimelineBar)
        self._clock_status = self.query_one("#clock_status", Label)
        self._trim_status = self.query_one("#trim_status", Label)
        self._message = self.query_one("#message", Label)
        self.session.add_listener(self._on_session_changed)
        self.session.transport.add_failure_listener(
            lambda failure: self._set_message(str(failure))
        )
        self.session.attach_auto_hide(self.set_timer, self._apply_controls_visibility)
        for stream in self.streams:
            self.session.register(stream)
        self.set_interval(TICK_SECONDS, self._tick)
        self._refresh_view()

    def on_unmount(self) -> None:
        self.session.close()

    async def on_event(self, event: events.Event) -> None:
        if isinstance(event, events.MouseMove):
            self.session.pointer_moved()
        await super().on_event(event)

    # FullscreenHost

    def request_fullscreen(self) -> None:
        self._fullscreen_active = True
        self.screen.add_class("fullscreen")

    def exit_fullscreen(self) -> None:
        self._fullscreen_active = False
        self.screen.remove_class("fullscreen")

    def is_fullscreen_active(self) -> bool:
        return self._fullscreen_active

    # Actions

    def action_help(self) -> None:
        self.push_screen(HelpScreen(HELP_TEXT))

    def action_toggle_play(self) -> None:
        self.session.toggle_play()

    def action_stop(self) -> None:
        self.session.stop()

    def action_skip_back(self) -> None:
        self.session.skip_back()

    def action_skip_forward(self) -> None:
        self.session.skip_forward()

    def action_skip_long(self) -> None:
        self.session.skip_long()

    def action_go_to(self) -> None:
        transport = self.session.transport
        self.push_screen(
            GoToTimeScreen(transport.current_time, transport.duration),
            self._handle_go_to,
        )

    def action_toggle_trim(self) -> None:
        phase = self.session.toggle_trim_mode()
        self._set_message(f"Trim mode: {_TRIM_LABELS[phase]}")

    def action_reset_trim(self) -> None:
        self.session.reset_trim()
        self._set_message("Trim marks cleared")

    def action_download(self) -> None:
        if not len(self.session.registry):
            self._set_message("No cameras to download")
            return
        if self.session.needs_export_choice():
            self.push_screen(
                ExportTargetScreen(
                    self.session.export_targets(),
                    self.session.registry.selected_index,
                ),
                self._handle_export_choice,
            )
            return
        self._run_export(None)

    def action_select_previous(self) -> None:
        self._step_selection(-1)

    def action_select_next(self) -> None:
        self._step_selection(1)

    def action_toggle_mute(self) -> None:
        self.session.toggle_mute()

    def action_volume_up(self) -> None:
        self.session.set_volume(self.session.transport.state.volume + 0.1)

    def action_volume_down(self) -> None:
        self.session.set_volume(self.session.transport.state.volume - 0.1)

    def action_resync(self) -> None:
        corrected = self.session.resync()
        self._set_message(f"Resynced {corrected} camera(s)")

    def action_toggle_fullscreen(self) -> None:
        self.session.toggle_fullscreen()

    def on_key(self, event: events.Key) -> None:
        if len(self.screen_stack) > 1:
            return
        character = event.character or ""
        if character.isdigit() and len(character) == 1:
            self.session.skip_to_hour(int(character))
            event.stop()

    def on_timeline_bar_clicked(self, event: TimelineBar.Clicked) -> None:
        self.session.click_timeline(event.x, ContainerRect(left=0.0, width=event.width))

    def on_timeline_bar_hour_clicked(self, event: TimelineBar.HourClicked) -> None:
        self.session.skip_to_hour(event.hour)

    # Helpers

    def _handle_go_to(self, result: float | None) -> None:
        if result is None:
            return
        self.session.seek(result)

    def _handle_export_choice(self, result: int | None) -> None:
        if result is None:
            return
        self._run_export(result)

    def _run_export(self, index: int | None) -> None:
        try:
            if index is None:
                request = self.session.request_export()
            else:
                request = self.session.export_stream(index)
        except (NoSelection, ExportError) as exc:
            self._set_message(str(exc))
            return
        self._set_message(f"Export requested: {request.filename}")

    def _build_export_action(self) -> ExportAction:
        endpoint = self.config.export_endpoint
        if not endpoint:
            return self._notify_export
        http_action = HttpExportAction(endpoint)

        def dispatch(request: ExportRequest) -> None:
            def worker() -> None:
                try:
                    http_action(request)
                except ExportError as exc:
                    logger.error("%s", exc)
                    self.call_from_thread(self._set_message, str(exc))
                    return
                self.call_from_thread(self._set_message, f"Export accepted: {request.filename}")

            threading.Thread(target=worker, daemon=True).start()

        return dispatch

    def _notify_export(self, request: ExportRequest) -> None:
        self.notify(f"Downloading file: {request.filename}", title="Download")

    def _step_selection(self, step: int) -> None:
        count = len(self.session.registry)
        if not count:
            return
        current = self.session.registry.selected_index or 0
        self.session.select((current + step) % count)

    def _tick(self) -> None:
        transport = self.session.transport
        if transport.is_playing:
            for stream in self.streams:
                stream.advance(TICK_SECONDS)
            self.session.follow_time_source()
            self._tick_count += 1
            if self._tick_count % RESYNC_EVERY_TICKS == 0:
                self.session.resync()
        self._refresh_tiles()

    def _on_session_changed(self, _session: MultiViewSession) -> None:
        self._refresh_view()

    def _refresh_view(self) -> None:
        if self._timeline is None:
            return
        snapshot = self.session.timeline_snapshot()
        self._timeline.update_snapshot(snapshot)
        transport = self.session.transport
        state = "playing" if transport.is_playing else "paused"
        volume = "muted" if transport.state.is_muted else f"vol {round(transport.state.volume * 100)}%"
        if self._clock_status is not None:
            self._clock_status.update(f"{snapshot.clock}  {state}  {volume}")
        if self._trim_status is not None:
            self._trim_status.update(self._trim_text())
        self._refresh_tiles()

    def _refresh_tiles(self) -> None:
        selected = self.session.registry.selected_index
        for tile in self._tiles:
            tile.refresh_tile(tile.index == selected)

    def _trim_text(self) -> str:
        trim = self.session.trim
        parts = [f"Trim: {_TRIM_LABELS[trim.phase]}"]
        if trim.trim_start is not None:
            parts.append(f"in {format_trim_token(trim.trim_start)}")
        if trim.trim_end is not None:
            parts.append(f"out {format_trim_token(trim.trim_end)}")
        return "  ".join(parts)

    def _apply_controls_visibility(self, visible: bool) -> None:
        controls = self.query_one("#controls", Vertical)
        controls.set_class(not visible, "hidden-controls")

    def _set_message(self, message: str) -> None:
        if self._message is None:
            return
        self._message.update(_short_message(message))


def _short_message(message: str) -> str:
    line = message.splitlines()[0] if message else ""
    return (line[:117] + "...") if len(line) > 120 else line


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="syncview",
        description="Play several camera recordings in lockstep with one shared timeline.",
        epilog=f"Config: {config_path()}",
    )
    parser.add_argument("sources", nargs="*", metavar="SRC", help="Recording path or URL")
    parser.add_argument(
        "--duration",
        default=DEFAULT_DURATION,
        help="Recording length, e.g. 3h, 1:30:00 or 5400 (default: 3h)",
    )
    parser.add_argument("--config", help="Path to config.json")
    parser.add_argument("--log-file", help=f"Log file (default: {log_path()})")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument(
        "--fail-src",
        action="append",
        default=[],
        metavar="SRC",
        help="Simulate a camera that rejects play and seek requests",
    )
    parser.add_argument(
        "--not-ready",
        action="append",
        default=[],
        metavar="SRC",
        help="Simulate a camera that never buffers enough to play",
    )
    parser.add_argument("-help", action="help", help=argparse.SUPPRESS)
    return parser


def _cli_help_text() -> str:
    return _build_parser().format_help()


def build_streams(
    sources: list[str],
    duration: float,
    *,
    failing: set[str] | None = None,
    not_ready: set[str] | None = None,
) -> list[SimulatedStream]:
    failing = failing or set()
    not_ready = not_ready or set()
    streams: list[SimulatedStream] = []
    for index, source in enumerate(sources):
        broken = source in failing
        streams.append(
            SimulatedStream(
                source,
                duration=duration,
                label=f"Camera {index + 1}",
                ready_state=(
                    ReadyState.HAVE_METADATA if source in not_ready else ReadyState.HAVE_ENOUGH_DATA
                ),
                fail_play=broken,
                fail_seek=broken,
            )
        )
    return streams


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.sources:
        parser.error("At least one SRC is required")
    try:
        duration = convert_time_token_to_seconds(args.duration)
    except ValueError as exc:
        parser.error(str(exc))
    config_file = Path(args.config).expanduser() if args.config else None
    config, config_error = load_config(config_file)
    try:
        log_file = configure_logging(
            args.log_level or config.log_level,
            Path(args.log_file).expanduser() if args.log_file else None,
        )
    except ValueError as exc:
        parser.error(str(exc))
    if config_error:
        logger.warning("%s", config_error)
        print(config_error, file=sys.stderr)
    logger.info("Starting with %d source(s), log at %s", len(args.sources), log_file)
    streams = build_streams(
        args.sources,
        duration,
        failing=set(args.fail_src),
        not_ready=set(args.not_ready),
    )
    app = SyncViewApp(streams, config=config)
    app.run()
