from __future__ import annotations

from textual import events
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, ListItem, ListView, Static

from ..export import ExportTarget
from ..timeparse import convert_time_token_to_seconds, format_clock, parse_time_delta


class HelpScreen(ModalScreen[None]):
    BINDINGS = [("escape", "close", "Close"), ("?", "close", "Close")]

    CSS = """
    HelpScreen {
        align: center middle;
        background: $surface 80%;
    }

    #help_dialog {
        width: 70%;
        max-width: 80;
        height: 80%;
        max-height: 90%;
        padding: 1 2;
        border: heavy $accent;
        background: $panel;
    }

    #help_scroll {
        height: 1fr;
    }

    #help_text {
        width: 100%;
    }
    """

    def __init__(self, help_text: str) -> None:
        super().__init__()
        self._help_text = help_text

    def compose(self) -> ComposeResult:
        with Vertical(id="help_dialog"):
            with VerticalScroll(id="help_scroll"):
                yield Static(self._help_text, id="help_text", markup=False)
            yield Button("Close", id="help_close")

    def on_mount(self) -> None:
        self.query_one("#help_scroll", VerticalScroll).focus()

    def action_close(self) -> None:
        self.dismiss(None)

    def on_key(self, event: events.Key) -> None:
        character = event.character or ""
        if event.key == "escape" or character == "?":
            self.action_close()
            event.stop()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "help_close":
            self.dismiss(None)


class GoToTimeScreen(ModalScreen[float | None]):
    BINDINGS = [("escape", "cancel", "Cancel")]

    CSS = """
    GoToTimeScreen {
        align: center middle;
        background: $surface 80%;
    }

    #goto_dialog {
        width: 70%;
        max-width: 80;
        padding: 1 2;
        border: heavy $accent;
        background: $panel;
    }

    #goto_error {
        color: $error;
        height: 1;
    }
    """

    def __init__(self, current_time: float, duration: float) -> None:
        super().__init__()
        self._current_time = current_time
        self._current = format_clock(current_time)
        self._duration = format_clock(duration)

    def compose(self) -> ComposeResult:
        with Vertical(id="goto_dialog"):
            yield Label(f"Go to time (now {self._current} of {self._duration})")
            yield Input(placeholder="hh:mm:ss, 1h2m3s, seconds or +/-offset", id="goto_input")
            yield Label("", id="goto_error")
            with Horizontal():
                yield Button("Go", id="goto_apply")
                yield Button("Cancel", id="goto_cancel")

    def action_cancel(self) -> None:
        self.dismiss(None)

    def on_mount(self) -> None:
        self.query_one("#goto_input", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "goto_cancel":
            self.dismiss(None)
        elif event.button.id == "goto_apply":
            self._submit()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "goto_input":
            self._submit()

    def _submit(self) -> None:
        value = self.query_one("#goto_input", Input).value.strip()
        error_label = self.query_one("#goto_error", Label)
        if not value:
            error_label.update("Please enter a time.")
            return
        try:
            if value[0] in "+-":
                seconds = max(0.0, self._current_time + parse_time_delta(value))
            else:
                seconds = convert_time_token_to_seconds(value)
        except ValueError as exc:
            error_label.update(str(exc))
            return
        self.dismiss(seconds)


class ExportTargetItem(ListItem):
    def __init__(self, target: ExportTarget) -> None:
        self.target = target
        super().__init__(Label(target.label))


class ExportTargetScreen(ModalScreen[int | None]):
    BINDINGS = [("escape", "cancel", "Cancel")]

    CSS = """
    ExportTargetScreen {
        align: center middle;
        background: $surface 80%;
    }

    #export_dialog {
        width: 70%;
        max-width: 100;
        height: 60%;
        padding: 1 2;
        border: heavy $accent;
        background: $panel;
    }

    #export_list {
        height: 1fr;
    }

    #export_source {
        height: 2;
        color: $text-muted;
    }
    """

    def __init__(self, targets: list[ExportTarget], selected: int | None = None) -> None:
        super().__init__()
        self._targets = targets
        self._selected = selected

    def compose(self) -> ComposeResult:
        with Vertical(id="export_dialog"):
            yield Label("Choose a camera to download")
            yield ListView(id="export_list")
            yield Static("", id="export_source", markup=False)
            with Horizontal():
                yield Button("Download", id="export_apply")
                yield Button("Cancel", id="export_cancel")

    def on_mount(self) -> None:
        list_view = self.query_one("#export_list", ListView)
        list_view.clear()
        for target in self._targets:
            list_view.append(ExportTargetItem(target))
        if self._targets:
            index = self._selected if self._selected is not None else 0
            list_view.index = max(0, min(index, len(self._targets) - 1))
            self._update_source(self._targets[list_view.index])
        list_view.focus()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "export_cancel":
            self.dismiss(None)
        elif event.button.id == "export_apply":
            target = self._highlighted_target()
            self.dismiss(target.index if target is not None else None)

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        if isinstance(event.item, ExportTargetItem):
            self._update_source(event.item.target)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, ExportTargetItem):
            self.dismiss(event.item.target.index)

    def _highlighted_target(self) -> ExportTarget | None:
        list_view = self.query_one("#export_list", ListView)
        if list_view.index is None or not self._targets:
            return None
        index = max(0, min(list_view.index, len(self._targets) - 1))
        return self._targets[index]

    def _update_source(self, target: ExportTarget) -> None:
        self.query_one("#export_source", Static).update(target.source or "--")
