"""Textual prompt asking where to save the .gmd file."""

from __future__ import annotations

from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static


def normalize_output_path(raw: str) -> Path | None:
    """Turn the typed path into a .gmd path, or None if left empty."""
    raw = raw.strip()
    if not raw:
        return None
    path = Path(raw).expanduser()
    if path.suffix.lower() != ".gmd":
        path = path.with_name(path.name + ".gmd")
    return path


def output_path_problem(raw: str) -> str | None:
    """Why the typed path can't be saved to, or None if it can."""
    path = normalize_output_path(raw)
    if path is None:
        return "Type a file name, or press Escape to quit without saving."
    if path.is_dir():
        return f"{path} is a directory."
    if not path.parent.is_dir():
        return f"Folder {path.parent} does not exist."
    return None


class OutputPathScreen(ModalScreen[Path | None]):
    """Ask for the level file path; stays open until the path is usable."""

    BINDINGS = [Binding("escape", "dismiss(None)", "Don't save", priority=True)]

    DEFAULT_CSS = """
    OutputPathScreen {
        align: center middle;
    }

    #output-box {
        width: 64;
        height: auto;
        border: round $primary;
        padding: 0 1;
    }

    #output-status {
        color: $error;
    }

    #output-buttons {
        height: auto;
        align-horizontal: right;
    }
    """

    def __init__(self, default_path: str = "", summary: str = "") -> None:
        super().__init__()
        self._default_path = default_path
        self._summary = summary

    def compose(self) -> ComposeResult:
        with Vertical(id="output-box"):
            yield Label(self._summary or "Save the level as:")
            yield Input(value=self._default_path, placeholder="level.gmd", id="output-path")
            yield Static("", id="output-status")
            with Horizontal(id="output-buttons"):
                yield Button("Save", variant="primary", id="save")
                yield Button("Don't save", id="skip")

    def _submit(self) -> None:
        raw = self.query_one("#output-path", Input).value
        problem = output_path_problem(raw)
        if problem:
            self.query_one("#output-status", Static).update(problem)
            return
        self.dismiss(normalize_output_path(raw))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save":
            self._submit()
        else:
            self.dismiss(None)


class SavePathApp(App[Path | None]):
    """Runs the output path prompt on its own and exits with the answer."""

    TITLE = "gd-image-to-text"

    def __init__(self, default_path: str = "", summary: str = "") -> None:
        super().__init__()
        self._default_path = default_path
        self._summary = summary

    def on_mount(self) -> None:
        self.push_screen(OutputPathScreen(self._default_path, self._summary), self.exit)


def ask_output_path(default_path: str = "", summary: str = "") -> Path | None:
    """Prompt for the output path. Returns None if the user chose not to save."""
    return SavePathApp(default_path=default_path, summary=summary).run()
