"""Braille bitmap preview widget for the TUI."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.widget import Widget
from textual.widgets import Static

from laser_prep.core.processor import ProcessedImage

EMPTY_MESSAGE = "No image loaded. Press 'o' to open a file."


class BitmapPreview(Widget):
    """Widget that displays a processed laser bitmap as braille text.

    Burned (black) pixels are drawn as raised dots on a light background.
    """

    DEFAULT_CSS = """
    BitmapPreview {
        width: 1fr;
        height: 1fr;
        overflow: auto;
        background: $surface;
    }

    BitmapPreview #preview-content {
        width: auto;
        height: auto;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._current_result: ProcessedImage | None = None

    def compose(self) -> ComposeResult:
        yield Static(EMPTY_MESSAGE, id="preview-content")

    def update_preview(self, result: ProcessedImage, lines: list[str]) -> None:
        """Show braille lines rendered from ``result``."""
        self._current_result = result
        content = self.query_one("#preview-content", Static)
        content.update(Text("\n".join(lines), style="black on white"))

    def clear(self) -> None:
        """Clear the preview."""
        self._current_result = None
        content = self.query_one("#preview-content", Static)
        content.update(EMPTY_MESSAGE)

    @property
    def current_result(self) -> ProcessedImage | None:
        return self._current_result
