"""Main Textual application for the laser_prep TUI."""

from __future__ import annotations

from pathlib import Path

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    Static,
)
from textual.worker import get_current_worker

from laser_prep.core.errors import LaserPrepError, ProcessingCancelled
from laser_prep.core.processor import LaserSettings, ProcessedImage, process_image
from laser_prep.core.reader import SourceImage, open_image
from laser_prep.core.writer import default_output_path, save_output, to_braille_lines
from laser_prep.tui.controls import ControlPanel
from laser_prep.tui.preview import BitmapPreview
from laser_prep.utils.cache import ResultCache
from laser_prep.utils.terminal import fit_to_terminal


class SaveScreen(ModalScreen[str | None]):
    """Modal screen for saving output."""

    BINDINGS = [Binding("escape", "cancel", "Cancel", priority=True)]

    def action_cancel(self) -> None:
        self.dismiss(None)

    DEFAULT_CSS = """
    SaveScreen {
        align: center middle;
    }

    SaveScreen #save-dialog {
        width: 60;
        height: 12;
        background: $surface;
        border: thick $accent;
        padding: 1 2;
    }

    SaveScreen #save-title {
        text-style: bold;
        margin-bottom: 1;
    }

    SaveScreen Input {
        margin: 1 0;
    }

    SaveScreen .button-row {
        margin-top: 1;
        align: center middle;
        height: 3;
    }

    SaveScreen Button {
        margin: 0 1;
    }
    """

    def __init__(self, default_path: str = "", **kwargs) -> None:
        super().__init__(**kwargs)
        self._default_path = default_path

    def compose(self) -> ComposeResult:
        with Vertical(id="save-dialog"):
            yield Static("Save Output", id="save-title")
            yield Label("Output file path (.png, .bmp, .gif, .tif):")
            yield Input(
                value=self._default_path,
                placeholder="output.png",
                id="save-path",
            )
            with Horizontal(classes="button-row"):
                yield Button("Save", variant="primary", id="btn-save")
                yield Button("Cancel", variant="default", id="btn-cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-save":
            path_input = self.query_one("#save-path", Input)
            self.dismiss(path_input.value or None)
        elif event.button.id == "btn-cancel":
            self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value or None)


class OpenFileScreen(ModalScreen[str | None]):
    """Simple modal for entering a file path or URL."""

    BINDINGS = [Binding("escape", "cancel", "Cancel", priority=True)]

    def action_cancel(self) -> None:
        self.dismiss(None)

    DEFAULT_CSS = """
    OpenFileScreen {
        align: center middle;
    }

    OpenFileScreen #open-dialog {
        width: 60;
        height: 10;
        background: $surface;
        border: thick $accent;
        padding: 1 2;
    }

    OpenFileScreen #open-title {
        text-style: bold;
        margin-bottom: 1;
    }

    OpenFileScreen .button-row {
        margin-top: 1;
        align: center middle;
        height: 3;
    }

    OpenFileScreen Button {
        margin: 0 1;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="open-dialog"):
            yield Static("Open Image", id="open-title")
            yield Input(placeholder="Path or URL to PNG, JPG, WebP...", id="file-input")
            with Horizontal(classes="button-row"):
                yield Button("Open", variant="primary", id="btn-open")
                yield Button("Cancel", variant="default", id="btn-cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-open":
            inp = self.query_one("#file-input", Input)
            self.dismiss(inp.value if inp.value else None)
        elif event.button.id == "btn-cancel":
            self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value if event.value else None)


class LaserPrepApp(App):
    """Main TUI application."""

    TITLE = "laser_prep"
    CSS = """
    #main-area {
        height: 1fr;
        width: 1fr;
    }

    #preview-container {
        width: 1fr;
        height: 1fr;
    }

    #status-bar {
        height: 1;
        background: $panel;
        padding: 0 1;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", priority=True),
        Binding("s", "save", "Save", priority=True),
        Binding("o", "open_file", "Open", priority=True),
        Binding("n", "new_image", "New Image", priority=True),
        Binding("tab", "toggle_panel", "Toggle Panel"),
    ]

    def __init__(
        self,
        input_path: str | None = None,
        settings: LaserSettings | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._input_path = input_path
        self._source: SourceImage | None = None
        self._cache: ResultCache[ProcessedImage] = ResultCache(max_size=16)
        self._settings = (settings or LaserSettings()).normalized()
        self._panel_visible = True

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-area"):
            with Vertical(id="preview-container"):
                yield BitmapPreview()
            yield ControlPanel(self._settings, id="control-panel")
        yield Static("Ready", id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        if self._input_path:
            self._load_file(self._input_path)

    def _load_file(self, path: str) -> None:
        """Load an image file or URL."""
        try:
            self._source = open_image(path)
        except (ValueError, OSError) as e:
            self._update_status(f"Error: {e}")
            return

        source = self._source
        self.title = f"laser_prep - {source.path.name}"
        self._cache.clear()
        self._update_status(
            f"Loaded {source.path.name} ({source.width}x{source.height})"
        )
        self._render_preview()

    def _update_status(self, text: str) -> None:
        try:
            status = self.query_one("#status-bar", Static)
            status.update(text)
        except Exception:
            pass

    def _preview_size(self, result: ProcessedImage) -> tuple[int, int]:
        preview = self.query_one(BitmapPreview)
        pw = preview.size.width or 80
        ph = preview.size.height or 24
        return fit_to_terminal(
            result.width, result.height, max_width=pw - 2, max_height=ph - 2
        )

    @work(thread=True, exclusive=True, group="preview")
    def _render_preview(self) -> None:
        """Process the image in a background thread.

        A newer call cancels this worker; the core then stops at the next
        row and the stale result is dropped.
        """
        source = self._source
        if source is None:
            return

        worker = get_current_worker()
        settings = self._settings
        cache_key = settings.hash()

        result = self._cache.get(source.source_id, cache_key)
        if result is None:
            self.call_from_thread(
                self._update_status, f"Processing ({settings.algorithm.value})..."
            )
            try:
                result = process_image(
                    source.image,
                    settings,
                    should_cancel=lambda: worker.is_cancelled,
                )
            except ProcessingCancelled:
                return
            except (LaserPrepError, MemoryError) as e:
                if not worker.is_cancelled:
                    self.call_from_thread(self._update_status, f"Error: {e}")
                return
            self._cache.put(source.source_id, cache_key, result)

        if not worker.is_cancelled:
            self.call_from_thread(self._display_result, result)

    def _display_result(self, result: ProcessedImage) -> None:
        """Display a processed result (called on main thread)."""
        preview = self.query_one(BitmapPreview)
        lines = to_braille_lines(result, self._preview_size(result))
        preview.update_preview(result, lines)
        self._update_status(
            f"{result.width}x{result.height} {result.settings.algorithm.value} "
            f"in {result.elapsed_ms:.0f} ms"
        )

    # --- Actions ---

    def action_save(self) -> None:
        if self._source is None:
            self._update_status("No image loaded")
            return
        default_path = default_output_path(self._source.path, self._settings.algorithm)
        self.push_screen(SaveScreen(str(default_path)), self._on_save_result)

    def _on_save_result(self, path: str | None) -> None:
        if path is None:
            return
        shown = self.query_one(BitmapPreview).current_result
        if shown is not None and shown.settings.hash() != self._settings.hash():
            shown = None
        self._do_save(path, shown)

    @work(thread=True, exclusive=True, group="save")
    def _do_save(self, output_path: str, result: ProcessedImage | None = None) -> None:
        """Save a result in a background thread.

        ``result`` is the bitmap on screen; without it the current settings
        are processed again.
        """
        source = self._source
        if source is None:
            return

        worker = get_current_worker()
        settings = self._settings
        out = Path(output_path)

        self.call_from_thread(self._update_status, "Saving...")
        try:
            if result is None:
                result = process_image(
                    source.image,
                    settings,
                    should_cancel=lambda: worker.is_cancelled,
                )
            save_output(result, out)
            if not worker.is_cancelled:
                self.call_from_thread(self._update_status, f"Saved to {out}")
        except ProcessingCancelled:
            return
        except (LaserPrepError, ValueError, OSError, MemoryError) as e:
            if not worker.is_cancelled:
                self.call_from_thread(self._update_status, f"Save error: {e}")

    def action_open_file(self) -> None:
        self.push_screen(OpenFileScreen(), self._on_file_selected)

    def _on_file_selected(self, path: str | None) -> None:
        if path:
            self._load_file(path)

    def action_new_image(self) -> None:
        """Forget the current image and restore default settings."""
        self.workers.cancel_group(self, "preview")
        self._source = None
        self._cache.clear()
        self.title = "laser_prep"
        self.query_one(BitmapPreview).clear()
        self.query_one(ControlPanel).reset()
        self._update_status("Ready")

    def action_toggle_panel(self) -> None:
        panel = self.query_one("#control-panel", ControlPanel)
        self._panel_visible = not self._panel_visible
        panel.display = self._panel_visible

    # --- Message handlers ---

    def on_control_panel_settings_changed(
        self, event: ControlPanel.SettingsChanged
    ) -> None:
        self._settings = event.settings
        if self._source is not None:
            self._render_preview()


def run_app(
    input_path: str | None = None,
    settings: LaserSettings | None = None,
) -> None:
    """Launch the TUI application."""
    app = LaserPrepApp(input_path=input_path, settings=settings)
    app.run()
