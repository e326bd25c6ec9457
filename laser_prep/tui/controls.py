"""Settings control panel for the TUI."""

from __future__ import annotations

from dataclasses import replace

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widget import Widget
from textual.widgets import (
    Button,
    Checkbox,
    Input,
    Label,
    Select,
    Static,
)

from laser_prep.core.dither import Algorithm
from laser_prep.core.processor import LaserSettings

# field -> (label, minimum, maximum, step)
STEPPERS: dict[str, tuple[str, float, float, float]] = {
    "brightness": ("Brightness", -100, 100, 10),
    "contrast": ("Contrast", -100, 100, 10),
    "threshold": ("Threshold", 0, 255, 8),
    "scale": ("Scale", 0.1, 1.0, 0.1),
    "grid_size": ("Grid size", 2, 20, 1),
}


def _format_value(field: str, value: float) -> str:
    if field == "scale":
        return f"{value:.1f}"
    return str(int(value))


def _coerce(field: str, raw: str) -> float | int | None:
    """Parse a typed value and clamp it to the stepper's bounds."""
    _, lo, hi, _ = STEPPERS[field]
    try:
        value = float(raw) if field == "scale" else int(raw)
    except ValueError:
        return None
    value = max(lo, min(hi, value))
    if field == "scale":
        return round(value, 1)
    return int(value)


class ControlPanel(Widget):
    """Settings panel with controls for laser conversion parameters."""

    DEFAULT_CSS = """
    ControlPanel {
        width: 32;
        height: 1fr;
        background: $panel;
        padding: 1;
        border-left: solid $accent;
    }

    ControlPanel Label {
        margin-top: 1;
        color: $text-muted;
    }

    ControlPanel Select {
        width: 100%;
        margin-bottom: 0;
    }

    ControlPanel Checkbox {
        margin-top: 1;
    }

    ControlPanel #panel-title {
        text-style: bold;
        color: $text;
        margin-bottom: 1;
    }

    ControlPanel .num-row {
        height: 3;
        margin-top: 1;
    }

    ControlPanel .num-row Label {
        width: 11;
        margin-top: 0;
        padding-top: 1;
    }

    ControlPanel .num-row Button {
        min-width: 3;
        margin: 0;
    }

    ControlPanel .num-row Input {
        width: 1fr;
        margin: 0;
    }
    """

    class SettingsChanged(Message):
        """Posted when any setting changes."""
        def __init__(self, settings: LaserSettings) -> None:
            super().__init__()
            self.settings = settings

    def __init__(self, settings: LaserSettings | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self._settings = settings or LaserSettings()

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("Laser Prep", id="panel-title")

            yield Label("Algorithm")
            yield Select(
                [(a.value, a.value) for a in Algorithm],
                value=Algorithm(self._settings.algorithm).value,
                allow_blank=False,
                id="algorithm-select",
            )

            yield Checkbox("Invert", value=self._settings.inverted, id="invert-check")

            for field, (label, _, _, _) in STEPPERS.items():
                with Horizontal(classes="num-row"):
                    yield Label(label)
                    yield Button("-", id=f"{field}-dec")
                    yield Input(
                        value=_format_value(field, getattr(self._settings, field)),
                        id=f"{field}-input",
                        type="number" if field == "scale" else "integer",
                    )
                    yield Button("+", id=f"{field}-inc")

    @property
    def settings(self) -> LaserSettings:
        return self._settings

    def _update_settings(self, **overrides) -> None:
        """Create new settings with overrides and emit change."""
        self._settings = replace(self._settings, **overrides)
        self.post_message(self.SettingsChanged(self._settings))

    def _show_value(self, field: str, value: float) -> None:
        try:
            self.query_one(f"#{field}-input", Input).value = _format_value(field, value)
        except Exception:
            pass

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "algorithm-select" and event.value is not None:
            algorithm = Algorithm(event.value)
            if algorithm != self._settings.algorithm:
                self._update_settings(algorithm=algorithm)

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        if event.checkbox.id == "invert-check" and event.value != self._settings.inverted:
            self._update_settings(inverted=event.value)

    def _step(self, field: str, direction: int) -> None:
        _, _, _, step = STEPPERS[field]
        current = getattr(self._settings, field)
        new_val = _coerce(field, str(current + direction * step))
        if new_val is None or new_val == current:
            return
        self._show_value(field, new_val)
        self._update_settings(**{field: new_val})

    def on_button_pressed(self, event: Button.Pressed) -> None:
        btn = event.button.id or ""
        field, _, action = btn.rpartition("-")
        if field in STEPPERS:
            self._step(field, -1 if action == "dec" else 1)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        field = (event.input.id or "").removesuffix("-input")
        if field not in STEPPERS:
            return
        value = _coerce(field, event.value)
        if value is None:
            return
        self._show_value(field, value)
        self._update_settings(**{field: value})

    def reset(self, settings: LaserSettings | None = None) -> None:
        """Restore controls to the given settings (defaults if omitted)."""
        self._settings = settings or LaserSettings()
        with self.prevent(Select.Changed, Checkbox.Changed):
            self.query_one("#algorithm-select", Select).value = Algorithm(
                self._settings.algorithm
            ).value
            self.query_one("#invert-check", Checkbox).value = self._settings.inverted
        for field in STEPPERS:
            self._show_value(field, getattr(self._settings, field))
        self.post_message(self.SettingsChanged(self._settings))
