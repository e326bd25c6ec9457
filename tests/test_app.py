"""Tests for the Textual app, driven headless through run_test()."""

import asyncio

import pytest
from PIL import Image

import laser_prep.app as app_module
from laser_prep.app import LaserPrepApp
from laser_prep.core.dither import Algorithm
from laser_prep.core.processor import LaserSettings
from laser_prep.tui.preview import BitmapPreview


@pytest.fixture
def sample_png(tmp_path):
    path = tmp_path / "sample.png"
    Image.new("RGB", (24, 16), (20, 20, 20)).save(str(path))
    return path


def _counting_process_image(monkeypatch):
    calls = []
    real = app_module.process_image

    def wrapper(*args, **kwargs):
        calls.append(1)
        return real(*args, **kwargs)

    monkeypatch.setattr(app_module, "process_image", wrapper)
    return calls


class TestLaserPrepApp:
    def test_preview_then_save_reuses_shown_result(self, sample_png, monkeypatch):
        out = sample_png.parent / "out.png"
        app = LaserPrepApp(
            input_path=str(sample_png),
            settings=LaserSettings(algorithm=Algorithm.THRESHOLD),
        )

        async def scenario():
            async with app.run_test() as pilot:
                await app.workers.wait_for_complete()
                await pilot.pause()

                shown = app.query_one(BitmapPreview).current_result
                assert shown is not None
                assert shown.settings.algorithm is Algorithm.THRESHOLD

                calls = _counting_process_image(monkeypatch)
                app._on_save_result(str(out))
                await app.workers.wait_for_complete()
                await pilot.pause()
                assert calls == []

        asyncio.run(scenario())

        assert out.exists()
        with Image.open(out) as img:
            assert img.size == (24, 16)

    def test_save_reprocesses_when_settings_changed(self, sample_png, monkeypatch):
        out = sample_png.parent / "out.png"
        app = LaserPrepApp(input_path=str(sample_png))

        async def scenario():
            async with app.run_test() as pilot:
                await app.workers.wait_for_complete()
                await pilot.pause()

                calls = _counting_process_image(monkeypatch)
                app._settings = LaserSettings(algorithm=Algorithm.HALFTONE)
                app._on_save_result(str(out))
                await app.workers.wait_for_complete()
                await pilot.pause()
                assert calls == [1]

        asyncio.run(scenario())
        assert out.exists()

    def test_new_image_clears_preview(self, sample_png):
        app = LaserPrepApp(input_path=str(sample_png))

        async def scenario():
            async with app.run_test() as pilot:
                await app.workers.wait_for_complete()
                await pilot.pause()
                assert app.query_one(BitmapPreview).current_result is not None

                await pilot.press("n")
                await pilot.pause()
                await pilot.pause()
                assert app.query_one(BitmapPreview).current_result is None
                assert app._settings == LaserSettings()

        asyncio.run(scenario())
