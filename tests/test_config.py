import logging
from pathlib import Path

from camfx.app import parse_args, settings_from_args
from camfx.config import ViewerSettings
from camfx.logger import JsonFormatter


def test_defaults():
    settings = ViewerSettings()
    assert settings.accent_hex == "#007AFF"
    assert settings.blink_threshold == 0.25
    assert settings.blink_cooldown_s == 0.4
    assert settings.camera_index() == 0
    assert settings.camera_index("back") == 1


def test_from_env(monkeypatch):
    monkeypatch.setenv("CAMFX_EFFECT", "Thermal")
    monkeypatch.setenv("CAMFX_INTENSITY", "250")
    monkeypatch.setenv("CAMFX_BRIGHTNESS", "not-a-number")
    monkeypatch.setenv("CAMFX_BLINK_INVERT", "yes")
    monkeypatch.setenv("CAMFX_USE_CAMERA", "off")
    monkeypatch.setenv("CAMFX_FACING", "BACK")
    monkeypatch.setenv("CAMFX_LOG_FILE", "logs/camfx.log")
    settings = ViewerSettings.from_env()
    assert settings.effect == "thermal"
    assert settings.intensity == 100
    assert settings.brightness == 100
    assert settings.blink_invert
    assert not settings.use_camera
    assert settings.facing == "back"
    assert settings.log_file == Path("logs/camfx.log")


def test_cli_overrides_settings():
    defaults = ViewerSettings()
    args = parse_args(["--effect", "mirror", "--intensity", "80", "--no-camera", "--tilt-color"], defaults)
    settings = settings_from_args(args, defaults)
    assert settings.effect == "mirror"
    assert settings.intensity == 80
    assert not settings.use_camera
    assert settings.tilt_color
    assert not settings.blink_invert


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("camfx.app", logging.ERROR, __file__, 1, "camera failed", None, None)
    record.category = "no_device"
    line = JsonFormatter().format(record)
    assert '"category": "no_device"' in line
    assert '"level": "ERROR"' in line
