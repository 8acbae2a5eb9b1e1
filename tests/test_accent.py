import pytest

from camfx.accent import (
    DARK_LABEL,
    DEFAULT_ACCENT,
    LIGHT_LABEL,
    AccentColor,
    hex_to_rgb,
    hue_to_rgb,
    luminance,
)


def test_hex_round_trip():
    accent = AccentColor()
    accent.set_hex("#007AFF")
    assert accent.rgb == (0, 122, 255)
    assert accent.hex == "#007AFF"


def test_hex_without_hash_and_lowercase():
    assert hex_to_rgb("ff8000") == (255, 128, 0)


@pytest.mark.parametrize("bad", ["", "#12345", "#GGGGGG", "blue", "#1234567"])
def test_malformed_hex_falls_back_to_default(bad):
    accent = AccentColor(10, 20, 30)
    accent.set_hex(bad)
    assert accent.rgb == DEFAULT_ACCENT


@pytest.mark.parametrize("hue, rgb", [
    (0, (255, 0, 0)),
    (120, (0, 255, 0)),
    (240, (0, 0, 255)),
    (180, (0, 255, 255)),
    (360, (255, 0, 0)),
])
def test_hue_to_rgb(hue, rgb):
    assert hue_to_rgb(hue) == rgb


def test_invert_is_channel_wise():
    accent = AccentColor(0, 122, 255)
    accent.invert()
    assert accent.rgb == (255, 133, 0)
    accent.invert()
    assert accent.rgb == (0, 122, 255)


def test_label_contrasts_with_accent():
    accent = AccentColor()
    accent.set_hex("#FFFFFF")
    assert accent.label == DARK_LABEL
    accent.set_hex("#000000")
    assert accent.label == LIGHT_LABEL
    accent.set_hue(60)  # yellow is bright
    assert accent.label == DARK_LABEL


def test_default_accent_gets_light_label():
    assert AccentColor().label == LIGHT_LABEL


def test_luminance_weights():
    assert luminance(255, 255, 255) == pytest.approx(1.0)
    assert luminance(255, 0, 0) == pytest.approx(0.299)
