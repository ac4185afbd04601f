from __future__ import annotations

import pytest

from ad_overlay.assembly.zones import PLACEMENT_ZONES, resolve_font_size, resolve_zone


def test_nine_safe_zones():
    assert set(PLACEMENT_ZONES) == {
        "top-left-safe",
        "top-center-safe",
        "top-right-safe",
        "center-left-safe",
        "center-safe",
        "center-right-safe",
        "bottom-left-safe",
        "bottom-center-safe",
        "bottom-right-safe",
    }


@pytest.mark.parametrize(
    "key,band",
    [
        ("top-left-safe", (0.17, 0.30)),
        ("center-right-safe", (0.35, 0.65)),
        ("bottom-center-safe", (0.70, 0.83)),
    ],
)
def test_band_boundaries(key, band):
    assert resolve_zone(key).band == band


@pytest.mark.parametrize(
    "key,anchor,align",
    [
        ("top-left-safe", 0.10, "left"),
        ("center-safe", 0.5, "center"),
        ("bottom-right-safe", 0.90, "right"),
    ],
)
def test_anchor_and_alignment(key, anchor, align):
    zone = resolve_zone(key)
    assert zone.anchor_x == pytest.approx(anchor)
    assert zone.align == align


@pytest.mark.parametrize("key", ["", None, "middle", "top-left"])
def test_unknown_zone_falls_back_to_center(key):
    assert resolve_zone(key) == PLACEMENT_ZONES["center-safe"]


def test_center_center_alias():
    assert resolve_zone("center-center-safe") == PLACEMENT_ZONES["center-safe"]


def test_size_tiers():
    assert resolve_font_size("large") == 76
    assert resolve_font_size("standard") == 52
    assert resolve_font_size("small") == 42


def test_unknown_size_falls_back_to_standard():
    assert resolve_font_size("huge") == 52
    assert resolve_font_size(None) == 52
