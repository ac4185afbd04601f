from __future__ import annotations

import math

from loguru import logger
from PIL import Image, ImageStat

from ad_overlay.models import BlockColors

NEUTRAL_LUMINANCE = 128.0

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)

# Regions larger than this are averaged on a reduced copy.
_MAX_SAMPLE_SIDE = 64


def _clamp_region(x: float, y: float, w: float, h: float, img_w: int, img_h: int) -> tuple[int, int, int, int]:
    sx = max(0, min(math.floor(x), img_w - 1))
    sy = max(0, min(math.floor(y), img_h - 1))
    sw = min(max(1, math.floor(w)), img_w - sx)
    sh = min(max(1, math.floor(h)), img_h - sy)
    return (sx, sy, sx + sw, sy + sh)


def sample_luminance(image: Image.Image, x: float, y: float, w: float, h: float) -> float:
    """
    Perceptual luminance (0..255) of a rectangle of `image`.
    The rectangle is clamped into the image; on any failure the neutral 128 is returned.
    """
    try:
        img_w, img_h = image.size
        region = image.crop(_clamp_region(x, y, w, h, img_w, img_h)).convert("RGB")
        if max(region.size) > _MAX_SAMPLE_SIDE:
            region.thumbnail((_MAX_SAMPLE_SIDE, _MAX_SAMPLE_SIDE), Image.Resampling.BOX)
        r, g, b = ImageStat.Stat(region).mean[:3]
        return 0.299 * r + 0.587 * g + 0.114 * b
    except Exception as exc:
        logger.debug(f"Luminance sample failed ({exc}); using neutral value")
        return NEUTRAL_LUMINANCE


def choose_colors(luminance: float, style: str, pill_hint: str | None = None) -> BlockColors:
    """
    Light region -> dark pill with light text, otherwise light pill with dark text.
    The measured luminance always wins over the advisory pill_color hint.
    """
    if style != "pill":
        return BlockColors(foreground=WHITE, background=None, outline=BLACK, luminance=luminance)

    use_dark = luminance > NEUTRAL_LUMINANCE
    hint = (pill_hint or "").lower()
    overridden = hint in ("light", "dark") and (hint == "dark") != use_dark
    if overridden:
        logger.debug(f"pill_color hint {hint!r} overridden by luminance {luminance:.1f}")
    if use_dark:
        return BlockColors(foreground=WHITE, background=BLACK, outline=None, luminance=luminance, hint_overridden=overridden)
    return BlockColors(foreground=BLACK, background=WHITE, outline=None, luminance=luminance, hint_overridden=overridden)
