from __future__ import annotations

import io

import pytest
from PIL import Image, ImageChops

from ad_overlay.assembly.luminance import BLACK
from ad_overlay.assembly.render import (
    composite,
    load_image,
    render_creative,
    render_feed_image,
    render_story_image,
    render_text_on_image,
    resize_cover,
)
from ad_overlay.errors import ImageDecodeError, InvalidPresetError
from ad_overlay.models import FEED, STORY, CanvasSize, TextBlock


def _open(png: bytes) -> Image.Image:
    return Image.open(io.BytesIO(png))


@pytest.mark.parametrize("source_size", [(400, 300), (300, 900), (1080, 1350), (5000, 200)])
def test_output_matches_preset_dimensions(png_factory, fonts, source_size):
    src = png_factory(size=source_size)
    blocks = [TextBlock(text="Same-day dispatch")]
    assert _open(render_feed_image(src, blocks, fonts=fonts)).size == (1080, 1350)
    assert _open(render_story_image(src, blocks, fonts=fonts)).size == (1080, 1920)


def test_output_is_png(gray_png, fonts):
    png = render_text_on_image(gray_png, [], "feed", fonts=fonts)
    assert _open(png).format == "PNG"


def test_render_is_deterministic(gray_png, fonts):
    blocks = [TextBlock(text="One", style="pill"), TextBlock(text="Two\\nlines", placement="bottom-left-safe")]
    assert render_story_image(gray_png, blocks, fonts=fonts) == render_story_image(gray_png, blocks, fonts=fonts)


def test_resize_cover_fills_and_centres():
    # Red | green | blue thirds; a square crop from the middle keeps only green.
    img = Image.new("RGB", (300, 100), (255, 0, 0))
    img.paste((0, 255, 0), (100, 0, 200, 100))
    img.paste((0, 0, 255), (200, 0, 300, 100))
    out = resize_cover(img, (100, 100))
    assert out.size == (100, 100)
    assert out.getpixel((50, 50)) == (0, 255, 0)


def test_empty_blocks_equal_cover_fit_photo(fonts):
    src = Image.new("RGB", (800, 600))
    for x in range(0, 800, 50):
        src.paste((x % 256, 80, 200), (x, 0, x + 50, 600))
    buf = io.BytesIO()
    src.save(buf, format="PNG")

    out = _open(render_feed_image(buf.getvalue(), [], fonts=fonts)).convert("RGB")
    expected = resize_cover(src, FEED.size)
    assert ImageChops.difference(out, expected).getbbox() is None


def test_single_plain_block_on_mid_gray(gray_png, fonts):
    png = render_feed_image(gray_png, [TextBlock(text="Same-day dispatch", placement="center-safe")], fonts=fonts)
    out = _open(png).convert("L")
    assert out.size == (1080, 1350)
    whiteish = out.point(lambda v: 255 if v > 240 else 0).getbbox()
    assert whiteish is not None
    assert whiteish[1] >= 0.35 * 1350
    assert whiteish[3] <= 0.65 * 1350


def test_pill_hint_overridden_over_white(png_factory, fonts):
    white = load_image(png_factory((255, 255, 255)))
    rendered = render_creative(white, [TextBlock(text="Book now", style="pill", pill_color="light")], FEED, fonts)
    placed = rendered.placed[0]
    assert placed.colors.background == BLACK
    x = int(placed.box.x) + 8
    y = int(placed.box.y + placed.box.height / 2)
    assert rendered.image.getpixel((x, y)) == BLACK


def test_dict_blocks_are_accepted(gray_png, fonts):
    png = render_feed_image(gray_png, [{"text": "hi", "placement": "top-left-safe", "style": "pill"}], fonts=fonts)
    assert _open(png).size == FEED.size


def test_corrupt_image_raises(fonts):
    with pytest.raises(ImageDecodeError) as info:
        render_feed_image(b"definitely not an image", [], fonts=fonts)
    assert info.value.error_code == "RENDER_001"


@pytest.mark.parametrize("preset", ["square", "", CanvasSize("feed", 1080, 1080)])
def test_unknown_preset_raises(gray_png, fonts, preset):
    with pytest.raises(InvalidPresetError):
        render_text_on_image(gray_png, [], preset, fonts=fonts)


def test_preset_lookup_is_case_insensitive(gray_png, fonts):
    assert _open(render_text_on_image(gray_png, [], "STORY", fonts=fonts)).size == STORY.size


def test_composite_rejects_mismatched_overlay():
    photo = Image.new("RGB", FEED.size)
    with pytest.raises(ValueError):
        composite(photo, Image.new("RGBA", (10, 10)), FEED)


def test_composite_respects_alpha():
    photo = Image.new("RGB", FEED.size, (10, 20, 30))
    overlay = Image.new("RGBA", FEED.size, (0, 0, 0, 0))
    overlay.putpixel((5, 5), (255, 255, 255, 255))
    out = composite(photo, overlay, FEED)
    assert out.getpixel((5, 5)) == (255, 255, 255, 255)
    assert out.getpixel((6, 6)) == (10, 20, 30, 255)
