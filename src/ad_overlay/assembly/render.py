from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Any, Iterable

from loguru import logger
from PIL import Image, UnidentifiedImageError

from ad_overlay.assembly.fonts import FontSet, get_font_set
from ad_overlay.assembly.layout import layout_blocks
from ad_overlay.assembly.overlay import DrawOp, build_overlay_ops, overlay_to_svg, rasterize_overlay
from ad_overlay.errors import ImageDecodeError
from ad_overlay.models import FEED, STORY, CanvasSize, PlacedBlock, TextBlock, canvas_for_preset


@dataclass(frozen=True)
class RenderedCreative:
    image: Image.Image
    canvas: CanvasSize
    placed: list[PlacedBlock]
    ops: list[DrawOp]

    def to_png(self) -> bytes:
        return pil_to_png_bytes(self.image)

    def overlay_svg(self) -> str:
        return overlay_to_svg(self.ops, self.canvas)


def load_image(image_bytes: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(context={"reason": str(exc), "bytes": len(image_bytes or b"")}) from exc
    return img


def pil_to_png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def resize_cover(img: Image.Image, size: tuple[int, int]) -> Image.Image:
    """
    Resize to cover the target canvas (no stretching), then center-crop.
    """
    tw, th = size
    iw, ih = img.size
    if iw <= 0 or ih <= 0:
        return img.resize(size, Image.Resampling.LANCZOS)

    scale = max(tw / iw, th / ih)
    # Float error must not leave the scaled image a pixel short of the canvas.
    nw, nh = max(tw, round(iw * scale)), max(th, round(ih * scale))
    resized = img.resize((nw, nh), Image.Resampling.LANCZOS)

    left = max(0, (nw - tw) // 2)
    top = max(0, (nh - th) // 2)
    return resized.crop((left, top, left + tw, top + th))


def composite(photo: Image.Image, overlay: Image.Image, canvas: CanvasSize) -> Image.Image:
    """Cover-fit `photo` to the canvas and alpha-merge `overlay` at (0, 0)."""
    base = photo if photo.size == canvas.size else resize_cover(photo.convert("RGB"), canvas.size)
    base = base.convert("RGBA")
    if overlay.size != canvas.size:
        raise ValueError(f"overlay is {overlay.size}, expected {canvas.size}")
    return Image.alpha_composite(base, overlay.convert("RGBA"))


def _coerce_blocks(blocks: Iterable[TextBlock | dict[str, Any]]) -> list[TextBlock]:
    out: list[TextBlock] = []
    for b in blocks or []:
        if isinstance(b, TextBlock):
            out.append(b)
        elif isinstance(b, dict):
            out.append(TextBlock.from_dict(b))
    return out


def render_creative(
    photo: Image.Image,
    blocks: Iterable[TextBlock | dict[str, Any]],
    canvas: CanvasSize,
    fonts: FontSet | None = None,
) -> RenderedCreative:
    fonts = fonts or get_font_set()
    fonts.initialize()

    base = resize_cover(photo.convert("RGB"), canvas.size)
    placed = layout_blocks(_coerce_blocks(blocks), canvas, base)
    ops = build_overlay_ops(placed, fonts)
    overlay = rasterize_overlay(ops, canvas, fonts)
    final = composite(base, overlay, canvas)
    return RenderedCreative(image=final.convert("RGB"), canvas=canvas, placed=placed, ops=ops)


def render_text_on_image(
    image_bytes: bytes,
    blocks: Iterable[TextBlock | dict[str, Any]],
    preset: str | CanvasSize,
    fonts: FontSet | None = None,
) -> bytes:
    canvas = canvas_for_preset(preset)
    photo = load_image(image_bytes)
    rendered = render_creative(photo, blocks, canvas, fonts=fonts)
    logger.info(f"Rendered {canvas.name} {canvas.width}x{canvas.height} with {len(rendered.placed)} text block(s)")
    return rendered.to_png()


def render_feed_image(image_bytes: bytes, blocks: Iterable[TextBlock | dict[str, Any]], fonts: FontSet | None = None) -> bytes:
    return render_text_on_image(image_bytes, blocks, FEED, fonts=fonts)


def render_story_image(image_bytes: bytes, blocks: Iterable[TextBlock | dict[str, Any]], fonts: FontSet | None = None) -> bytes:
    return render_text_on_image(image_bytes, blocks, STORY, fonts=fonts)
