"""
Overlay rendering.

Placed blocks are first turned into a flat list of drawing ops (rounded rects
and text runs in canvas pixels). The ops are rasterized with Pillow onto a
transparent layer, or serialized to SVG for previews.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union
from xml.sax.saxutils import escape

from PIL import Image, ImageDraw

from ad_overlay.assembly.fonts import FontSet
from ad_overlay.assembly.layout import PADDING_H, line_gap, line_slot_height
from ad_overlay.models import CanvasSize, PlacedBlock

PILL_RADIUS = 20

_SVG_ANCHORS = {"l": "start", "m": "middle", "r": "end"}


@dataclass(frozen=True)
class RectOp:
    x: int
    y: int
    width: int
    height: int
    radius: int
    fill: tuple[int, int, int]


@dataclass(frozen=True)
class TextOp:
    x: int
    y: int
    text: str
    font_size: int
    bold: bool
    fill: tuple[int, int, int]
    anchor: str  # Pillow anchor; vertical is always "m"
    stroke_width: int = 0
    stroke_fill: tuple[int, int, int] | None = None


DrawOp = Union[RectOp, TextOp]


def outline_width(font_size: int) -> int:
    return max(2, font_size // 16)


def _drawn_width(text: str, font_size: int, bold: bool, fonts: FontSet) -> float:
    width = fonts.get(font_size, bold).getlength(text)
    if fonts.synthetic_bold(bold):
        width += 2
    return width


def _pill_ops(placed: PlacedBlock, fonts: FontSet | None = None) -> list[DrawOp]:
    ops: list[DrawOp] = []
    box = placed.box
    bg = placed.colors.background
    y = box.y
    for line in placed.lines:
        slot_h = line_slot_height(line)
        if line.text.strip():
            text_w = line.width
            if fonts is not None:
                # The pill must hold the text as the installed face draws it.
                text_w = max(text_w, _drawn_width(line.text, placed.font_size, placed.bold, fonts))
            pill_w = text_w + PADDING_H * 2
            if placed.zone.align == "left":
                pill_x = box.x
            elif placed.zone.align == "right":
                pill_x = box.right - pill_w
            else:
                pill_x = box.x + (box.width - pill_w) / 2
            ops.append(RectOp(round(pill_x), round(y), round(pill_w), round(slot_h), PILL_RADIUS, bg))
            ops.append(
                TextOp(
                    x=round(pill_x + pill_w / 2),
                    y=round(y + slot_h / 2),
                    text=line.text,
                    font_size=placed.font_size,
                    bold=placed.bold,
                    fill=placed.colors.foreground,
                    anchor="mm",
                )
            )
        # Pills are flush: no gap between consecutive lines.
        y += slot_h
    return ops


def _plain_ops(placed: PlacedBlock) -> list[DrawOp]:
    ops: list[DrawOp] = []
    box = placed.box
    if placed.zone.align == "left":
        x, anchor = box.x + PADDING_H, "lm"
    elif placed.zone.align == "right":
        x, anchor = box.right - PADDING_H, "rm"
    else:
        x, anchor = box.x + box.width / 2, "mm"

    y = box.y
    gap = line_gap(placed.block.style)
    for line in placed.lines:
        slot_h = line_slot_height(line)
        if line.text.strip():
            ops.append(
                TextOp(
                    x=round(x),
                    y=round(y + slot_h / 2),
                    text=line.text,
                    font_size=placed.font_size,
                    bold=placed.bold,
                    fill=placed.colors.foreground,
                    anchor=anchor,
                    stroke_width=outline_width(placed.font_size),
                    stroke_fill=placed.colors.outline,
                )
            )
        y += slot_h + gap
    return ops


def build_overlay_ops(placed_blocks: list[PlacedBlock], fonts: FontSet | None = None) -> list[DrawOp]:
    """
    Without `fonts` pills are sized from the width estimate alone. With a
    font set each pill also grows to the measured width of its line.
    """
    ops: list[DrawOp] = []
    for placed in placed_blocks:
        if placed.block.style == "pill" and placed.colors.background is not None:
            ops.extend(_pill_ops(placed, fonts))
        else:
            ops.extend(_plain_ops(placed))
    return ops


def rasterize_overlay(ops: list[DrawOp], canvas: CanvasSize, fonts: FontSet) -> Image.Image:
    """Draw ops onto a fully transparent RGBA layer of canvas size."""
    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    if not ops:
        return layer
    draw = ImageDraw.Draw(layer)
    for op in ops:
        if isinstance(op, RectOp):
            draw.rounded_rectangle(
                [(op.x, op.y), (op.x + op.width, op.y + op.height)],
                radius=op.radius,
                fill=op.fill + (255,),
            )
            continue

        font = fonts.get(op.font_size, op.bold)
        stroke_width = op.stroke_width
        stroke_fill = op.stroke_fill
        if fonts.synthetic_bold(op.bold) and not stroke_width:
            # Thicken strokes in the text colour when no bold face is installed.
            stroke_width, stroke_fill = 1, op.fill
        draw.text(
            (op.x, op.y),
            op.text,
            font=font,
            fill=op.fill + (255,),
            anchor=op.anchor,
            stroke_width=stroke_width,
            stroke_fill=(stroke_fill + (255,)) if stroke_fill else None,
        )
    return layer


def _rgb_to_hex(rgb: tuple[int, int, int]) -> str:
    return "#{:02X}{:02X}{:02X}".format(*rgb)


def escape_xml(text: str) -> str:
    return escape(text, {'"': "&quot;", "'": "&apos;"})


def overlay_to_svg(ops: list[DrawOp], canvas: CanvasSize, font_family: str = "Inter") -> str:
    parts: list[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{canvas.width}" height="{canvas.height}" '
        f'viewBox="0 0 {canvas.width} {canvas.height}">'
    ]
    for op in ops:
        if isinstance(op, RectOp):
            parts.append(
                f'<rect x="{op.x}" y="{op.y}" width="{op.width}" height="{op.height}" '
                f'rx="{op.radius}" ry="{op.radius}" fill="{_rgb_to_hex(op.fill)}"/>'
            )
            continue
        attrs = (
            f'x="{op.x}" y="{op.y}" font-family="{escape_xml(font_family)}" font-size="{op.font_size}" '
            f'font-weight="{700 if op.bold else 400}" fill="{_rgb_to_hex(op.fill)}" '
            f'text-anchor="{_SVG_ANCHORS[op.anchor[0]]}" dominant-baseline="central"'
        )
        if op.stroke_width and op.stroke_fill:
            attrs += (
                f' stroke="{_rgb_to_hex(op.stroke_fill)}" stroke-width="{op.stroke_width * 2}" '
                'stroke-linejoin="round" paint-order="stroke"'
            )
        parts.append(f"<text {attrs}>{escape_xml(op.text)}</text>")
    parts.append("</svg>")
    return "".join(parts)
