"""
Block layout: turns abstract text blocks into canvas geometry.

Blocks are placed strictly in input order. Each block starts centred in its
zone's vertical band; if it lands within CLEARANCE_GAP of an already placed box
it is pushed just above or just below that box, one conflict at a time. When
those moves do not end clear of every placed box, the nearest slot next to a
placed box that is clear and inside the safe band is taken instead. This is
not a constraint solver: with many blocks no such slot may exist, and the box
is then clamped against the safe band.
"""

from __future__ import annotations

from typing import Iterable

from loguru import logger
from PIL import Image

from ad_overlay.assembly.luminance import NEUTRAL_LUMINANCE, choose_colors, sample_luminance
from ad_overlay.assembly.metrics import estimate_width
from ad_overlay.assembly.zones import resolve_font_size, resolve_zone
from ad_overlay.models import BoundingBox, CanvasSize, LineMeasurement, PlacedBlock, ResolvedZone, TextBlock

PADDING_H = 20
PADDING_V = 12
PLAIN_LINE_GAP = 6
LINE_HEIGHT_RATIO = 1.2
CLEARANCE_GAP = 40
EDGE_MARGIN = 40
SAFE_TOP = 0.12
SAFE_BOTTOM = 0.88


def apply_capitalization(text: str, capitalization: str) -> str:
    if (capitalization or "").lower() == "upper":
        return text.upper()
    return text


def split_lines(text: str) -> list[str]:
    # Upstream copy may carry a literal backslash-n instead of a newline.
    lines: list[str] = []
    for chunk in text.split("\\n"):
        lines.extend(part.rstrip("\r") for part in chunk.split("\n"))
    return lines


def is_bold(block: TextBlock) -> bool:
    return block.text_size == "large" or block.capitalization == "upper"


def line_gap(style: str) -> int:
    return 0 if style == "pill" else PLAIN_LINE_GAP


def measure_lines(lines: Iterable[str], font_size: int, bold: bool) -> list[LineMeasurement]:
    return [
        LineMeasurement(text=line, width=estimate_width(line, font_size, bold), height=font_size * LINE_HEIGHT_RATIO)
        for line in lines
    ]


def line_slot_height(line: LineMeasurement) -> float:
    return line.height + PADDING_V * 2


def block_size(lines: list[LineMeasurement], style: str) -> tuple[float, float]:
    width = max((m.width for m in lines), default=0.0) + PADDING_H * 2
    height = sum(line_slot_height(m) for m in lines) + max(0, len(lines) - 1) * line_gap(style)
    return width, height


def safe_band(canvas: CanvasSize) -> tuple[float, float]:
    return canvas.height * SAFE_TOP, canvas.height * SAFE_BOTTOM


def _displace(box: BoundingBox, conflict: BoundingBox, band: tuple[float, float]) -> float:
    above = conflict.y - box.height - CLEARANCE_GAP
    below = conflict.bottom + CLEARANCE_GAP
    move_up = box.y - above
    move_down = below - box.y
    go_up = move_up < move_down or (move_up == move_down and box.y < conflict.y)

    # Prefer the side that stays inside the safe band.
    fits_above = above >= band[0]
    fits_below = below + box.height <= band[1]
    if go_up and not fits_above and fits_below:
        go_up = False
    elif not go_up and not fits_below and fits_above:
        go_up = True
    return above if go_up else below


def _fits(y: float, height: float, band: tuple[float, float]) -> bool:
    return y >= band[0] and y + height <= band[1]


def _is_clear(box: BoundingBox, placed: list[BoundingBox]) -> bool:
    return not any(box.overlaps(p, CLEARANCE_GAP) for p in placed)


def _nearest_clear_y(box: BoundingBox, placed: list[BoundingBox], band: tuple[float, float]) -> float | None:
    """Closest y, just above or just below some placed box, clear of all of them and inside the band."""
    candidates = []
    for p in placed:
        candidates.append(p.y - box.height - CLEARANCE_GAP)
        candidates.append(p.bottom + CLEARANCE_GAP)
    for y in sorted(candidates, key=lambda c: (abs(c - box.y), c)):
        trial = BoundingBox(x=box.x, y=y, width=box.width, height=box.height)
        if _fits(y, box.height, band) and _is_clear(trial, placed):
            return y
    return None


def resolve_collisions(box: BoundingBox, placed: list[BoundingBox], band: tuple[float, float]) -> BoundingBox:
    start = box.y
    for _ in range(len(placed)):
        conflict = next((p for p in placed if box.overlaps(p, CLEARANCE_GAP)), None)
        if conflict is None:
            break
        box.y = _displace(box, conflict, band)

    if _is_clear(box, placed) and _fits(box.y, box.height, band):
        return box

    # Moves against one conflict at a time can land back on an earlier box.
    fallback = box.y
    box.y = start
    nearest = _nearest_clear_y(box, placed, band)
    box.y = fallback if nearest is None else nearest
    return box


def clamp_box(box: BoundingBox, canvas: CanvasSize) -> BoundingBox:
    min_y, max_y = safe_band(canvas)
    # Blocks taller than the band are pinned to its top.
    box.y = max(min_y, min(max_y - box.height, box.y))
    max_x = canvas.width - EDGE_MARGIN - box.width
    box.x = max(EDGE_MARGIN, min(max_x, box.x))
    return box


def initial_box(zone: ResolvedZone, width: float, height: float, canvas: CanvasSize) -> BoundingBox:
    y = (zone.y_min + zone.y_max) / 2 * canvas.height - height / 2
    if zone.align == "left":
        x = zone.anchor_x * canvas.width
    elif zone.align == "right":
        x = zone.anchor_x * canvas.width - width
    else:
        x = canvas.width / 2 - width / 2
    return BoundingBox(x=x, y=y, width=width, height=height)


def layout_blocks(blocks: Iterable[TextBlock], canvas: CanvasSize, base_image: Image.Image | None = None) -> list[PlacedBlock]:
    """
    Place each block in input order, threading the boxes placed so far.

    `base_image` is the cover-fit photo at canvas size; it is only read to pick
    pill colors. Without it every region reads as neutral.
    """
    placed: list[PlacedBlock] = []
    boxes: list[BoundingBox] = []
    band = safe_band(canvas)

    for block in blocks:
        zone = resolve_zone(block.placement)
        font_size = resolve_font_size(block.text_size)
        bold = is_bold(block)

        lines = measure_lines(split_lines(apply_capitalization(block.text, block.capitalization)), font_size, bold)
        width, height = block_size(lines, block.style)

        box = initial_box(zone, width, height, canvas)
        box = resolve_collisions(box, boxes, band)
        box = clamp_box(box, canvas)
        boxes.append(box)

        if base_image is not None:
            lum = sample_luminance(base_image, box.x, box.y, box.width, box.height)
        else:
            lum = NEUTRAL_LUMINANCE
        colors = choose_colors(lum, block.style, block.pill_color)

        placed.append(
            PlacedBlock(block=block, lines=lines, box=box, colors=colors, zone=zone, font_size=font_size, bold=bold)
        )

    if placed:
        logger.debug(
            f"Laid out {len(placed)} block(s) on {canvas.name}: "
            + ", ".join(f"({p.box.x:.0f},{p.box.y:.0f},{p.box.width:.0f}x{p.box.height:.0f})" for p in placed)
        )
    return placed
