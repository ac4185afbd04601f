"""
Parsing of text-block payloads produced by the copy-writing model.

Model output is loosely structured: it may be a bare JSON list, an object
carrying ``text_blocks``, ``variations`` or ``carousel_variations``, or either of those wrapped in a
fenced code block or surrounded by prose. Items that are not objects or have
no text are skipped rather than failing the whole payload.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

from ad_overlay.errors import BlockParseError
from ad_overlay.models import TextBlock

_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class Slide:
    """One carousel card: its own text over one of the uploaded images."""

    text_blocks: list[TextBlock]
    slide_number: int
    image_index: int = 0


@dataclass(frozen=True)
class Variation:
    text_blocks: list[TextBlock]
    hook_type: str = ""
    ad_caption: str = ""
    ad_headline: str = ""
    number: int = 0
    slides: list[Slide] = field(default_factory=list)

    @property
    def is_carousel(self) -> bool:
        return bool(self.slides)


def _extract_json(raw: str) -> Any:
    text = raw.strip()
    if not text:
        return []
    m = _FENCE.search(text)
    if m:
        text = m.group(1).strip()
    try:
        return json.loads(text)
    except ValueError:
        pass

    # Best-effort: take the outermost list or object embedded in prose.
    for open_ch, close_ch in (("[", "]"), ("{", "}")):
        start = text.find(open_ch)
        end = text.rfind(close_ch)
        if start != -1 and end > start:
            try:
                return json.loads(text[start : end + 1])
            except ValueError:
                continue
    raise BlockParseError(context={"payload": raw[:200]})


def _load(payload: Any) -> Any:
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        return _extract_json(payload)
    return payload


def _blocks_from_items(items: Any) -> list[TextBlock]:
    if not isinstance(items, list):
        return []
    out: list[TextBlock] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if not str(item.get("text") or "").strip():
            continue
        out.append(TextBlock.from_dict(item))
    return out


def parse_text_blocks(payload: Any) -> list[TextBlock]:
    data = _load(payload)
    if isinstance(data, dict):
        if "text_blocks" in data:
            data = data.get("text_blocks")
        elif "text" in data:
            data = [data]
    if data is not None and not isinstance(data, list):
        raise BlockParseError("text blocks must be a JSON list", context={"type": type(data).__name__})
    return _blocks_from_items(data)


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _slides_from_items(items: Any) -> list[Slide]:
    if not isinstance(items, list):
        return []
    out: list[Slide] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        out.append(
            Slide(
                text_blocks=_blocks_from_items(item.get("text_blocks")),
                slide_number=_as_int(item.get("slide_number"), len(out) + 1),
                image_index=max(0, _as_int(item.get("image_index"), 0)),
            )
        )
    return out


def parse_variations(payload: Any) -> list[Variation]:
    """
    Carousel variations carry ``carousel_slides`` (or ``slides``) instead of
    top-level text blocks. A supplied ``variation_number`` names the files in
    the export; otherwise variations are numbered from 1 in payload order.
    """
    data = _load(payload)
    if isinstance(data, dict):
        if "variations" in data or "carousel_variations" in data:
            data = data.get("variations") or data.get("carousel_variations") or []
        elif "text_blocks" in data or "slides" in data or "carousel_slides" in data:
            data = [data]
        else:
            data = []
    if not isinstance(data, list):
        raise BlockParseError("variations must be a JSON list", context={"type": type(data).__name__})

    out: list[Variation] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        number = _as_int(item.get("variation_number"), 0)
        out.append(
            Variation(
                text_blocks=_blocks_from_items(item.get("text_blocks")),
                hook_type=str(item.get("hook_type") or ""),
                ad_caption=str(item.get("ad_caption") or ""),
                ad_headline=str(item.get("ad_headline") or ""),
                number=number if number > 0 else len(out) + 1,
                slides=_slides_from_items(item.get("carousel_slides") or item.get("slides")),
            )
        )
    return out
