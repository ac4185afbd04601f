from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ad_overlay.config import settings
from ad_overlay.errors import InvalidPresetError


@dataclass(frozen=True)
class TextBlock:
    text: str
    placement: str = "center-safe"
    text_size: str = "standard"  # large|standard|small
    style: str = "plain"  # pill|plain
    pill_color: str | None = None  # light|dark, advisory only
    capitalization: str = "sentence"  # sentence|upper|mixed

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TextBlock":
        """
        Build from a loosely-typed payload. Unknown enum values are kept as-is;
        the layout engine resolves them with fallbacks.
        """

        def _s(key: str, default: str) -> str:
            value = data.get(key)
            if value is None:
                return default
            return str(value).strip() or default

        pill = data.get("pill_color")
        pill_s = str(pill).strip().lower() if pill is not None else ""
        return cls(
            text=str(data.get("text") or ""),
            placement=_s("placement", "center-safe"),
            text_size=_s("text_size", "standard").lower(),
            style=_s("style", "plain").lower(),
            pill_color=pill_s or None,
            capitalization=_s("capitalization", "sentence").lower(),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "text": self.text,
            "placement": self.placement,
            "text_size": self.text_size,
            "style": self.style,
            "capitalization": self.capitalization,
        }
        if self.pill_color:
            out["pill_color"] = self.pill_color
        return out


@dataclass(frozen=True)
class ResolvedZone:
    anchor_x: float
    y_min: float
    y_max: float
    align: str  # left|center|right

    @property
    def band(self) -> tuple[float, float]:
        return (self.y_min, self.y_max)


@dataclass(frozen=True)
class LineMeasurement:
    text: str
    width: float
    height: float


@dataclass
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def overlaps(self, other: "BoundingBox", gap: float = 0.0) -> bool:
        # Boxes exactly `gap` apart are clear; the epsilon absorbs float error.
        g = gap - 1e-6
        return not (
            self.right + g <= other.x
            or other.right + g <= self.x
            or self.bottom + g <= other.y
            or other.bottom + g <= self.y
        )


@dataclass(frozen=True)
class CanvasSize:
    name: str
    width: int
    height: int

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)


FEED = CanvasSize("feed", *settings.canvas_presets["feed"])
STORY = CanvasSize("story", *settings.canvas_presets["story"])

_PRESETS: dict[str, CanvasSize] = {FEED.name: FEED, STORY.name: STORY}


def canvas_for_preset(preset: str | CanvasSize) -> CanvasSize:
    if isinstance(preset, CanvasSize):
        if _PRESETS.get(preset.name) != preset:
            raise InvalidPresetError(context={"preset": preset.name, "size": preset.size})
        return preset
    key = (preset or "").strip().lower()
    canvas = _PRESETS.get(key)
    if canvas is None:
        raise InvalidPresetError(f"Unknown canvas preset '{preset}'", context={"preset": preset})
    return canvas


@dataclass(frozen=True)
class BlockColors:
    foreground: tuple[int, int, int]
    background: tuple[int, int, int] | None
    outline: tuple[int, int, int] | None
    luminance: float
    hint_overridden: bool = False


@dataclass
class PlacedBlock:
    block: TextBlock
    lines: list[LineMeasurement]
    box: BoundingBox
    colors: BlockColors
    zone: ResolvedZone
    font_size: int
    bold: bool
