from __future__ import annotations

from loguru import logger

from ad_overlay.models import ResolvedZone

DEFAULT_ZONE = "center-safe"
DEFAULT_TIER = "standard"

# Bands keep text clear of story UI chrome and of feed cropping.
_ROWS: dict[str, tuple[float, float]] = {
    "top": (0.17, 0.30),
    "center": (0.35, 0.65),
    "bottom": (0.70, 0.83),
}
_COLUMNS: dict[str, float] = {
    "left": 0.10,
    "center": 0.5,
    "right": 0.90,
}


def _zone_key(row: str, col: str) -> str:
    if col == "center":
        return f"{row}-safe" if row == "center" else f"{row}-center-safe"
    return f"{row}-{col}-safe"


PLACEMENT_ZONES: dict[str, ResolvedZone] = {
    _zone_key(row, col): ResolvedZone(anchor_x=x, y_min=band[0], y_max=band[1], align=col)
    for row, band in _ROWS.items()
    for col, x in _COLUMNS.items()
}

TEXT_SIZES: dict[str, dict[str, int]] = {
    "large": {"primary": 76, "secondary": 46},
    "standard": {"primary": 52, "secondary": 34},
    "small": {"primary": 42, "secondary": 28},
}


def resolve_zone(zone_key: str | None) -> ResolvedZone:
    key = (zone_key or "").strip().lower()
    zone = PLACEMENT_ZONES.get(key)
    if zone is None:
        # "center-center-safe" reads naturally too.
        zone = PLACEMENT_ZONES.get(key.replace("center-center", "center"))
    if zone is None:
        logger.debug(f"Unknown placement zone {zone_key!r}, using {DEFAULT_ZONE}")
        return PLACEMENT_ZONES[DEFAULT_ZONE]
    return zone


def resolve_font_size(tier: str | None) -> int:
    sizes = TEXT_SIZES.get((tier or "").strip().lower())
    if sizes is None:
        logger.debug(f"Unknown text size {tier!r}, using {DEFAULT_TIER}")
        sizes = TEXT_SIZES[DEFAULT_TIER]
    return sizes["primary"]
