from __future__ import annotations

import threading
from pathlib import Path

from loguru import logger
from PIL import ImageFont, features

from ad_overlay.config import settings
from ad_overlay.errors import BackendInitError

# Probed after the configured fonts_dir, in order.
_BOLD_CANDIDATES: list[str] = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
    "/Library/Fonts/Arial Bold.ttf",
    "C:\\Windows\\Fonts\\arialbd.ttf",
]
_REGULAR_CANDIDATES: list[str] = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/System/Library/Fonts/Supplemental/Arial.ttf",
    "/Library/Fonts/Arial.ttf",
    "C:\\Windows\\Fonts\\arial.ttf",
]


class FontSet:
    """
    Process-wide font backend.

    initialize() is idempotent and safe to race: the first caller loads, later
    or concurrent callers see the finished state. Nothing is ever unloaded.
    """

    def __init__(
        self,
        fonts_dir: str | Path | None = None,
        bold_file: str | None = None,
        regular_file: str | None = None,
        search_system: bool = True,
    ) -> None:
        self.fonts_dir = Path(fonts_dir or settings.fonts_dir)
        self.bold_file = bold_file or settings.font_bold_file
        self.regular_file = regular_file or settings.font_regular_file
        self.search_system = search_system
        self._lock = threading.Lock()
        self._initialized = False
        self._paths: dict[bool, str | None] = {True: None, False: None}
        self._cache: dict[tuple[int, bool], ImageFont.FreeTypeFont] = {}

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            if not features.check("freetype2"):
                raise BackendInitError("Pillow was built without FreeType support", context={"backend": "freetype2"})
            self._paths = {
                True: self._find(self.bold_file, _BOLD_CANDIDATES),
                False: self._find(self.regular_file, _REGULAR_CANDIDATES),
            }
            if self._paths[True] is None and self._paths[False] is None:
                logger.warning(f"No font files found under {self.fonts_dir}; falling back to Pillow's default font")
            elif self._paths[True] is None:
                logger.warning(f"Bold font {self.bold_file} not found; bold text will be emboldened with a stroke")
            self._initialized = True
            logger.info(f"Font backend ready (bold={self._paths[True]}, regular={self._paths[False]})")

    def _find(self, filename: str, candidates: list[str]) -> str | None:
        paths = [self.fonts_dir / filename]
        if self.search_system:
            paths.extend(Path(c) for c in candidates)
        for p in paths:
            if p.is_file():
                return str(p)
        return None

    def has_face(self, bold: bool) -> bool:
        self.initialize()
        return self._paths[bold] is not None

    def synthetic_bold(self, bold: bool) -> bool:
        """True when bold was asked for but only a regular face is available."""
        return bold and not self.has_face(True)

    def get(self, size: int, bold: bool) -> ImageFont.FreeTypeFont:
        self.initialize()
        key = (int(size), bool(bold))
        font = self._cache.get(key)
        if font is None:
            font = self._load(*key)
            self._cache[key] = font
        return font

    def _load(self, size: int, bold: bool) -> ImageFont.FreeTypeFont:
        path = self._paths[bold] or self._paths[not bold]
        if path:
            try:
                return ImageFont.truetype(path, size=size)
            except OSError as exc:
                logger.warning(f"Failed to load font {path}: {exc}")
        return ImageFont.load_default(size=size)


_default_font_set: FontSet | None = None
_default_lock = threading.Lock()


def get_font_set() -> FontSet:
    global _default_font_set
    if _default_font_set is None:
        with _default_lock:
            if _default_font_set is None:
                _default_font_set = FontSet()
    return _default_font_set
