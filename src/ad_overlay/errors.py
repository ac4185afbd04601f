"""Hard failures surfaced by the renderer.

Everything else (unknown zones, unknown size tiers, unreadable luminance
regions, missing font files) degrades silently and never reaches these.
"""

from __future__ import annotations

from typing import Any, ClassVar

CODE_TO_MESSAGE: dict[str, str] = {
    "RENDER_001": "Source image could not be decoded",
    "RENDER_002": "Rendering backend failed to initialize",
    "RENDER_003": "Unknown canvas preset",
    "RENDER_004": "Text block payload could not be parsed",
}


class RenderError(Exception):
    """Base class; subclasses set ``error_code``."""

    error_code: ClassVar[str] = ""

    def __init__(self, message: str | None = None, *, context: dict[str, Any] | None = None) -> None:
        if not self.error_code:
            raise ValueError(f"Error code not defined for {self.__class__.__name__}")
        super().__init__(message if message is not None else CODE_TO_MESSAGE.get(self.error_code, self.error_code))
        self.context = dict(context) if context else {}

    def to_dict(self) -> dict[str, Any]:
        return {"error_code": self.error_code, "message": str(self), "context": dict(self.context)}


class ImageDecodeError(RenderError):
    error_code = "RENDER_001"


class BackendInitError(RenderError):
    error_code = "RENDER_002"


class InvalidPresetError(RenderError):
    error_code = "RENDER_003"


class BlockParseError(RenderError):
    error_code = "RENDER_004"
