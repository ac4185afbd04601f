from __future__ import annotations

_WIDE = frozenset("mwMW")
_NARROW = frozenset("iIlj1!|")


def _is_emoji(char: str) -> bool:
    return 0x1F000 <= ord(char) <= 0x1FFFF


def estimate_width(text: str, font_size: float, is_bold: bool) -> float:
    """
    Heuristic pixel width of a single line, without shaping the text.

    Layout uses this instead of real font metrics so geometry does not depend on
    which font file happens to be installed. It errs wide for Latin text.
    """
    avg = font_size * (0.62 if is_bold else 0.58)
    width = 0.0
    for char in text:
        if char == " ":
            width += font_size * 0.28
        elif _is_emoji(char):
            width += font_size * 1.0
        elif char in _WIDE:
            width += avg * 1.3
        elif char in _NARROW:
            width += avg * 0.5
        elif char.isupper():
            width += avg * 1.1
        else:
            width += avg
    return width
