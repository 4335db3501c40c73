"""Color vocabulary for attribute clauses."""

from typing import Dict


COLOR_NAMES: Dict[str, str] = {
    "RED": "#FF0000",
    "GREEN": "#00FF00",
    "BLUE": "#0000FF",
    "YELLOW": "#FFFF00",
    "ORANGE": "#FFA500",
    "PURPLE": "#800080",
    "PINK": "#FFC0CB",
    "BROWN": "#8B4513",
    "BLACK": "#000000",
    "WHITE": "#FFFFFF",
    "GRAY": "#808080",
    "GREY": "#808080",
    "NAVY": "#000080",
    "NAVY_BLUE": "#000080",
    "CHARCOAL": "#36454F",
    "BLONDE": "#FAD5A5",
    "BRUNETTE": "#8B4513",
}


def is_hex_color(text: str) -> bool:
    """True for #RGB or #RRGGBB literals."""
    if not text.startswith("#") or len(text) not in (4, 7):
        return False
    return all(c in "0123456789abcdefABCDEF" for c in text[1:])


def is_color(text: str) -> bool:
    """True if ``text`` is a known color name or a hex literal."""
    return text.upper() in COLOR_NAMES or is_hex_color(text)


def normalize_color(text: str) -> str:
    """
    Map a color name to ``#RRGGBB``.

    Hex literals and names outside the vocabulary are returned unchanged.
    """
    return COLOR_NAMES.get(text.upper(), text)
