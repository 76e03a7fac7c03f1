from typing import Optional
from html import escape
from urllib.parse import quote

__all__ = ["placeholder_avatar"]

_AVATAR_SVG = (
    "<svg xmlns='http://www.w3.org/2000/svg' width='150' height='150' viewBox='0 0 150 150'>"
    "<rect width='100%' height='100%' fill='#A970FF'/>"
    "<text x='50%' y='50%' dominant-baseline='middle' text-anchor='middle' "
    "font-family='Arial, sans-serif' font-size='80' fill='#FFFFFF'>{letter}</text>"
    "</svg>"
)


def placeholder_avatar(name: Optional[str]) -> str:
    """Inline SVG data URI showing the first letter of ``name`` ("V" when blank)."""
    text = (name or "").strip()
    letter = text[0].upper() if text else "V"
    svg = _AVATAR_SVG.format(letter=escape(letter))
    return "data:image/svg+xml," + quote(svg, safe="/:='(),; ")
