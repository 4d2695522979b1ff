from __future__ import annotations

import re
from dataclasses import dataclass

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_NAME_RE = re.compile(r"^[A-Za-z]+$")

# The handful of names the chart parameters are usually given with.
# Every name is also a plotly (CSS) color name.
NAMED_COLORS: dict[str, tuple[int, int, int]] = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "lime": (0, 255, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "orange": (255, 165, 0),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "purple": (128, 0, 128),
    "cyan": (0, 255, 255),
    "magenta": (255, 0, 255),
    "dodgerblue": (30, 144, 255),
    "crimson": (220, 20, 60),
    "seagreen": (46, 139, 87),
}


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int
    a: int = 255
    name: str | None = None

    def with_alpha(self, alpha: int) -> "Color":
        if not 0 <= alpha <= 255:
            raise ValueError(f"alpha must be in 0..255, got {alpha}")
        return Color(self.r, self.g, self.b, alpha)

    def to_css(self) -> str:
        if self.name is not None and self.a == 255:
            return self.name
        if self.a == 255:
            return f"#{self.r:02x}{self.g:02x}{self.b:02x}"
        return f"rgba({self.r},{self.g},{self.b},{self.a / 255:.3f})"


RED = Color(255, 0, 0, name="red")
GREEN = Color(0, 128, 0, name="green")


def color_from_hex(text: str) -> Color:
    """
    Parses '#AARRGGBB' or '#RRGGBB' (leading '#' optional).
    Six-digit colors are fully opaque.
    """
    m = _HEX_RE.match(str(text).strip())
    if m is None:
        raise ValueError(f"Invalid hex color: {text!r}")
    digits = m.group(1)
    if len(digits) == 8:
        a, r, g, b = (int(digits[i:i + 2], 16) for i in range(0, 8, 2))
        return Color(r, g, b, a)
    r, g, b = (int(digits[i:i + 2], 16) for i in range(0, 6, 2))
    return Color(r, g, b)


def color_from_name(name: str) -> Color:
    key = str(name).strip().lower()
    if not _NAME_RE.match(key):
        raise ValueError(f"Invalid color name: {name!r}")
    rgb = NAMED_COLORS.get(key)
    if rgb is None:
        raise ValueError(f"Unknown color name: {name!r}. Known names: {', '.join(sorted(NAMED_COLORS))}")
    return Color(*rgb, name=key)


def parse_color(text: str) -> Color:
    """Accepts either a hex color or a color name (hex wins, so 'FFAABB' is hex)."""
    raw = str(text).strip()
    if raw.startswith("#") or _HEX_RE.match(raw):
        return color_from_hex(raw)
    return color_from_name(raw)
