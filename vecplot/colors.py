from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int
    a: float = 1.0

    def __post_init__(self) -> None:
        for name, channel in (("r", self.r), ("g", self.g), ("b", self.b)):
            if not 0 <= channel <= 255:
                raise ValueError(f"color channel {name} must be in [0, 255], got {channel}")
        if not 0.0 <= self.a <= 1.0:
            raise ValueError(f"color alpha must be in [0, 1], got {self.a}")

    def with_alpha(self, alpha: float) -> "Color":
        return Color(self.r, self.g, self.b, min(1.0, max(0.0, float(alpha))))

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


BLACK = Color(0, 0, 0)
WHITE = Color(255, 255, 255)

NAMED_COLORS: dict[str, Color] = {
    "black": BLACK,
    "k": BLACK,
    "white": WHITE,
    "w": WHITE,
    "red": Color(255, 0, 0),
    "r": Color(255, 0, 0),
    "green": Color(0, 128, 0),
    "g": Color(0, 128, 0),
    "blue": Color(0, 0, 255),
    "b": Color(0, 0, 255),
    "yellow": Color(255, 255, 0),
    "y": Color(255, 255, 0),
    "cyan": Color(0, 255, 255),
    "c": Color(0, 255, 255),
    "magenta": Color(255, 0, 255),
    "m": Color(255, 0, 255),
    "orange": Color(255, 165, 0),
    "purple": Color(128, 0, 128),
    "gray": Color(128, 128, 128),
    "grey": Color(128, 128, 128),
    "lightgray": Color(211, 211, 211),
    "lightgrey": Color(211, 211, 211),
    "darkgray": Color(64, 64, 64),
    "darkgrey": Color(64, 64, 64),
}

DEFAULT_COLOR_CYCLE: tuple[Color, ...] = (
    Color(31, 119, 180),
    Color(255, 127, 14),
    Color(44, 160, 44),
    Color(214, 39, 40),
    Color(148, 103, 189),
    Color(140, 86, 75),
    Color(227, 119, 194),
    Color(127, 127, 127),
    Color(188, 189, 34),
    Color(23, 190, 207),
)

# viridis sampled at 0, 0.25, 0.5, 0.75, 1
_COLORMAP_ANCHORS = np.asarray(
    [
        [68, 1, 84],
        [59, 82, 139],
        [33, 145, 140],
        [94, 201, 98],
        [253, 231, 37],
    ],
    dtype=np.float64,
)

ColorLike = Color | str | tuple[int, int, int] | tuple[int, int, int, float]


def cycle_color(index: int) -> Color:
    return DEFAULT_COLOR_CYCLE[index % len(DEFAULT_COLOR_CYCLE)]


def parse_color(value: ColorLike) -> Color:
    if isinstance(value, Color):
        return value
    if isinstance(value, tuple):
        if len(value) == 3:
            return Color(int(value[0]), int(value[1]), int(value[2]))
        if len(value) == 4:
            return Color(int(value[0]), int(value[1]), int(value[2]), float(value[3]))
        raise ValueError(f"color tuple must have 3 or 4 entries, got {len(value)}")
    if not isinstance(value, str):
        raise ValueError(f"unsupported color value: {value!r}")
    text = value.strip()
    if text.startswith("#"):
        return _parse_hex(text)
    named = NAMED_COLORS.get(text.lower())
    if named is None:
        raise ValueError(f"unknown color: {value!r}")
    return named


def colormap(t: np.ndarray | float) -> np.ndarray:
    """Map values in [0, 1] onto the sequential colormap; returns uint8 RGB rows."""
    arr = np.clip(np.atleast_1d(np.asarray(t, dtype=np.float64)), 0.0, 1.0)
    stops = np.linspace(0.0, 1.0, _COLORMAP_ANCHORS.shape[0])
    channels = [np.interp(arr, stops, _COLORMAP_ANCHORS[:, c]) for c in range(3)]
    return np.rint(np.stack(channels, axis=-1)).astype(np.uint8)


def colormap_color(t: float) -> Color:
    r, g, b = colormap(t)[0].tolist()
    return Color(int(r), int(g), int(b))


def _parse_hex(text: str) -> Color:
    digits = text[1:]
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) not in (6, 8):
        raise ValueError(f"hex color must have 3, 6 or 8 digits: {text!r}")
    try:
        r = int(digits[0:2], 16)
        g = int(digits[2:4], 16)
        b = int(digits[4:6], 16)
        a = int(digits[6:8], 16) / 255.0 if len(digits) == 8 else 1.0
    except ValueError as exc:
        raise ValueError(f"invalid hex color: {text!r}") from exc
    return Color(r, g, b, a)
