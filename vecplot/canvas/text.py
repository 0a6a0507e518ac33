from __future__ import annotations

from functools import lru_cache

from PIL import ImageFont


# Family written into the SVG; measurement always uses Pillow's bundled font so
# layout does not depend on which fonts the host has installed.
DEFAULT_FONT_FAMILY = "DejaVu Sans"
DEFAULT_FONT_SIZE_PX = 12.0


def text_size(
    text: str,
    *,
    font_size_px: float = DEFAULT_FONT_SIZE_PX,
    rotate_deg: int = 0,
) -> tuple[int, int]:
    font = _load_font(font_size_px)
    if not text:
        ascent, descent = font.getmetrics()
        return (0, max(1, int(ascent + descent)))
    left, top, right, bottom = font.getbbox(text)
    w = max(0, int(right - left))
    h = max(1, int(bottom - top))
    turns = _normalize_quarter_turns(rotate_deg)
    if turns % 2 == 1:
        return (h, w)
    return (w, h)


@lru_cache(maxsize=64)
def _load_font(font_size_px: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    return ImageFont.load_default(size=max(1, int(round(font_size_px))))


def _normalize_quarter_turns(rotate_deg: int) -> int:
    if rotate_deg % 90 != 0:
        raise ValueError("rotate_deg must be a multiple of 90")
    return (rotate_deg // 90) % 4
