"""Page geometry and palette shared by the catalog layouts.

All lengths are millimetres measured from the top-left corner of an A4 page;
colours are 0-255 RGB triples.
"""

from __future__ import annotations

Color = tuple[int, int, int]

PAGE_WIDTH = 210.0
PAGE_HEIGHT = 297.0
MARGIN = 15.0
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN

HEADER_HEIGHT = 16.0
FOOTER_HEIGHT = 14.0
CONTENT_TOP = MARGIN + HEADER_HEIGHT
CONTENT_BOTTOM = PAGE_HEIGHT - MARGIN - FOOTER_HEIGHT

# Item blocks
COLLECTION_IMAGE_MAX_HEIGHT = 110.0
SINGLE_IMAGE_MAX_HEIGHT = 120.0
FRAME_PADDING = 3.0
BLOCK_GAP = 5.0
BADGE_HEIGHT = 6.0
BADGE_PADDING = 6.0
BADGE_GAP = 3.0
BADGE_FONT_SIZE = 8.0
DIVIDER_HEIGHT = 6.0
DIVIDER_DOT_RADIUS = 0.6
LINE_HEIGHT_FACTOR = 0.45  # mm of leading per point of font size
WATERMARK_BAR_HEIGHT = 8.0

# Font sizes (points)
COVER_TITLE_SIZE = 34.0
COVER_SUBTITLE_SIZE = 16.0
COVER_META_SIZE = 12.0
COVER_WATERMARK_SIZE = 60.0
HEADER_BRAND_SIZE = 11.0
HEADER_COUNTER_SIZE = 9.0
FOOTER_SIZE = 8.0
COLLECTION_TITLE_SIZE = 18.0
SINGLE_TITLE_SIZE = 22.0
PRICE_SIZE = 16.0
BODY_SIZE = 11.0
META_SIZE = 10.0

# Palette
BRAND_ROSE: Color = (212, 140, 156)
BRAND_ROSE_LIGHT: Color = (248, 223, 229)
BRAND_ROSE_DARK: Color = (158, 78, 98)
MINT: Color = (168, 213, 186)
GOLD: Color = (214, 168, 62)
WHITE: Color = (255, 255, 255)
INK: Color = (33, 33, 33)
MUTED: Color = (110, 110, 110)
HAIRLINE: Color = (226, 210, 214)
SHADOW: Color = (60, 40, 45)
WATERMARK_GREY: Color = (200, 200, 200)

BADGE_VARIANTS: dict[str, tuple[str, Color, Color]] = {
    # variant: (label, fill, text)
    'featured': ('Featured', GOLD, WHITE),
    'new': ('New Edition', MINT, INK),
}


def line_height(font_size: float) -> float:
    return font_size * LINE_HEIGHT_FACTOR
