"""Font lookup and registration for the PDF backend.

reportlab's built-in fonts only carry Latin-1 glyphs. A TrueType font can be
configured with ``PDF_FONT_PATH`` / ``PDF_FONT_BOLD_PATH``; text containing CJK
characters that the chosen font cannot show is drawn with a CID font instead
(``STSong-Light`` by default, which PDF viewers supply themselves).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.ttfonts import TTFError, TTFont


logger = logging.getLogger(__name__)

DEFAULT_FONT = 'Helvetica'
CUSTOM_FONT_NAME = 'CatalogSans'
CUSTOM_BOLD_FONT_NAME = 'CatalogSans-Bold'

# successful lookups only
_KNOWN_FONTS: set[str] = set()


@dataclass(frozen=True)
class CatalogFonts:
    regular: str
    bold: str
    unicode_fallback: str | None = None


def _is_cjk(char: str) -> bool:
    code = ord(char)
    return (
        0x4E00 <= code <= 0x9FFF  # CJK Unified Ideographs
        or 0x3400 <= code <= 0x4DBF  # CJK Extension A
        or 0xF900 <= code <= 0xFAFF  # CJK Compatibility Ideographs
        or 0x3000 <= code <= 0x30FF  # CJK punctuation, kana
        or 0xAC00 <= code <= 0xD7AF  # Hangul syllables
        or 0xFF00 <= code <= 0xFFEF  # full-width forms
    )


def contains_cjk(value: str) -> bool:
    return any(_is_cjk(char) for char in str(value or ''))


def font_available(font_name: str | None) -> bool:
    token = str(font_name or '').strip()
    if not token:
        return False
    if token in _KNOWN_FONTS:
        return True
    try:
        pdfmetrics.getFont(token)
    except KeyError:
        return False
    _KNOWN_FONTS.add(token)
    return True


def safe_font(font_name: str) -> str:
    if font_available(font_name):
        return font_name
    logger.debug('PDF font %s is not registered; falling back to %s', font_name, DEFAULT_FONT)
    return DEFAULT_FONT


def register_ttf_font(font_name: str, font_path: Path) -> bool:
    if font_available(font_name):
        return True
    try:
        pdfmetrics.registerFont(TTFont(font_name, str(font_path)))
    except (TTFError, OSError) as exc:
        logger.warning('Failed to register PDF font %s from %s: %s', font_name, font_path, exc)
        return False
    _KNOWN_FONTS.add(font_name)
    logger.info('Registered PDF font %s from %s', font_name, font_path)
    return True


def register_cid_font(font_name: str | None) -> str | None:
    token = str(font_name or '').strip()
    if not token:
        return None
    if font_available(token):
        return token
    try:
        pdfmetrics.registerFont(UnicodeCIDFont(token))
    except KeyError as exc:
        logger.warning('Failed to register fallback PDF font %s: %s', token, exc)
        return None
    _KNOWN_FONTS.add(token)
    return token


def resolve_fonts(
    *,
    font_name: str = DEFAULT_FONT,
    bold_font_name: str = 'Helvetica-Bold',
    font_path: Path | None = None,
    bold_font_path: Path | None = None,
    unicode_fallback: str | None = 'STSong-Light',
) -> CatalogFonts:
    """Pick the regular and bold fonts, registering configured TrueType files."""
    regular = safe_font(font_name)
    bold = safe_font(bold_font_name)
    if font_path is not None and register_ttf_font(CUSTOM_FONT_NAME, font_path):
        regular = CUSTOM_FONT_NAME
        bold = CUSTOM_FONT_NAME
    if bold_font_path is not None and register_ttf_font(CUSTOM_BOLD_FONT_NAME, bold_font_path):
        bold = CUSTOM_BOLD_FONT_NAME
    return CatalogFonts(regular=regular, bold=bold, unicode_fallback=unicode_fallback)


def _covers(font_name: str, value: str) -> bool:
    face = getattr(pdfmetrics.getFont(font_name), 'face', None)
    char_map = getattr(face, 'charToGlyph', None)
    if not char_map:
        return False
    return all(ord(char) in char_map for char in value if _is_cjk(char))


def font_for_text(value: str, font_name: str, unicode_fallback: str | None = None) -> str:
    """Font that can show ``value``: ``font_name`` unless it lacks CJK glyphs the text needs."""
    font = safe_font(font_name)
    if not unicode_fallback or font == unicode_fallback or not contains_cjk(value):
        return font
    if _covers(font, value):
        return font
    return register_cid_font(unicode_fallback) or font
