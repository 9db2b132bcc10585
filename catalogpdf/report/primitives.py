"""Composite shapes built from the backend's basic fill/stroke/text calls.

Every primitive returns the vertical space it used so the caller can move
its cursor past it.
"""

from __future__ import annotations

from catalogpdf.types import LoadedImage

from . import theme
from .backend import DrawingBackend
from .theme import Color

MM_PER_POINT = 25.4 / 72

# (offset mm, opacity) from the outermost layer inwards
SHADOW_LAYERS: tuple[tuple[float, float], ...] = ((3.0, 0.05), (2.0, 0.09), (1.0, 0.14))
# (inset mm, line width mm, colour) from the outermost border inwards
BORDER_LAYERS: tuple[tuple[float, float, Color], ...] = (
    (0.0, 0.8, theme.BRAND_ROSE),
    (1.0, 0.5, theme.BRAND_ROSE_LIGHT),
    (1.8, 0.25, theme.HAIRLINE),
)


def interpolate_color(start: Color, end: Color, t: float) -> Color:
    t = max(0.0, min(1.0, t))
    return (
        round(start[0] + (end[0] - start[0]) * t),
        round(start[1] + (end[1] - start[1]) * t),
        round(start[2] + (end[2] - start[2]) * t),
    )


def baseline_for(top: float, box_height: float, font_size: float) -> float:
    """Baseline that vertically centres a line of ``font_size`` text inside a box."""
    return top + box_height / 2 + font_size * MM_PER_POINT * 0.35


def _supports(backend: DrawingBackend, capability: str) -> bool:
    return bool(getattr(backend, capability, False))


def _rounded_or_plain(
    backend: DrawingBackend,
    x: float,
    y: float,
    w: float,
    h: float,
    radius: float,
    *,
    color: Color,
    alpha: float = 1.0,
) -> None:
    if _supports(backend, 'supports_rounded_rect'):
        backend.rounded_rect(x, y, w, h, radius, fill=color, alpha=alpha)
    else:
        backend.fill_rect(x, y, w, h, color=color, alpha=alpha)


def gradient_fill(
    backend: DrawingBackend,
    x: float,
    y: float,
    w: float,
    h: float,
    *,
    top: Color,
    bottom: Color,
    strips: int = 20,
) -> float:
    """Vertical gradient from ``top`` to ``bottom``.

    Backends without a native gradient get ``strips`` horizontal bands whose
    colours are linearly interpolated between the two ends.
    """
    if _supports(backend, 'supports_linear_gradient'):
        backend.linear_gradient(x, y, w, h, top=top, bottom=bottom)
        return h

    strips = max(1, int(strips))
    strip_h = h / strips
    for index in range(strips):
        t = index / (strips - 1) if strips > 1 else 0.0
        strip_y = y + index * strip_h
        # bands overlap by 0.2mm
        band_h = min(strip_h + 0.2, y + h - strip_y)
        backend.fill_rect(x, strip_y, w, band_h, color=interpolate_color(top, bottom, t))
    return h


def divider(
    backend: DrawingBackend,
    x: float,
    y: float,
    w: float,
    *,
    color: Color = theme.HAIRLINE,
    dot_color: Color = theme.BRAND_ROSE,
    dots: int = 7,
) -> float:
    mid = y + theme.DIVIDER_HEIGHT / 2
    backend.line(x, mid, x + w, mid, color=color, line_width=0.3)
    if dots > 0:
        spacing = w / (dots + 1)
        for index in range(dots):
            backend.circle(x + spacing * (index + 1), mid, theme.DIVIDER_DOT_RADIUS, fill=dot_color)
    return theme.DIVIDER_HEIGHT


def badge_width(backend: DrawingBackend, variant: str, *, font: str) -> float:
    label = theme.BADGE_VARIANTS[variant][0]
    return backend.measure_text(label, font=font, size=theme.BADGE_FONT_SIZE) + theme.BADGE_PADDING


def badge(backend: DrawingBackend, x: float, y: float, variant: str, *, font: str) -> float:
    """Pill label at ``(x, y)``; returns its width."""
    label, fill, text_color = theme.BADGE_VARIANTS[variant]
    width = badge_width(backend, variant, font=font)
    height = theme.BADGE_HEIGHT
    _rounded_or_plain(backend, x, y, width, height, height / 2, color=fill)
    backend.text(
        x + width / 2,
        baseline_for(y, height, theme.BADGE_FONT_SIZE),
        label,
        font=font,
        size=theme.BADGE_FONT_SIZE,
        color=text_color,
        align='center',
    )
    return width


def badge_row_width(backend: DrawingBackend, variants: list[str], *, font: str) -> float:
    if not variants:
        return 0.0
    widths = sum(badge_width(backend, variant, font=font) for variant in variants)
    return widths + theme.BADGE_GAP * (len(variants) - 1)


def badge_row(backend: DrawingBackend, variants: list[str], y: float, *, page_width: float, font: str) -> float:
    """Badges as one horizontally centred group."""
    if not variants:
        return 0.0
    x = (page_width - badge_row_width(backend, variants, font=font)) / 2
    for variant in variants:
        x += badge(backend, x, y, variant, font=font) + theme.BADGE_GAP
    return theme.BADGE_HEIGHT


def shadow_layers(backend: DrawingBackend, x: float, y: float, w: float, h: float, *, radius: float = 2.5) -> None:
    for offset, alpha in SHADOW_LAYERS:
        _rounded_or_plain(backend, x + offset, y + offset, w, h, radius, color=theme.SHADOW, alpha=alpha)


def layered_border(backend: DrawingBackend, x: float, y: float, w: float, h: float, *, radius: float = 2.5) -> None:
    for inset, line_width, color in BORDER_LAYERS:
        bx, by, bw, bh = x + inset, y + inset, w - 2 * inset, h - 2 * inset
        if _supports(backend, 'supports_rounded_rect'):
            backend.rounded_rect(bx, by, bw, bh, max(0.5, radius - inset), stroke=color, line_width=line_width)
        else:
            backend.stroke_rect(bx, by, bw, bh, color=color, line_width=line_width)


def framed_image(
    backend: DrawingBackend,
    image: LoadedImage,
    x: float,
    y: float,
    w: float,
    h: float,
) -> float:
    """Image inside a padded card with a fake drop shadow and layered border."""
    pad = theme.FRAME_PADDING
    card_x, card_y, card_w, card_h = x - pad, y - pad, w + 2 * pad, h + 2 * pad
    shadow_layers(backend, card_x, card_y, card_w, card_h)
    _rounded_or_plain(backend, card_x, card_y, card_w, card_h, 2.5, color=theme.WHITE)
    backend.add_image(image, x, y, w, h)
    layered_border(backend, card_x, card_y, card_w, card_h)
    return card_h + SHADOW_LAYERS[0][0]


def image_placeholder(backend: DrawingBackend, x: float, y: float, w: float, h: float, *, font: str) -> float:
    backend.fill_rect(x, y, w, h, color=theme.BRAND_ROSE_LIGHT, alpha=0.5)
    backend.stroke_rect(x, y, w, h, color=theme.BRAND_ROSE, line_width=0.4, dash=(2.0, 1.5))
    backend.text(
        x + w / 2,
        baseline_for(y, h, theme.META_SIZE),
        'Image unavailable',
        font=font,
        size=theme.META_SIZE,
        color=theme.MUTED,
        align='center',
    )
    return h


def cover_watermark(backend: DrawingBackend, text: str, *, font: str) -> None:
    backend.text(
        backend.page_width / 2,
        backend.page_height / 2 + 40,
        text,
        font=font,
        size=theme.COVER_WATERMARK_SIZE,
        color=theme.WHITE,
        alpha=0.12,
        align='center',
        angle=45.0,
    )


def page_watermark(backend: DrawingBackend, text: str, *, font: str) -> None:
    """Faint brand line in the bottom-left margin of the current page."""
    backend.text(
        theme.MARGIN,
        backend.page_height - theme.MARGIN / 2,
        text,
        font=font,
        size=theme.FOOTER_SIZE,
        color=theme.WATERMARK_GREY,
        alpha=0.3,
    )


def image_watermark(
    backend: DrawingBackend,
    x: float,
    y: float,
    w: float,
    h: float,
    *,
    brand: str,
    price_text: str,
    font: str,
) -> None:
    """Semi-opaque bar across the bottom of an image carrying brand and price."""
    bar_h = min(theme.WATERMARK_BAR_HEIGHT, h)
    bar_y = y + h - bar_h
    backend.fill_rect(x, bar_y, w, bar_h, color=theme.INK, alpha=0.45)
    baseline = baseline_for(bar_y, bar_h, theme.META_SIZE)
    backend.text(x + 2, baseline, brand, font=font, size=theme.META_SIZE, color=theme.WHITE, alpha=0.85)
    backend.text(
        x + w - 2,
        baseline,
        price_text,
        font=font,
        size=theme.META_SIZE,
        color=theme.WHITE,
        alpha=0.85,
        align='right',
    )
