from __future__ import annotations

import logging
from enum import Enum

from catalogpdf.state import CancellationToken
from catalogpdf.types import LoadedImage

from . import primitives, theme
from .backend import DrawingBackend
from .layout import PageContext, center_x, clip_lines, fit_within_box, wrap_text


logger = logging.getLogger(__name__)

# Space kept free under an image for the name and price of the same item.
IMAGE_TEXT_RESERVE = 40.0
MIN_IMAGE_HEIGHT = 20.0


class PageState(str, Enum):
    idle = 'idle'
    cover = 'cover'
    item_page = 'item_page'
    finalizing = 'finalizing'


class PageComposer:
    """Owns page transitions, header/footer and block placement for one document.

    The first page state reuses the page the backend was created with; every
    later transition closes the current page with its footer and appends a new
    one. ``finalize`` draws the footer of the last page, which no transition
    ever reaches.
    """

    def __init__(
        self,
        backend: DrawingBackend,
        *,
        total_pages: int,
        brand: str,
        contact_line: str,
        font: str = 'Helvetica',
        bold_font: str = 'Helvetica-Bold',
        divider_dots: int = 7,
        gradient_strips: int = 20,
        token: CancellationToken | None = None,
    ):
        if total_pages < 1:
            raise ValueError('a document needs at least one page')
        self.backend = backend
        self.total_pages = total_pages
        self.brand = brand
        self.contact_line = contact_line
        self.font = font
        self.bold_font = bold_font
        self.divider_dots = divider_dots
        self.gradient_strips = gradient_strips
        self.token = token or CancellationToken()
        self.state = PageState.idle
        self.item_index = 0
        self._ctx: PageContext | None = None

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def page_width(self) -> float:
        return self.backend.page_width

    @property
    def page_height(self) -> float:
        return self.backend.page_height

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * theme.MARGIN

    @property
    def content_top(self) -> float:
        return theme.MARGIN + theme.HEADER_HEIGHT

    @property
    def content_bottom(self) -> float:
        return self.page_height - theme.MARGIN - theme.FOOTER_HEIGHT

    def measure(self, font: str, size: float):
        return lambda value: self.backend.measure_text(value, font=font, size=size)

    def checkpoint(self) -> None:
        self.token.raise_if_cancelled()

    # ------------------------------------------------------------------
    # Page transitions
    # ------------------------------------------------------------------

    def start_cover(self) -> PageContext:
        if self.state is not PageState.idle:
            raise RuntimeError(f'cover must be the first page, composer is in {self.state.value}')
        self.checkpoint()
        ctx = PageContext(page_number=1, total_pages=self.total_pages, cursor=0.0)
        primitives.gradient_fill(
            self.backend,
            0,
            0,
            self.page_width,
            self.page_height,
            top=theme.BRAND_ROSE,
            bottom=theme.BRAND_ROSE_LIGHT,
            strips=self.gradient_strips,
        )
        self.state = PageState.cover
        self._ctx = self.draw_header(ctx)
        return self._ctx

    def start_item_page(self, ctx: PageContext | None = None) -> PageContext:
        if self.state is PageState.finalizing:
            raise RuntimeError('document is already finalized')
        self.checkpoint()
        if self.state is PageState.idle:
            ctx = PageContext(page_number=1, total_pages=self.total_pages, cursor=0.0)
        else:
            current = ctx or self._ctx
            assert current is not None
            self.draw_footer(current)
            self.backend.add_page()
            ctx = current.next_page(0.0)
        self.state = PageState.item_page
        self.item_index += 1
        self._ctx = self.draw_header(ctx)
        return self._ctx

    def finalize(self, ctx: PageContext | None = None) -> None:
        if self.state in (PageState.idle, PageState.finalizing):
            raise RuntimeError(f'cannot finalize from {self.state.value}')
        current = ctx or self._ctx
        assert current is not None
        self.checkpoint()
        self.draw_footer(current)
        self.state = PageState.finalizing
        if self.backend.page_count != self.total_pages:
            raise RuntimeError(
                f'rendered {self.backend.page_count} pages, expected {self.total_pages}'
            )

    # ------------------------------------------------------------------
    # Header and footer
    # ------------------------------------------------------------------

    def _chrome_colors(self) -> tuple[theme.Color, theme.Color, theme.Color]:
        if self.state is PageState.cover:
            return theme.WHITE, theme.WHITE, theme.WHITE
        return theme.BRAND_ROSE_DARK, theme.MUTED, theme.HAIRLINE

    def draw_header(self, ctx: PageContext) -> PageContext:
        brand_color, counter_color, rule_color = self._chrome_colors()
        baseline = theme.MARGIN + 5
        self.backend.text(
            theme.MARGIN,
            baseline,
            self.brand,
            font=self.bold_font,
            size=theme.HEADER_BRAND_SIZE,
            color=brand_color,
        )
        self.backend.text(
            self.page_width - theme.MARGIN,
            baseline,
            ctx.counter_label,
            font=self.font,
            size=theme.HEADER_COUNTER_SIZE,
            color=counter_color,
            align='right',
        )
        primitives.divider(
            self.backend,
            theme.MARGIN,
            theme.MARGIN + 8,
            self.content_width,
            color=rule_color,
            dot_color=brand_color,
            dots=self.divider_dots,
        )
        return PageContext(page_number=ctx.page_number, total_pages=ctx.total_pages, cursor=self.content_top)

    def draw_footer(self, ctx: PageContext) -> None:
        _, text_color, rule_color = self._chrome_colors()
        top = self.content_bottom
        primitives.divider(
            self.backend,
            theme.MARGIN,
            top,
            self.content_width,
            color=rule_color,
            dot_color=rule_color,
            dots=self.divider_dots,
        )
        self.backend.text(
            self.page_width / 2,
            top + theme.FOOTER_HEIGHT - 2,
            self.contact_line,
            font=self.font,
            size=theme.FOOTER_SIZE,
            color=text_color,
            align='center',
        )

    # ------------------------------------------------------------------
    # Blocks. Each takes the current context and returns the advanced one.
    # ------------------------------------------------------------------

    def spacer(self, ctx: PageContext, height: float) -> PageContext:
        return ctx.advance(min(height, ctx.remaining(self.content_bottom)))

    def text_block(
        self,
        ctx: PageContext,
        text: str,
        *,
        size: float,
        bold: bool = False,
        color: theme.Color = theme.INK,
        align: str = 'center',
        gap: float = 2.0,
        max_lines: int | None = None,
    ) -> PageContext:
        self.checkpoint()
        font = self.bold_font if bold else self.font
        measure = self.measure(font, size)
        leading = theme.line_height(size)
        lines = wrap_text(text, self.content_width, measure)
        if not lines:
            return ctx

        room = int((ctx.remaining(self.content_bottom) + 1e-9) // leading)
        if max_lines is not None:
            room = min(room, max_lines)
        fitted = clip_lines(lines, room, measure, self.content_width)
        if not fitted:
            logger.debug('Dropped text block on page %s: no room left', ctx.page_number)
            return ctx
        if len(fitted) < len(lines):
            logger.debug('Clipped text block on page %s to %s of %s lines', ctx.page_number, len(fitted), len(lines))

        if align == 'center':
            x = self.page_width / 2
        elif align == 'right':
            x = self.page_width - theme.MARGIN
        else:
            x = theme.MARGIN
        first_baseline = ctx.cursor + size * primitives.MM_PER_POINT
        for index, line in enumerate(fitted):
            self.backend.text(
                x,
                first_baseline + index * leading,
                line,
                font=font,
                size=size,
                color=color,
                align=align,
            )
        return self.spacer(ctx.advance(len(fitted) * leading), gap)

    def badges_block(self, ctx: PageContext, variants: list[str], *, gap: float = 3.0) -> PageContext:
        self.checkpoint()
        if not variants:
            return ctx
        if not ctx.fits(theme.BADGE_HEIGHT, self.content_bottom):
            logger.debug('Dropped badge row on page %s: no room left', ctx.page_number)
            return ctx
        consumed = primitives.badge_row(
            self.backend,
            variants,
            ctx.cursor,
            page_width=self.page_width,
            font=self.bold_font,
        )
        return self.spacer(ctx.advance(consumed), gap)

    def divider_block(self, ctx: PageContext, *, gap: float = 2.0) -> PageContext:
        self.checkpoint()
        if not ctx.fits(theme.DIVIDER_HEIGHT, self.content_bottom):
            return ctx
        consumed = primitives.divider(
            self.backend,
            theme.MARGIN,
            ctx.cursor,
            self.content_width,
            dots=self.divider_dots,
        )
        return self.spacer(ctx.advance(consumed), gap)

    def image_block(
        self,
        ctx: PageContext,
        image: LoadedImage,
        *,
        max_height: float,
        watermark: tuple[str, str] | None = None,
    ) -> PageContext:
        """Framed, centred image scaled to the box that is still free.

        ``watermark`` is a ``(brand, price_text)`` pair for the bottom bar.
        """
        self.checkpoint()
        pad = theme.FRAME_PADDING
        frame_extra = 2 * pad + primitives.SHADOW_LAYERS[0][0]
        box_h = min(max_height, ctx.remaining(self.content_bottom) - frame_extra - IMAGE_TEXT_RESERVE)
        if box_h < MIN_IMAGE_HEIGHT:
            logger.debug('Skipped image on page %s: only %.1fmm free', ctx.page_number, box_h)
            return ctx

        w, h = fit_within_box(image.width, image.height, self.content_width - 2 * pad, box_h)
        x = center_x(w, self.page_width)
        y = ctx.cursor + pad
        consumed = primitives.framed_image(self.backend, image, x, y, w, h)
        if watermark is not None:
            brand, price_text = watermark
            primitives.image_watermark(
                self.backend,
                x,
                y,
                w,
                h,
                brand=brand,
                price_text=price_text,
                font=self.bold_font,
            )
        return self.spacer(ctx.advance(consumed), theme.BLOCK_GAP)

    def placeholder_block(self, ctx: PageContext, *, height: float = 30.0) -> PageContext:
        self.checkpoint()
        if not ctx.fits(height + IMAGE_TEXT_RESERVE, self.content_bottom):
            return ctx
        width = self.content_width * 0.6
        consumed = primitives.image_placeholder(
            self.backend,
            center_x(width, self.page_width),
            ctx.cursor,
            width,
            height,
            font=self.font,
        )
        return self.spacer(ctx.advance(consumed), theme.BLOCK_GAP)
