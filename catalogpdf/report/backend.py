"""Drawing backends for the catalog renderer.

Coordinates are millimetres from the top-left corner of the page and text is
positioned by its baseline. ``ReportLabBackend`` translates that into
reportlab's bottom-left point space; ``RecordingBackend`` keeps a log of every
call so layouts can be checked without producing a PDF.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any, Protocol

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen.canvas import Canvas

from catalogpdf.types import LoadedImage

from .fonts import font_for_text
from .theme import Color


class DrawingBackend(Protocol):
    page_width: float
    page_height: float
    supports_rounded_rect: bool
    supports_linear_gradient: bool

    @property
    def page_count(self) -> int: ...

    def fill_rect(self, x: float, y: float, w: float, h: float, *, color: Color, alpha: float = 1.0) -> None: ...

    def stroke_rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        *,
        color: Color,
        line_width: float = 0.3,
        alpha: float = 1.0,
        dash: tuple[float, float] | None = None,
    ) -> None: ...

    def rounded_rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        radius: float,
        *,
        fill: Color | None = None,
        stroke: Color | None = None,
        line_width: float = 0.3,
        alpha: float = 1.0,
    ) -> None: ...

    def circle(
        self,
        cx: float,
        cy: float,
        radius: float,
        *,
        fill: Color | None = None,
        stroke: Color | None = None,
        alpha: float = 1.0,
    ) -> None: ...

    def line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        *,
        color: Color,
        line_width: float = 0.3,
        alpha: float = 1.0,
    ) -> None: ...

    def text(
        self,
        x: float,
        y: float,
        value: str,
        *,
        font: str,
        size: float,
        color: Color,
        alpha: float = 1.0,
        align: str = 'left',
        angle: float = 0.0,
    ) -> None: ...

    def measure_text(self, value: str, *, font: str, size: float) -> float: ...

    def linear_gradient(self, x: float, y: float, w: float, h: float, *, top: Color, bottom: Color) -> None: ...

    def add_image(self, image: LoadedImage, x: float, y: float, w: float, h: float) -> None: ...

    def add_page(self) -> None: ...

    def save(self) -> bytes: ...


def measure_string(value: str, *, font: str, size: float, unicode_font: str | None = None) -> float:
    text = str(value or '')
    return pdfmetrics.stringWidth(text, font_for_text(text, font, unicode_font), size) / mm


def _rl_color(color: Color) -> colors.Color:
    r, g, b = color
    return colors.Color(r / 255.0, g / 255.0, b / 255.0)


class ReportLabBackend:
    supports_rounded_rect = True
    supports_linear_gradient = True

    def __init__(
        self,
        *,
        title: str = '',
        author: str = '',
        producer: str = 'catalogpdf',
        unicode_font: str | None = None,
    ):
        self.unicode_font = unicode_font
        self._buffer = io.BytesIO()
        self._canvas = Canvas(self._buffer, pagesize=A4)
        self._canvas.setTitle(title)
        self._canvas.setAuthor(author)
        self._canvas.setProducer(producer)
        self._page_count = 1
        self._saved = False
        self.page_width = A4[0] / mm
        self.page_height = A4[1] / mm

    @property
    def page_count(self) -> int:
        return self._page_count

    # Coordinate helpers: top-left millimetres -> bottom-left points
    def _x(self, x: float) -> float:
        return x * mm

    def _y(self, y: float) -> float:
        return (self.page_height - y) * mm

    def _box_bottom(self, y: float, h: float) -> float:
        return (self.page_height - y - h) * mm

    def _apply_alpha(self, alpha: float) -> None:
        value = max(0.0, min(1.0, float(alpha)))
        self._canvas.setFillAlpha(value)
        self._canvas.setStrokeAlpha(value)

    def fill_rect(self, x, y, w, h, *, color, alpha=1.0):
        c = self._canvas
        c.saveState()
        self._apply_alpha(alpha)
        c.setFillColor(_rl_color(color))
        c.rect(self._x(x), self._box_bottom(y, h), w * mm, h * mm, stroke=0, fill=1)
        c.restoreState()

    def stroke_rect(self, x, y, w, h, *, color, line_width=0.3, alpha=1.0, dash=None):
        c = self._canvas
        c.saveState()
        self._apply_alpha(alpha)
        c.setStrokeColor(_rl_color(color))
        c.setLineWidth(line_width * mm)
        if dash:
            c.setDash(dash[0] * mm, dash[1] * mm)
        c.rect(self._x(x), self._box_bottom(y, h), w * mm, h * mm, stroke=1, fill=0)
        c.restoreState()

    def rounded_rect(self, x, y, w, h, radius, *, fill=None, stroke=None, line_width=0.3, alpha=1.0):
        c = self._canvas
        c.saveState()
        self._apply_alpha(alpha)
        if fill is not None:
            c.setFillColor(_rl_color(fill))
        if stroke is not None:
            c.setStrokeColor(_rl_color(stroke))
            c.setLineWidth(line_width * mm)
        c.roundRect(
            self._x(x),
            self._box_bottom(y, h),
            w * mm,
            h * mm,
            radius * mm,
            stroke=1 if stroke is not None else 0,
            fill=1 if fill is not None else 0,
        )
        c.restoreState()

    def circle(self, cx, cy, radius, *, fill=None, stroke=None, alpha=1.0):
        c = self._canvas
        c.saveState()
        self._apply_alpha(alpha)
        if fill is not None:
            c.setFillColor(_rl_color(fill))
        if stroke is not None:
            c.setStrokeColor(_rl_color(stroke))
        c.circle(
            self._x(cx),
            self._y(cy),
            radius * mm,
            stroke=1 if stroke is not None else 0,
            fill=1 if fill is not None else 0,
        )
        c.restoreState()

    def line(self, x1, y1, x2, y2, *, color, line_width=0.3, alpha=1.0):
        c = self._canvas
        c.saveState()
        self._apply_alpha(alpha)
        c.setStrokeColor(_rl_color(color))
        c.setLineWidth(line_width * mm)
        c.line(self._x(x1), self._y(y1), self._x(x2), self._y(y2))
        c.restoreState()

    def text(self, x, y, value, *, font, size, color, alpha=1.0, align='left', angle=0.0):
        c = self._canvas
        c.saveState()
        self._apply_alpha(alpha)
        c.setFillColor(_rl_color(color))
        c.setFont(font_for_text(value, font, self.unicode_font), size)
        c.translate(self._x(x), self._y(y))
        if angle:
            c.rotate(angle)
        if align == 'center':
            c.drawCentredString(0, 0, value)
        elif align == 'right':
            c.drawRightString(0, 0, value)
        else:
            c.drawString(0, 0, value)
        c.restoreState()

    def measure_text(self, value, *, font, size):
        return measure_string(value, font=font, size=size, unicode_font=self.unicode_font)

    def linear_gradient(self, x, y, w, h, *, top, bottom):
        c = self._canvas
        c.saveState()
        clip = c.beginPath()
        clip.rect(self._x(x), self._box_bottom(y, h), w * mm, h * mm)
        c.clipPath(clip, stroke=0, fill=0)
        c.linearGradient(
            self._x(x),
            self._y(y),
            self._x(x),
            self._box_bottom(y, h),
            (_rl_color(top), _rl_color(bottom)),
            extend=False,
        )
        c.restoreState()

    def add_image(self, image, x, y, w, h):
        self._canvas.drawImage(
            ImageReader(io.BytesIO(image.data)),
            self._x(x),
            self._box_bottom(y, h),
            width=w * mm,
            height=h * mm,
        )

    def add_page(self):
        self._canvas.showPage()
        self._page_count += 1

    def save(self):
        if self._saved:
            raise RuntimeError('document has already been saved')
        self._canvas.save()
        self._saved = True
        return self._buffer.getvalue()


@dataclass
class DrawOp:
    name: str
    page: int
    args: dict[str, Any] = field(default_factory=dict)


class RecordingBackend:
    """Backend that records calls instead of drawing them."""

    def __init__(
        self,
        *,
        supports_rounded_rect: bool = True,
        supports_linear_gradient: bool = False,
        page_width: float = A4[0] / mm,
        page_height: float = A4[1] / mm,
        unicode_font: str | None = None,
    ):
        self.unicode_font = unicode_font
        self.supports_rounded_rect = supports_rounded_rect
        self.supports_linear_gradient = supports_linear_gradient
        self.page_width = page_width
        self.page_height = page_height
        self.ops: list[DrawOp] = []
        self.save_calls = 0
        self._page_count = 1

    @property
    def page_count(self) -> int:
        return self._page_count

    def _record(self, name: str, **args: Any) -> None:
        self.ops.append(DrawOp(name=name, page=self._page_count, args=args))

    def calls(self, name: str) -> list[DrawOp]:
        return [op for op in self.ops if op.name == name]

    def texts(self, page: int | None = None) -> list[str]:
        return [
            str(op.args['value'])
            for op in self.ops
            if op.name == 'text' and (page is None or op.page == page)
        ]

    def fill_rect(self, x, y, w, h, *, color, alpha=1.0):
        self._record('fill_rect', x=x, y=y, w=w, h=h, color=color, alpha=alpha)

    def stroke_rect(self, x, y, w, h, *, color, line_width=0.3, alpha=1.0, dash=None):
        self._record('stroke_rect', x=x, y=y, w=w, h=h, color=color, line_width=line_width, alpha=alpha, dash=dash)

    def rounded_rect(self, x, y, w, h, radius, *, fill=None, stroke=None, line_width=0.3, alpha=1.0):
        if not self.supports_rounded_rect:
            raise NotImplementedError('rounded rectangles are not supported by this backend')
        self._record(
            'rounded_rect',
            x=x,
            y=y,
            w=w,
            h=h,
            radius=radius,
            fill=fill,
            stroke=stroke,
            line_width=line_width,
            alpha=alpha,
        )

    def circle(self, cx, cy, radius, *, fill=None, stroke=None, alpha=1.0):
        self._record('circle', cx=cx, cy=cy, radius=radius, fill=fill, stroke=stroke, alpha=alpha)

    def line(self, x1, y1, x2, y2, *, color, line_width=0.3, alpha=1.0):
        self._record('line', x1=x1, y1=y1, x2=x2, y2=y2, color=color, line_width=line_width, alpha=alpha)

    def text(self, x, y, value, *, font, size, color, alpha=1.0, align='left', angle=0.0):
        self._record(
            'text',
            x=x,
            y=y,
            value=value,
            font=font,
            size=size,
            color=color,
            alpha=alpha,
            align=align,
            angle=angle,
        )

    def measure_text(self, value, *, font, size):
        return measure_string(value, font=font, size=size, unicode_font=self.unicode_font)

    def linear_gradient(self, x, y, w, h, *, top, bottom):
        if not self.supports_linear_gradient:
            raise NotImplementedError('linear gradients are not supported by this backend')
        self._record('linear_gradient', x=x, y=y, w=w, h=h, top=top, bottom=bottom)

    def add_image(self, image, x, y, w, h):
        self._record('add_image', x=x, y=y, w=w, h=h, width_px=image.width, height_px=image.height)

    def add_page(self):
        self._page_count += 1
        self._record('add_page')

    def save(self):
        self.save_calls += 1
        self._record('save')
        return b'%PDF-recording'
