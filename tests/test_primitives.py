from __future__ import annotations

import pytest

from catalogpdf.report import primitives, theme
from catalogpdf.report.backend import RecordingBackend
from catalogpdf.types import LoadedImage


FONT = 'Helvetica-Bold'


class TestGradient:
    def test_strips_interpolate_between_endpoints(self):
        backend = RecordingBackend(supports_linear_gradient=False)
        consumed = primitives.gradient_fill(
            backend, 0, 0, 210, 297, top=(0, 0, 0), bottom=(190, 95, 19), strips=20
        )

        strips = backend.calls('fill_rect')
        assert consumed == 297
        assert len(strips) == 20
        assert strips[0].args['color'] == (0, 0, 0)
        assert strips[-1].args['color'] == (190, 95, 19)
        reds = [op.args['color'][0] for op in strips]
        assert reds == sorted(reds)
        assert strips[-1].args['y'] + strips[-1].args['h'] == pytest.approx(297)

    def test_native_gradient_is_preferred(self):
        backend = RecordingBackend(supports_linear_gradient=True)
        primitives.gradient_fill(backend, 0, 0, 210, 297, top=theme.BRAND_ROSE, bottom=theme.WHITE)

        assert len(backend.calls('linear_gradient')) == 1
        assert backend.calls('fill_rect') == []

    def test_interpolate_color_clamps(self):
        assert primitives.interpolate_color((0, 0, 0), (100, 200, 50), 0.5) == (50, 100, 25)
        assert primitives.interpolate_color((0, 0, 0), (100, 200, 50), 2) == (100, 200, 50)


def test_divider_has_rule_and_evenly_spaced_dots():
    backend = RecordingBackend()
    consumed = primitives.divider(backend, 15, 100, 180, dots=7)

    assert consumed == theme.DIVIDER_HEIGHT
    assert len(backend.calls('line')) == 1
    dots = backend.calls('circle')
    assert len(dots) == 7
    xs = [op.args['cx'] for op in dots]
    gaps = {round(b - a, 6) for a, b in zip(xs, xs[1:])}
    assert gaps == {round(180 / 8, 6)}
    assert all(op.args['cy'] == backend.calls('line')[0].args['y1'] for op in dots)


class TestBadges:
    def test_pill_sized_from_text(self):
        backend = RecordingBackend()
        width = primitives.badge(backend, 20, 50, 'featured', font=FONT)

        pill = backend.calls('rounded_rect')[0]
        label = backend.calls('text')[0]
        expected = backend.measure_text('Featured', font=FONT, size=theme.BADGE_FONT_SIZE) + theme.BADGE_PADDING
        assert width == pytest.approx(expected)
        assert pill.args['w'] == pytest.approx(expected)
        assert pill.args['h'] == theme.BADGE_HEIGHT
        assert pill.args['radius'] == theme.BADGE_HEIGHT / 2
        assert pill.args['fill'] == theme.GOLD
        assert label.args['value'] == 'Featured'

    def test_falls_back_to_plain_rectangle(self):
        backend = RecordingBackend(supports_rounded_rect=False)
        primitives.badge(backend, 20, 50, 'new', font=FONT)

        assert backend.calls('rounded_rect') == []
        assert backend.calls('fill_rect')[0].args['color'] == theme.MINT

    def test_row_is_centred_group(self):
        backend = RecordingBackend()
        consumed = primitives.badge_row(backend, ['featured', 'new'], 80, page_width=210, font=FONT)

        pills = backend.calls('rounded_rect')
        left = pills[0].args['x']
        right = pills[-1].args['x'] + pills[-1].args['w']
        expected = (
            primitives.badge_width(backend, 'featured', font=FONT)
            + primitives.badge_width(backend, 'new', font=FONT)
            + theme.BADGE_GAP
        )
        assert consumed == theme.BADGE_HEIGHT
        assert right - left == pytest.approx(expected)
        assert left + right == pytest.approx(210)

    def test_empty_row_draws_nothing(self):
        backend = RecordingBackend()
        assert primitives.badge_row(backend, [], 80, page_width=210, font=FONT) == 0.0
        assert backend.ops == []


class TestFrame:
    def test_shadow_layers_and_borders(self):
        backend = RecordingBackend()
        image = LoadedImage(data=b'jpeg', width=400, height=300)
        consumed = primitives.framed_image(backend, image, 30, 40, 100, 75)

        rounded = backend.calls('rounded_rect')
        shadows = [op for op in rounded if op.args['fill'] == theme.SHADOW]
        borders = [op for op in rounded if op.args['stroke'] is not None]
        assert [op.args['alpha'] for op in shadows] == sorted(op.args['alpha'] for op in shadows)
        offsets = [op.args['x'] - (30 - theme.FRAME_PADDING) for op in shadows]
        assert offsets == pytest.approx([3.0, 2.0, 1.0])
        assert [op.args['line_width'] for op in borders] == [0.8, 0.5, 0.25]
        assert len(backend.calls('add_image')) == 1
        # Shadows are painted before the image, borders after it.
        names = [op.name for op in backend.ops]
        assert names.index('add_image') > max(backend.ops.index(op) for op in shadows)
        assert names.index('add_image') < min(backend.ops.index(op) for op in borders)
        assert consumed == pytest.approx(75 + 2 * theme.FRAME_PADDING + 3.0)

    def test_plain_borders_without_rounded_rects(self):
        backend = RecordingBackend(supports_rounded_rect=False)
        primitives.layered_border(backend, 10, 10, 50, 50)
        assert [op.args['line_width'] for op in backend.calls('stroke_rect')] == [0.8, 0.5, 0.25]


class TestWatermarks:
    def test_cover_watermark_is_diagonal_and_faint(self):
        backend = RecordingBackend()
        primitives.cover_watermark(backend, 'giftforyou.idn', font=FONT)

        (op,) = backend.calls('text')
        assert op.args['angle'] == 45.0
        assert op.args['alpha'] < 0.2
        assert op.args['size'] == theme.COVER_WATERMARK_SIZE

    def test_image_bar_carries_brand_and_price(self):
        backend = RecordingBackend()
        primitives.image_watermark(
            backend, 20, 30, 120, 80, brand='giftforyou.idn', price_text='Rp 350.000', font=FONT
        )

        (bar,) = backend.calls('fill_rect')
        assert bar.args['y'] + bar.args['h'] == pytest.approx(110)
        assert 0 < bar.args['alpha'] < 1
        assert backend.texts() == ['giftforyou.idn', 'Rp 350.000']
        assert backend.calls('text')[1].args['align'] == 'right'

    def test_page_watermark_sits_in_bottom_margin(self):
        backend = RecordingBackend()
        primitives.page_watermark(backend, 'giftforyou.idn', font='Helvetica')

        (op,) = backend.calls('text')
        assert op.args['x'] == theme.MARGIN
        assert backend.page_height - theme.MARGIN < op.args['y'] < backend.page_height
        assert op.args['alpha'] == pytest.approx(0.3)
        assert op.args['color'] == theme.WATERMARK_GREY
        assert op.args['size'] == theme.FOOTER_SIZE
