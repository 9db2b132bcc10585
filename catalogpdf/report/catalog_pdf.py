from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable, Coroutine, Mapping, Sequence
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

from catalogpdf.adapters.image_loader import (
    HttpImageFetcher,
    ImageFetcher,
    ImageFetcherConfig,
    load_image,
    resolve_image_url,
)
from catalogpdf.config import Settings, get_settings
from catalogpdf.errors import EmptyInputError, OverallTimeoutError, ResourceError
from catalogpdf.state import CancellationToken, SingleFlightGate
from catalogpdf.storage import downloads_root, write_bytes_atomic
from catalogpdf.types import CatalogItem, LoadedImage, RenderOptions

from . import primitives, theme
from .backend import DrawingBackend, ReportLabBackend
from .composer import PageComposer
from .fonts import resolve_fonts
from .layout import PageContext, clip_lines, wrap_text


logger = logging.getLogger(__name__)

T = TypeVar('T')
BackendFactory = Callable[..., DrawingBackend]

_NON_ALNUM_PATTERN = re.compile(r'[^A-Za-z0-9]')

_ID_MONTHS = (
    'Januari',
    'Februari',
    'Maret',
    'April',
    'Mei',
    'Juni',
    'Juli',
    'Agustus',
    'September',
    'Oktober',
    'November',
    'Desember',
)

_GATE = SingleFlightGate()


def sanitize_filename_stem(name: str, *, fallback: str = 'Catalog') -> str:
    stem = _NON_ALNUM_PATTERN.sub('', str(name or ''))
    return stem or fallback


def collection_filename(name: str, day: date) -> str:
    return f'{sanitize_filename_stem(name, fallback="Catalog")}_Collection_{day.isoformat()}.pdf'


def single_item_filename(name: str, day: date) -> str:
    return f'{sanitize_filename_stem(name, fallback="Item")}_{day.isoformat()}.pdf'


def format_idr(amount: int) -> str:
    return 'Rp ' + f'{int(amount):,}'.replace(',', '.')


def format_long_date(day: date) -> str:
    return f'{day.day} {_ID_MONTHS[day.month - 1]} {day.year}'


def _coerce_item(value: CatalogItem | Mapping[str, Any]) -> CatalogItem:
    if isinstance(value, CatalogItem):
        return value
    return CatalogItem.model_validate(dict(value))


def _coerce_options(value: RenderOptions | Mapping[str, Any] | None) -> RenderOptions:
    if value is None:
        return RenderOptions()
    if isinstance(value, RenderOptions):
        return value
    return RenderOptions.model_validate(dict(value))


def _default_backend(**kwargs: Any) -> DrawingBackend:
    return ReportLabBackend(**kwargs)


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _new_composer(
    backend: DrawingBackend,
    *,
    total_pages: int,
    settings: Settings,
    token: CancellationToken,
) -> PageComposer:
    fonts = resolve_fonts(
        font_name=settings.pdf_font_name,
        bold_font_name=settings.pdf_font_bold_name,
        font_path=settings.pdf_font_path,
        bold_font_path=settings.pdf_font_bold_path,
    )
    return PageComposer(
        backend,
        total_pages=total_pages,
        brand=settings.brand_name,
        contact_line=settings.contact_line,
        font=fonts.regular,
        bold_font=fonts.bold,
        divider_dots=settings.divider_dots,
        gradient_strips=settings.gradient_strips,
        token=token,
    )


async def _load_item_image(
    item: CatalogItem,
    *,
    settings: Settings,
    fetcher: ImageFetcher | None,
) -> LoadedImage | None:
    url = resolve_image_url(item.image, settings.api_base_url)
    if url is None:
        return None
    if fetcher is None:
        fetcher = HttpImageFetcher(
            ImageFetcherConfig(
                timeout_seconds=settings.image_timeout_ms / 1000,
                jpeg_quality=settings.image_jpeg_quality,
            )
        )
    try:
        return await load_image(url, settings.image_timeout_ms, fetcher=fetcher)
    except ResourceError as exc:
        logger.warning('Failed to load image for item %s (%s); rendering without it: %s', item.id, item.name, exc)
        return None


def _draw_cover(
    composer: PageComposer,
    *,
    name: str,
    item_count: int,
    options: RenderOptions,
    settings: Settings,
    day: date,
) -> PageContext:
    ctx = composer.start_cover()
    backend = composer.backend
    if options.with_watermark:
        primitives.cover_watermark(backend, settings.brand_name, font=composer.bold_font)

    center = composer.page_width / 2
    middle = composer.page_height / 2
    title_measure = composer.measure(composer.bold_font, theme.COVER_TITLE_SIZE)
    title_lines = clip_lines(
        wrap_text(name, composer.content_width, title_measure) or [name],
        3,
        title_measure,
        composer.content_width,
    )
    leading = theme.line_height(theme.COVER_TITLE_SIZE)
    first_baseline = middle - 20 - leading * (len(title_lines) - 1)
    for index, line in enumerate(title_lines):
        backend.text(
            center,
            first_baseline + index * leading,
            line,
            font=composer.bold_font,
            size=theme.COVER_TITLE_SIZE,
            color=theme.WHITE,
            align='center',
        )

    backend.text(
        center,
        middle,
        'Collection Catalog',
        font=composer.font,
        size=theme.COVER_SUBTITLE_SIZE,
        color=theme.WHITE,
        align='center',
    )
    primitives.divider(
        backend,
        center - 30,
        middle + 4,
        60,
        color=theme.WHITE,
        dot_color=theme.WHITE,
        dots=composer.divider_dots,
    )
    backend.text(
        center,
        middle + 18,
        format_long_date(day),
        font=composer.font,
        size=theme.COVER_META_SIZE,
        color=theme.WHITE,
        align='center',
    )
    backend.text(
        center,
        middle + 26,
        f'{item_count} product{"s" if item_count != 1 else ""}',
        font=composer.font,
        size=theme.COVER_META_SIZE,
        color=theme.WHITE,
        align='center',
    )
    return ctx


def _draw_item(
    composer: PageComposer,
    ctx: PageContext,
    item: CatalogItem,
    image: LoadedImage | None,
    *,
    options: RenderOptions,
    settings: Settings,
    image_max_height: float,
    title_size: float,
) -> PageContext:
    price_text = format_idr(item.price)

    if image is not None:
        watermark = (settings.brand_name, price_text) if options.with_watermark else None
        ctx = composer.image_block(ctx, image, max_height=image_max_height, watermark=watermark)
    elif item.image and settings.image_placeholder:
        ctx = composer.placeholder_block(ctx)

    ctx = composer.text_block(ctx, item.name, size=title_size, bold=True, max_lines=2)
    ctx = composer.badges_block(ctx, item.badge_variants())
    ctx = composer.text_block(ctx, price_text, size=theme.PRICE_SIZE, bold=True, color=theme.BRAND_ROSE_DARK)
    ctx = composer.divider_block(ctx)

    if item.description:
        ctx = composer.text_block(ctx, item.description, size=theme.BODY_SIZE, align='left', gap=4.0)

    metadata = [
        f'{label}: {value}'
        for label, value in (('Type', item.type), ('Size', item.size), ('Status', item.status))
        if value
    ]
    if metadata:
        ctx = composer.text_block(ctx, ' • '.join(metadata), size=theme.META_SIZE, color=theme.MUTED, gap=4.0)

    for label, values in (('Occasions', item.occasions), ('Flowers', item.flowers)):
        if not values:
            continue
        ctx = composer.text_block(ctx, f'{label}:', size=theme.META_SIZE, bold=True, align='left', gap=0.5)
        ctx = composer.text_block(ctx, ', '.join(values), size=theme.META_SIZE, align='left', gap=3.0)
    return ctx


async def _render_collection(
    name: str,
    items: Sequence[CatalogItem],
    options: RenderOptions,
    *,
    settings: Settings,
    backend: DrawingBackend,
    fetcher: ImageFetcher | None,
    token: CancellationToken,
    day: date,
) -> bytes:
    composer = _new_composer(backend, total_pages=len(items) + 1, settings=settings, token=token)
    ctx = _draw_cover(composer, name=name, item_count=len(items), options=options, settings=settings, day=day)

    # One item at a time: the backend is a single stateful page stream.
    for item in items:
        image = await _load_item_image(item, settings=settings, fetcher=fetcher)
        ctx = composer.start_item_page(ctx)
        ctx = _draw_item(
            composer,
            ctx,
            item,
            image,
            options=options,
            settings=settings,
            image_max_height=theme.COLLECTION_IMAGE_MAX_HEIGHT,
            title_size=theme.COLLECTION_TITLE_SIZE,
        )

    composer.finalize(ctx)
    token.raise_if_cancelled()
    return backend.save()


async def _render_single_item(
    item: CatalogItem,
    options: RenderOptions,
    *,
    settings: Settings,
    backend: DrawingBackend,
    fetcher: ImageFetcher | None,
    token: CancellationToken,
) -> bytes:
    composer = _new_composer(backend, total_pages=1, settings=settings, token=token)
    image = await _load_item_image(item, settings=settings, fetcher=fetcher)
    ctx = composer.start_item_page()
    ctx = _draw_item(
        composer,
        ctx,
        item,
        image,
        options=options,
        settings=settings,
        image_max_height=theme.SINGLE_IMAGE_MAX_HEIGHT,
        title_size=theme.SINGLE_TITLE_SIZE,
    )
    if options.with_watermark:
        primitives.page_watermark(backend, settings.brand_name, font=composer.font)
    composer.finalize(ctx)
    token.raise_if_cancelled()
    return backend.save()


async def _run_with_deadline(
    coro: Coroutine[Any, Any, T],
    *,
    timeout_seconds: float | None,
    token: CancellationToken,
) -> T:
    if timeout_seconds is None:
        return await coro
    try:
        return await asyncio.wait_for(coro, timeout=max(0.0, float(timeout_seconds)))
    except asyncio.TimeoutError as exc:
        token.cancel('overall timeout')
        raise OverallTimeoutError(float(timeout_seconds)) from exc


async def build_collection_pdf(
    name: str,
    items: Sequence[CatalogItem | Mapping[str, Any]],
    options: RenderOptions | Mapping[str, Any] | None = None,
    *,
    settings: Settings | None = None,
    fetcher: ImageFetcher | None = None,
    backend_factory: BackendFactory | None = None,
    timeout_seconds: float | None = None,
    token: CancellationToken | None = None,
    today: date | None = None,
) -> bytes:
    """Render a collection catalog (cover + one page per item) and return the PDF bytes."""
    catalog_items = [_coerce_item(item) for item in items or []]
    if not catalog_items:
        raise EmptyInputError('a collection document needs at least one item')
    opts = _coerce_options(options)
    settings = settings or get_settings()
    token = token or CancellationToken()
    backend = (backend_factory or _default_backend)(
        title=f'{name} · Collection Catalog',
        author=settings.brand_name,
        unicode_font=settings.pdf_unicode_font or None,
    )
    return await _run_with_deadline(
        _render_collection(
            name,
            catalog_items,
            opts,
            settings=settings,
            backend=backend,
            fetcher=fetcher,
            token=token,
            day=today or _utc_today(),
        ),
        timeout_seconds=timeout_seconds,
        token=token,
    )


async def build_single_item_pdf(
    item: CatalogItem | Mapping[str, Any],
    options: RenderOptions | Mapping[str, Any] | None = None,
    *,
    settings: Settings | None = None,
    fetcher: ImageFetcher | None = None,
    backend_factory: BackendFactory | None = None,
    timeout_seconds: float | None = None,
    token: CancellationToken | None = None,
) -> bytes:
    """Render a one-page spec sheet for ``item`` and return the PDF bytes."""
    catalog_item = _coerce_item(item)
    opts = _coerce_options(options)
    settings = settings or get_settings()
    token = token or CancellationToken()
    backend = (backend_factory or _default_backend)(
        title=catalog_item.name,
        author=settings.brand_name,
        unicode_font=settings.pdf_unicode_font or None,
    )
    return await _run_with_deadline(
        _render_single_item(
            catalog_item,
            opts,
            settings=settings,
            backend=backend,
            fetcher=fetcher,
            token=token,
        ),
        timeout_seconds=timeout_seconds,
        token=token,
    )


async def generate_collection_document(
    name: str,
    items: Sequence[CatalogItem | Mapping[str, Any]],
    options: RenderOptions | Mapping[str, Any] | None = None,
    *,
    output_dir: Path | None = None,
    settings: Settings | None = None,
    fetcher: ImageFetcher | None = None,
    backend_factory: BackendFactory | None = None,
    timeout_seconds: float | None = None,
    today: date | None = None,
) -> Path:
    """Render a collection catalog and save it as ``<Name>_Collection_<date>.pdf``.

    The whole render races ``timeout_seconds`` (the configured collection
    budget by default). Nothing is written unless the render completes.
    """
    catalog_items = [_coerce_item(item) for item in items or []]
    if not catalog_items:
        raise EmptyInputError('a collection document needs at least one item')
    opts = _coerce_options(options)
    settings = settings or get_settings()
    day = today or _utc_today()
    budget = settings.collection_timeout_seconds if timeout_seconds is None else timeout_seconds

    key = ('collection', name, tuple(item.id for item in catalog_items), opts.with_watermark)
    with _GATE.claim(key):
        try:
            payload = await build_collection_pdf(
                name,
                catalog_items,
                opts,
                settings=settings,
                fetcher=fetcher,
                backend_factory=backend_factory,
                timeout_seconds=budget,
                today=day,
            )
        except OverallTimeoutError:
            logger.warning('Collection PDF for %r timed out after %ss; nothing was saved', name, budget)
            raise
        target = downloads_root(output_dir or settings.output_dir) / collection_filename(name, day)
        path = write_bytes_atomic(target, payload)

    logger.info('Saved collection catalog %s (%s items)', path, len(catalog_items))
    return path


async def generate_single_item_document(
    item: CatalogItem | Mapping[str, Any],
    options: RenderOptions | Mapping[str, Any] | None = None,
    *,
    output_dir: Path | None = None,
    settings: Settings | None = None,
    fetcher: ImageFetcher | None = None,
    backend_factory: BackendFactory | None = None,
    timeout_seconds: float | None = None,
    today: date | None = None,
) -> Path:
    catalog_item = _coerce_item(item)
    opts = _coerce_options(options)
    settings = settings or get_settings()
    day = today or _utc_today()

    key = ('item', catalog_item.id, opts.with_watermark)
    with _GATE.claim(key):
        payload = await build_single_item_pdf(
            catalog_item,
            opts,
            settings=settings,
            fetcher=fetcher,
            backend_factory=backend_factory,
            timeout_seconds=timeout_seconds,
        )
        target = downloads_root(output_dir or settings.output_dir) / single_item_filename(catalog_item.name, day)
        path = write_bytes_atomic(target, payload)

    logger.info('Saved item sheet %s', path)
    return path
