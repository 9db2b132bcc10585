from __future__ import annotations

import asyncio
import io
import time

import httpx
import pytest
from PIL import Image

from catalogpdf.adapters.image_loader import (
    HttpImageFetcher,
    ImageFetcherConfig,
    decode_image,
    load_image,
    resolve_image_url,
)
from catalogpdf.errors import ResourceDecodeError, ResourceNetworkError, ResourceTimeoutError


@pytest.mark.parametrize(
    'ref, expected',
    [
        ('/uploads/a.jpg', 'https://api.example.test/uploads/a.jpg'),
        ('uploads/a.jpg', 'https://api.example.test/uploads/a.jpg'),
        ('https://cdn.example.test/a.jpg', 'https://cdn.example.test/a.jpg'),
        ('http://cdn.example.test/a.jpg', 'http://cdn.example.test/a.jpg'),
        ('', None),
        (None, None),
        ('   ', None),
    ],
)
def test_resolve_image_url(ref, expected):
    assert resolve_image_url(ref, 'https://api.example.test/') == expected


class TestDecode:
    def test_transparent_png_becomes_jpeg(self, make_png):
        loaded = decode_image(make_png(40, 30, (0, 0, 0, 0)), url='x')

        assert loaded.data[:2] == b'\xff\xd8'
        assert (loaded.width, loaded.height) == (40, 30)
        with Image.open(io.BytesIO(loaded.data)) as img:
            assert img.mode == 'RGB'
            # Fully transparent pixels are flattened onto white.
            assert all(channel > 240 for channel in img.getpixel((5, 5)))

    def test_garbage_is_a_decode_error(self):
        with pytest.raises(ResourceDecodeError) as info:
            decode_image(b'not an image at all', url='https://x/y.jpg')
        assert info.value.url == 'https://x/y.jpg'

    def test_empty_payload(self):
        with pytest.raises(ResourceDecodeError):
            decode_image(b'', url='x')


# ---------------------------------------------------------------------------
# HTTP fetcher
# ---------------------------------------------------------------------------

def _fetcher(handler) -> HttpImageFetcher:
    return HttpImageFetcher(ImageFetcherConfig(timeout_seconds=2.0), transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_http_fetch_ok(make_png):
    payload = make_png(20, 10)
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, content=payload, headers={'content-type': 'image/png'})

    loaded = await _fetcher(handler).fetch('https://api.example.test/uploads/a.png')

    assert seen == ['https://api.example.test/uploads/a.png']
    assert (loaded.width, loaded.height) == (20, 10)


@pytest.mark.asyncio
async def test_http_status_is_network_error():
    fetcher = _fetcher(lambda request: httpx.Response(404))
    with pytest.raises(ResourceNetworkError, match='404'):
        await fetcher.fetch('https://api.example.test/missing.jpg')


@pytest.mark.asyncio
async def test_connection_failure_is_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError('connection refused', request=request)

    with pytest.raises(ResourceNetworkError):
        await _fetcher(handler).fetch('https://api.example.test/a.jpg')


@pytest.mark.asyncio
async def test_transport_timeout_is_timeout_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout('slow', request=request)

    with pytest.raises(ResourceTimeoutError):
        await _fetcher(handler).fetch('https://api.example.test/a.jpg')


@pytest.mark.asyncio
async def test_html_body_is_decode_error():
    fetcher = _fetcher(lambda request: httpx.Response(200, content=b'<html>nope</html>'))
    with pytest.raises(ResourceDecodeError):
        await fetcher.fetch('https://api.example.test/a.jpg')


# ---------------------------------------------------------------------------
# load_image
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_load_image_settles_when_fetcher_hangs(hanging_fetcher):
    started = time.monotonic()
    with pytest.raises(ResourceTimeoutError):
        await load_image('https://api.example.test/a.jpg', 100, fetcher=hanging_fetcher)
    assert time.monotonic() - started < 2.0


@pytest.mark.asyncio
async def test_load_image_returns_fetched_image(static_fetcher):
    fetcher = static_fetcher
    loaded = await load_image('https://api.example.test/a.jpg', 1000, fetcher=fetcher)

    assert loaded is fetcher.image
    assert fetcher.urls == ['https://api.example.test/a.jpg']


@pytest.mark.asyncio
async def test_load_image_leaves_no_pending_task(hanging_fetcher):
    with pytest.raises(ResourceTimeoutError):
        await load_image('https://api.example.test/a.jpg', 50, fetcher=hanging_fetcher)
    pending = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
    assert pending == []
