from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Protocol

import httpx
from PIL import Image, UnidentifiedImageError

from catalogpdf.errors import ResourceDecodeError, ResourceNetworkError, ResourceTimeoutError
from catalogpdf.types import LoadedImage


logger = logging.getLogger(__name__)


class ImageFetcher(Protocol):
    async def fetch(self, url: str) -> LoadedImage: ...


@dataclass
class ImageFetcherConfig:
    timeout_seconds: float
    jpeg_quality: int = 80


def resolve_image_url(ref: str | None, api_base: str) -> str | None:
    token = str(ref or '').strip()
    if not token:
        return None
    if token.startswith('http://') or token.startswith('https://'):
        return token
    base = str(api_base or '').rstrip('/')
    if not base:
        return token
    return f"{base}/{token.lstrip('/')}"


def decode_image(payload: bytes, *, url: str, jpeg_quality: int = 80) -> LoadedImage:
    """Decode raw bytes into an RGB JPEG buffer that the PDF backend can embed."""
    if not payload:
        raise ResourceDecodeError(url, 'empty image payload')
    try:
        with Image.open(io.BytesIO(payload)) as img:
            img.load()
            width, height = img.size
            if width <= 0 or height <= 0:
                raise ResourceDecodeError(url, f'invalid image size {width}x{height}')
            if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
                rgba = img.convert('RGBA')
                flattened = Image.new('RGB', rgba.size, (255, 255, 255))
                flattened.paste(rgba, mask=rgba.getchannel('A'))
            else:
                flattened = img.convert('RGB')
            out = io.BytesIO()
            flattened.save(out, format='JPEG', quality=max(1, min(95, int(jpeg_quality))))
    except ResourceDecodeError:
        raise
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise ResourceDecodeError(url, f'failed to decode image ({type(exc).__name__}: {exc})') from exc
    return LoadedImage(data=out.getvalue(), width=width, height=height)


class HttpImageFetcher:
    def __init__(self, cfg: ImageFetcherConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self.cfg = cfg
        self._transport = transport

    async def fetch(self, url: str) -> LoadedImage:
        try:
            async with httpx.AsyncClient(
                timeout=max(0.1, float(self.cfg.timeout_seconds)),
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                payload = response.content
        except httpx.TimeoutException as exc:
            raise ResourceTimeoutError(url, 'image request timed out') from exc
        except httpx.HTTPStatusError as exc:
            raise ResourceNetworkError(url, f'image request failed ({exc.response.status_code})') from exc
        except httpx.HTTPError as exc:
            raise ResourceNetworkError(url, f'image request failed ({type(exc).__name__}: {exc})') from exc

        return decode_image(payload, url=url, jpeg_quality=self.cfg.jpeg_quality)


async def load_image(url: str, timeout_ms: int, *, fetcher: ImageFetcher | None = None) -> LoadedImage:
    """Fetch and decode ``url``, settling within ``timeout_ms`` no matter what the fetcher does."""
    timeout_seconds = max(0, int(timeout_ms)) / 1000
    if fetcher is None:
        fetcher = HttpImageFetcher(ImageFetcherConfig(timeout_seconds=timeout_seconds))
    try:
        return await asyncio.wait_for(fetcher.fetch(url), timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        logger.debug('Image load exceeded %sms: %s', timeout_ms, url)
        raise ResourceTimeoutError(url, f'image load exceeded {timeout_ms}ms') from exc
