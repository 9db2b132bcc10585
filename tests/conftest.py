from __future__ import annotations

import asyncio
import io
from pathlib import Path

import pytest
import reportlab
from PIL import Image

from catalogpdf.adapters.image_loader import decode_image
from catalogpdf.config import Settings
from catalogpdf.errors import ResourceNetworkError
from catalogpdf.report.backend import RecordingBackend
from catalogpdf.types import LoadedImage


def png_bytes(width: int = 64, height: int = 48, color=(212, 140, 156, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new('RGBA', (width, height), color).save(buf, format='PNG')
    return buf.getvalue()


class StaticFetcher:
    def __init__(self, width: int = 64, height: int = 48):
        self.image = decode_image(png_bytes(width, height), url='test://image')
        self.urls: list[str] = []

    async def fetch(self, url: str) -> LoadedImage:
        self.urls.append(url)
        return self.image


class FailingFetcher:
    def __init__(self):
        self.urls: list[str] = []

    async def fetch(self, url: str) -> LoadedImage:
        self.urls.append(url)
        raise ResourceNetworkError(url, 'connection refused')


class HangingFetcher:
    async def fetch(self, url: str) -> LoadedImage:
        await asyncio.Event().wait()
        raise AssertionError('unreachable')


class SlowFetcher(StaticFetcher):
    def __init__(self, delay: float):
        super().__init__()
        self.delay = delay

    async def fetch(self, url: str) -> LoadedImage:
        await asyncio.sleep(self.delay)
        return await super().fetch(url)


@pytest.fixture
def make_png():
    return png_bytes


@pytest.fixture
def static_fetcher() -> StaticFetcher:
    return StaticFetcher()


@pytest.fixture
def failing_fetcher() -> FailingFetcher:
    return FailingFetcher()


@pytest.fixture
def hanging_fetcher() -> HangingFetcher:
    return HangingFetcher()


@pytest.fixture
def slow_fetcher():
    return SlowFetcher


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(_env_file=None).model_copy(
        update={
            'api_base_url': 'https://api.example.test',
            'output_dir': tmp_path / 'downloads',
            'image_timeout_ms': 2_000,
            'collection_timeout_seconds': 60.0,
            'image_placeholder': False,
        }
    )


@pytest.fixture
def recorder() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def recorder_factory(recorder):
    def factory(**_kwargs):
        return recorder

    return factory


@pytest.fixture
def rose_garden_items() -> list[dict]:
    return [
        {'_id': 'b1', 'name': 'Blush Rose Bouquet', 'price': 350000, 'image': '/uploads/blush.jpg', 'isFeatured': True},
        {'_id': 'b2', 'name': 'Garden Party', 'price': 275000, 'image': '/uploads/garden.jpg', 'isNewEdition': True},
        {
            '_id': 'b3',
            'name': 'Velvet Red',
            'price': 425000,
            'image': 'https://cdn.example.test/velvet.jpg',
            'isFeatured': True,
            'isNewEdition': True,
        },
    ]


@pytest.fixture
def vera_ttf() -> Path:
    # Bitstream Vera ships inside the reportlab distribution.
    return Path(reportlab.__file__).parent / 'fonts' / 'Vera.ttf'
