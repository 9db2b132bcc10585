from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'giftforyou.idn Catalog PDF'

    # Relative image references are resolved against this base
    api_base_url: str = Field(
        default='http://localhost:4000',
        validation_alias=AliasChoices('API_BASE_URL', 'REACT_APP_API_URL', 'API_BASE'),
    )

    # Where finished documents land (the "download" folder)
    output_dir: Path = Field(
        default=Path('./downloads'),
        validation_alias=AliasChoices('CATALOGPDF_OUTPUT_DIR', 'OUTPUT_DIR'),
    )

    # Branding
    brand_name: str = 'giftforyou.idn'
    contact_line: str = 'WhatsApp +62 851-6142-8911 · instagram.com/giftforyou.idn'

    # Time budgets
    image_timeout_ms: int = 10_000
    collection_timeout_seconds: float = 60.0

    # Rendering
    image_jpeg_quality: int = 80
    gradient_strips: int = 20
    divider_dots: int = 7
    image_placeholder: bool = False
    pdf_font_name: str = 'Helvetica'
    pdf_font_bold_name: str = 'Helvetica-Bold'
    # TrueType files registered in place of the built-in fonts
    pdf_font_path: Path | None = None
    pdf_font_bold_path: Path | None = None
    # CID font used for CJK text the chosen font cannot show; empty disables it
    pdf_unicode_font: str = 'STSong-Light'


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
