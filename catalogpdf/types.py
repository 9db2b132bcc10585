from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class CatalogItem(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore', populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices('id', '_id'))
    name: str
    price: int = Field(ge=0)
    image: str | None = Field(default=None, validation_alias=AliasChoices('image', 'imageUrl', 'image_url'))
    is_featured: bool = Field(default=False, validation_alias=AliasChoices('is_featured', 'isFeatured'))
    is_new_edition: bool = Field(default=False, validation_alias=AliasChoices('is_new_edition', 'isNewEdition'))

    type: str | None = None
    size: str | None = None
    status: str | None = None
    description: str | None = None
    occasions: list[str] = Field(default_factory=list)
    flowers: list[str] = Field(default_factory=list)

    @field_validator('id', mode='before')
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator('occasions', 'flowers', mode='before')
    @classmethod
    def _coerce_list(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(',') if part.strip()]
        return [str(part).strip() for part in value if str(part or '').strip()]

    def badge_variants(self) -> list[str]:
        variants: list[str] = []
        if self.is_featured:
            variants.append('featured')
        if self.is_new_edition:
            variants.append('new')
        return variants


class Collection(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore')

    name: str
    items: list[CatalogItem] = Field(default_factory=list)


class RenderOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore', populate_by_name=True)

    with_watermark: bool = Field(default=False, validation_alias=AliasChoices('with_watermark', 'withWatermark'))


@dataclass(frozen=True)
class LoadedImage:
    data: bytes
    width: int
    height: int
