from datetime import datetime

from pydantic import AliasChoices, Field, field_validator

from storefront.schemas.base import WireModel

PRICE_MIN = 0.01
PRICE_MAX = 999_999.99


class Product(WireModel):
    id: str
    name: str
    description: str = ""
    price: float
    quantity: int = Field(default=0, validation_alias=AliasChoices("quantity", "stock"))
    seller_id: str | None = Field(default=None, validation_alias=AliasChoices("sellerId", "seller_id", "userId"))
    media_ids: list[str] = Field(default_factory=list)
    image_urls: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("media_ids", "image_urls", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return value or []


class ProductRequest(WireModel):
    name: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=10, max_length=2000)
    price: float = Field(ge=PRICE_MIN, le=PRICE_MAX)
    quantity: int = Field(ge=0)


class ProductUpdate(WireModel):
    """Patchable product fields; ``id`` and ``sellerId`` are never sent."""

    name: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, min_length=10, max_length=2000)
    price: float | None = Field(default=None, ge=PRICE_MIN, le=PRICE_MAX)
    quantity: int | None = Field(default=None, ge=0)
