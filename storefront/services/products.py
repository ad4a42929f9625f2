import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from storefront.core.config import Settings
from storefront.core.errors import InvalidInput, NotFound, StorefrontError, Unauthenticated
from storefront.core.reactive import Signal
from storefront.schemas.product import Product, ProductRequest, ProductUpdate
from storefront.services.http import request_json, send
from storefront.services.session import SessionStore, validation_messages

logger = logging.getLogger(__name__)

PRODUCT_LIST = TypeAdapter(list[Product])


class _MethodNotAllowed(StorefrontError):
    pass


class ProductService:
    """Product CRUD and product/media association.

    Ownership is enforced by the server; 401/403/404 responses surface as
    the matching taxonomy errors and leave ``products`` untouched.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings, session: SessionStore) -> None:
        self._http = http
        self.settings = settings
        self.session = session
        self.products: Signal[list[Product]] = Signal([])

    @property
    def base_url(self) -> str:
        return self.settings.products_url

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url, *parts])

    async def list_all(self) -> list[Product]:
        data = await request_json(self._http, "GET", self.base_url)
        products = PRODUCT_LIST.validate_python(data or [])
        self.products.set(products)
        return products

    async def get_by_id(self, product_id: str) -> Product:
        data = await request_json(self._http, "GET", self._url(product_id))
        return Product.model_validate(data)

    async def list_mine(self) -> list[Product]:
        user = self.session.current_user()
        if user is None or not self.session.is_authenticated():
            raise Unauthenticated("User not authenticated")
        try:
            data = await request_json(
                self._http, "GET", self._url("seller", "me"), overrides={405: _MethodNotAllowed}
            )
        except (NotFound, _MethodNotAllowed):
            logger.debug("seller_view_unavailable_filtering_locally")
            data = await request_json(self._http, "GET", self.base_url)
            return [p for p in PRODUCT_LIST.validate_python(data or []) if p.seller_id == user.id]
        return PRODUCT_LIST.validate_python(data or [])

    async def create(self, request: ProductRequest | Mapping[str, Any]) -> Product:
        payload = _coerce(ProductRequest, request)
        data = await request_json(self._http, "POST", self.base_url, json=payload.to_wire())
        product = Product.model_validate(data)
        self.products.update(lambda items: [*items, product])
        logger.info("product_created", extra={"product_id": product.id})
        return product

    async def update(self, product_id: str, changes: ProductUpdate | Mapping[str, Any]) -> Product:
        payload = _coerce(ProductUpdate, changes)
        data = await request_json(self._http, "PUT", self._url(product_id), json=payload.to_wire(exclude_none=True))
        product = Product.model_validate(data)
        self._replace(product)
        logger.info("product_updated", extra={"product_id": product.id})
        return product

    async def delete(self, product_id: str) -> None:
        await request_json(self._http, "DELETE", self._url(product_id))
        self.products.update(lambda items: [p for p in items if p.id != product_id])
        logger.info("product_deleted", extra={"product_id": product_id})

    async def associate_media(self, product_id: str, media_id: str) -> None:
        await send(self._http, "POST", self._url(product_id, "media", media_id))

    async def dissociate_media(self, product_id: str, media_id: str) -> None:
        await send(self._http, "DELETE", self._url(product_id, "media", media_id))

    def _replace(self, product: Product) -> None:
        self.products.update(lambda items: [product if p.id == product.id else p for p in items])


def _coerce(model, value):
    if isinstance(value, model):
        return value
    if isinstance(value, Mapping):
        # only the patchable fields reach the server
        value = {k: v for k, v in value.items() if k in model.model_fields or k in _aliases(model)}
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        raise InvalidInput("Invalid product details", errors=validation_messages(exc)) from exc


def _aliases(model) -> set[str]:
    return {info.alias for info in model.model_fields.values() if info.alias}
