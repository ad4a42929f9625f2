import logging

from fastapi import APIRouter, Depends, HTTPException, status

from storefront.devserver.deps import get_current_user, get_seller, get_store
from storefront.devserver.store import MemoryStore, ProductRecord, UserRecord, utcnow
from storefront.schemas.product import Product, ProductRequest, ProductUpdate

router = APIRouter(prefix="/products", tags=["products"])
logger = logging.getLogger(__name__)


def to_product(record: ProductRecord) -> Product:
    return Product(
        id=record.id,
        name=record.name,
        description=record.description,
        price=record.price,
        quantity=record.quantity,
        seller_id=record.seller_id,
        media_ids=list(record.media_ids),
        image_urls=list(record.image_urls),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _get_product(store: MemoryStore, product_id: str) -> ProductRecord:
    product = store.products.get(product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


def _get_owned_product(store: MemoryStore, product_id: str, user: UserRecord) -> ProductRecord:
    product = _get_product(store, product_id)
    if product.seller_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not own this product")
    return product


@router.get("", response_model=list[Product])
def list_products(store: MemoryStore = Depends(get_store)) -> list[Product]:
    return [to_product(p) for p in store.products.values()]


@router.get("/seller/me", response_model=list[Product])
def list_my_products(
    store: MemoryStore = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user),
) -> list[Product]:
    return [to_product(p) for p in store.products.values() if p.seller_id == current_user.id]


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: str, store: MemoryStore = Depends(get_store)) -> Product:
    return to_product(_get_product(store, product_id))


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductRequest,
    store: MemoryStore = Depends(get_store),
    seller: UserRecord = Depends(get_seller),
) -> Product:
    product = ProductRecord(
        name=payload.name,
        description=payload.description,
        price=payload.price,
        quantity=payload.quantity,
        seller_id=seller.id,
    )
    store.products[product.id] = product
    logger.info("product_created", extra={"product_id": product.id, "seller_id": seller.id})
    return to_product(product)


@router.put("/{product_id}", response_model=Product)
def update_product(
    product_id: str,
    payload: ProductUpdate,
    store: MemoryStore = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user),
) -> Product:
    product = _get_owned_product(store, product_id, current_user)
    for name, value in payload.model_dump(exclude_none=True).items():
        setattr(product, name, value)
    product.updated_at = utcnow()
    return to_product(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: str,
    store: MemoryStore = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user),
) -> None:
    product = _get_owned_product(store, product_id, current_user)
    for media_id in product.media_ids:
        media = store.media.get(media_id)
        if media and media.product_id == product.id:
            media.product_id = None
    del store.products[product.id]


@router.post("/{product_id}/media/{media_id}", status_code=status.HTTP_204_NO_CONTENT)
def associate_media(
    product_id: str,
    media_id: str,
    store: MemoryStore = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user),
) -> None:
    product = _get_owned_product(store, product_id, current_user)
    media = store.media.get(media_id)
    if not media:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")
    if media.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not own this media")
    if media_id not in product.media_ids:
        product.media_ids.append(media_id)
        product.image_urls.append(media.url)
        product.updated_at = utcnow()
    media.product_id = product.id
    media.updated_at = utcnow()


@router.delete("/{product_id}/media/{media_id}", status_code=status.HTTP_204_NO_CONTENT)
def dissociate_media(
    product_id: str,
    media_id: str,
    store: MemoryStore = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user),
) -> None:
    product = _get_owned_product(store, product_id, current_user)
    media = store.media.get(media_id)
    if media_id in product.media_ids:
        index = product.media_ids.index(media_id)
        del product.media_ids[index]
        del product.image_urls[index]
        product.updated_at = utcnow()
    elif not media:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not associated with product")
    if media and media.product_id == product.id:
        media.product_id = None
        media.updated_at = utcnow()
