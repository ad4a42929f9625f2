import httpx
import pytest

from storefront.core.errors import Forbidden, InvalidInput, NotFound, Unauthenticated
from storefront.core.storage import LocalStorage
from storefront.schemas.auth import Role
from storefront.schemas.product import ProductRequest
from storefront.services.session import TOKEN_KEY, USER_KEY

from .conftest import image, sign_in

pytestmark = pytest.mark.anyio

TEE = {"name": "T-shirt", "description": "Soft cotton tee", "price": 19.99, "quantity": 10}
USER = '{"id": "u1", "email": "ada@example.com", "name": "Ada", "role": "SELLER"}'


async def test_create_update_delete_keep_cache_in_step(seller):
    created = await seller.products.create(TEE)
    assert created.seller_id == seller.session.current_user().id
    assert [p.id for p in seller.products.products()] == [created.id]

    updated = await seller.products.update(created.id, {"price": 24.5, "sellerId": "someone-else", "id": "x"})
    assert updated.price == 24.5
    assert updated.seller_id == created.seller_id
    assert seller.products.products() == [updated]

    await seller.products.delete(created.id)
    assert seller.products.products() == []
    with pytest.raises(NotFound):
        await seller.products.get_by_id(created.id)


async def test_invalid_product_rejected_before_network(seller):
    with pytest.raises(InvalidInput):
        await seller.products.create({**TEE, "price": 0})
    assert seller.products.products() == []


async def test_client_cannot_create_products(storefront):
    await sign_in(storefront, "buyer@example.com", Role.CLIENT)
    with pytest.raises(Forbidden):
        await storefront.products.create(ProductRequest(**TEE))


async def test_non_owner_update_is_forbidden(make_storefront):
    async with make_storefront() as owner, make_storefront() as other:
        await sign_in(owner, "b@example.com")
        await sign_in(other, "a@example.com")
        product = await owner.products.create(TEE)

        listed = await other.products.list_all()
        with pytest.raises(Forbidden):
            await other.products.update(product.id, {"name": "Stolen shirt"})

        assert other.products.products() == listed
        assert (await owner.products.get_by_id(product.id)).name == "T-shirt"
        assert other.session.is_authenticated()


async def test_list_mine_requires_session(make_storefront):
    calls = []
    transport = httpx.MockTransport(lambda r: calls.append(r) or httpx.Response(200, json=[]))
    async with make_storefront(transport=transport) as sf:
        with pytest.raises(Unauthenticated):
            await sf.products.list_mine()
    assert calls == []


async def test_list_mine_returns_only_own_products(make_storefront):
    async with make_storefront() as mine, make_storefront() as theirs:
        await sign_in(mine, "mine@example.com")
        await sign_in(theirs, "theirs@example.com")
        own = await mine.products.create(TEE)
        await theirs.products.create({**TEE, "name": "Other tee"})

        assert [p.id for p in await mine.products.list_mine()] == [own.id]


@pytest.mark.parametrize("status", [404, 405])
async def test_list_mine_falls_back_to_filtering(make_storefront, status):
    products = [
        {"id": "1", "name": "Mine", "price": 1.5, "sellerId": "u1"},
        {"id": "2", "name": "Theirs", "price": 2.5, "sellerId": "other"},
        {"id": "3", "name": "Legacy", "price": 3.5, "userId": "u1", "stock": 4},
    ]

    def handler(request):
        if request.url.path.endswith("/seller/me"):
            return httpx.Response(status)
        return httpx.Response(200, json=products)

    storage = LocalStorage()
    storage.set_items({TOKEN_KEY: "token", USER_KEY: USER})
    async with make_storefront(storage=storage, transport=httpx.MockTransport(handler)) as sf:
        mine = await sf.products.list_mine()
    assert [p.id for p in mine] == ["1", "3"]
    assert mine[1].quantity == 4


async def test_associate_and_dissociate_media(seller):
    product = await seller.products.create(TEE)
    media = await seller.media.upload_file(image())

    await seller.products.associate_media(product.id, media.id)
    await seller.products.associate_media(product.id, media.id)
    fetched = await seller.products.get_by_id(product.id)
    assert fetched.media_ids == [media.id]
    assert fetched.image_urls == [media.url]
    assert (await seller.media.get_all_media())[0].product_id == product.id

    await seller.products.dissociate_media(product.id, media.id)
    assert (await seller.products.get_by_id(product.id)).image_urls == []
    with pytest.raises(NotFound):
        await seller.products.associate_media(product.id, "missing")
