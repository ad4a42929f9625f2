import asyncio

import pytest

from storefront.services.files.validator import MIB
from storefront.services.product_form import DASHBOARD_ROUTE, ExistingImage

from .conftest import image, sign_in

pytestmark = pytest.mark.anyio

TEE = {"name": "T-shirt", "description": "Soft cotton tee", "price": "19.99", "quantity": "10"}


async def _product_with_images(sf, count):
    product = await sf.products.create({**TEE, "price": 19.99, "quantity": 10})
    uploaded = await sf.media.upload_files([image(f"{i}.png") for i in range(count)])
    for media in uploaded:
        await sf.products.associate_media(product.id, media.id)
    return await sf.products.get_by_id(product.id)


async def test_create_product_with_two_images(make_storefront, recorder, navigator, notifier):
    async with make_storefront(transport=recorder) as sf:
        await sign_in(sf, "seller@example.com")
        form = sf.product_form(redirect_delay=0)
        form.set_fields(**TEE)
        assert form.select_files([image("x.jpg", MIB), image("y.jpg", MIB)])

        created = await form.submit()

        stored = await sf.products.get_by_id(created.id)
    assert len(stored.image_urls) == 2
    assert recorder.count("POST", "/media/images") == 2
    assert recorder.count("POST", f"/products/{created.id}/media/") == 2
    assert notifier.successes == ["Product created successfully with images!"]
    assert navigator.current == DASHBOARD_ROUTE
    assert not form.dirty
    assert form.unassociated_media == []


async def test_invalid_fields_send_nothing(make_storefront, recorder):
    async with make_storefront(transport=recorder) as sf:
        form = sf.product_form(redirect_delay=0)
        form.set_fields(name="ab", description="Soft cotton tee", price="0.00", quantity="1")
        assert await form.submit() is None
    assert set(form.fields.errors) == {"name", "price"}
    assert recorder.requests == []


async def test_select_files_rejects_whole_selection(seller):
    form = seller.product_form()
    assert not form.select_files([image("a.png"), image("b.gif", content_type="image/gif")])
    assert form.selected_files() == []
    assert form.upload_error == "b.gif: disallowed type: image/gif"

    assert form.select_files([image("a.png"), image("c.jpg")])
    form.remove_selected_file(0)
    assert [f.name for f in form.selected_files()] == ["c.jpg"]


async def test_remove_existing_image_deletes_then_dissociates(make_storefront, recorder, notifier):
    async with make_storefront(transport=recorder) as sf:
        await sign_in(sf, "seller@example.com")
        product = await _product_with_images(sf, 3)
        form = sf.product_form(redirect_delay=0)
        await form.load(product.id)
        removed_id, removed_url = product.media_ids[1], product.image_urls[1]
        recorder.requests.clear()

        assert await form.remove_existing_image(1)

        assert recorder.requests == [
            ("DELETE", f"/api/media/images/{removed_id}"),
            ("DELETE", f"/api/products/{product.id}/media/{removed_id}"),
        ]
        assert len(form.existing_image_urls()) == 2
        assert removed_url not in form.existing_image_urls()
        assert removed_id not in (await sf.products.get_by_id(product.id)).media_ids
    assert notifier.errors == []
    assert form.dirty


async def test_cancelled_removal_changes_nothing(seller, dialogs):
    product = await _product_with_images(seller, 2)
    form = seller.product_form()
    await form.load(product.id)
    dialogs.answer = False

    assert not await form.remove_existing_image(0)
    assert form.existing_image_urls() == product.image_urls
    assert not form.dirty


async def test_already_deleted_media_is_tolerated(seller, notifier):
    product = await _product_with_images(seller, 1)
    form = seller.product_form()
    await form.load(product.id)
    media_id = product.media_ids[0]
    await seller.products.dissociate_media(product.id, media_id)
    await seller.media.delete_media(media_id)

    assert await form.remove_existing_image(0)
    assert form.existing_images() == []
    assert notifier.errors == []


async def test_failed_dissociation_is_retried_on_save(make_storefront, recorder, navigator):
    async with make_storefront(transport=recorder) as sf:
        await sign_in(sf, "seller@example.com")
        product = await _product_with_images(sf, 2)
        form = sf.product_form(redirect_delay=0)
        await form.load(product.id)
        media_id = product.media_ids[0]

        recorder.fail = lambda r: r.method == "DELETE" and "/products/" in r.url.path
        assert await form.remove_existing_image(0)
        assert form.deleted_media_ids == [media_id]

        recorder.fail = None
        form.set_fields(name="Renamed tee")
        updated = await form.submit()

        assert updated.name == "Renamed tee"
        assert updated.media_ids == [product.media_ids[1]]
        assert form.deleted_media_ids == []
    assert navigator.current == DASHBOARD_ROUTE


async def test_failed_update_keeps_form_dirty(make_storefront, recorder, notifier, navigator):
    async with make_storefront(transport=recorder) as sf:
        await sign_in(sf, "seller@example.com")
        product = await _product_with_images(sf, 0)
        form = sf.product_form(redirect_delay=0)
        await form.load(product.id)
        form.set_fields(price="25.00")

        recorder.fail = lambda r: r.method == "PUT"
        assert await form.submit() is None
    assert notifier.errors == ["Failed to update product. Please try again."]
    assert form.dirty
    assert form.error_message == notifier.errors[0]
    assert DASHBOARD_ROUTE not in navigator.history


async def test_retry_after_failed_association_does_not_reupload(make_storefront, recorder, notifier):
    async with make_storefront(transport=recorder) as sf:
        await sign_in(sf, "seller@example.com")
        form = sf.product_form(redirect_delay=0)
        form.set_fields(**TEE)
        form.select_files([image("a.png")])

        recorder.fail = lambda r: r.method == "POST" and "/media/" in r.url.path and "/products/" in r.url.path
        assert await form.submit() is None
        assert notifier.errors == ["Product created but failed to associate images."]
        assert form.is_edit_mode
        assert len(form.unassociated_media) == 1

        recorder.fail = None
        product = await form.submit()
        stored = await sf.products.get_by_id(product.id)
    assert len(stored.image_urls) == 1
    assert recorder.count("POST", "/media/images") == 1
    assert recorder.count("POST", "/api/products") == 3


async def test_cancel_asks_only_when_dirty(seller, dialogs, navigator):
    form = seller.product_form()
    assert await form.cancel()
    assert dialogs.prompts == []

    form.set_fields(name="Draft")
    dialogs.answer = False
    assert not await form.cancel()
    assert navigator.history.count(DASHBOARD_ROUTE) == 1
    assert dialogs.prompts == ["Discard"]


async def test_select_files_checks_files_sharing_a_name(seller):
    form = seller.product_form()
    assert not form.select_files([image("a.png", content_type="image/gif"), image("a.png")])
    assert form.selected_files() == []
    assert form.upload_error == "a.png: disallowed type: image/gif"


async def test_concurrent_submits_create_one_product(make_storefront, recorder):
    async with make_storefront(transport=recorder) as sf:
        await sign_in(sf, "seller@example.com")
        form = sf.product_form(redirect_delay=0)
        form.set_fields(**TEE)

        first, second = await asyncio.gather(form.submit(), form.submit())

    assert first is not None
    assert second is None
    assert recorder.count("POST", "/api/products") == 1


async def test_image_without_known_media_id_is_not_removed(seller, dialogs, notifier):
    form = seller.product_form()
    form.existing_images.set([ExistingImage(None, "http://cdn.example.com/static/a.png")])

    assert not await form.remove_existing_image(0)
    assert len(form.existing_images()) == 1
    assert notifier.errors == ["Failed to delete image"]
    assert notifier.successes == []
    assert dialogs.prompts == []


async def test_image_media_id_is_found_in_media_cache(seller):
    media = await seller.media.upload_file(image())
    form = seller.product_form()
    form.existing_images.set([ExistingImage(None, media.url)])

    assert await form.remove_existing_image(0)
    assert form.existing_images() == []
    assert seller.media.media() == []
    assert await seller.media.get_all_media() == []
