import pytest

from storefront.services.files.validator import MIB

from .conftest import image

pytestmark = pytest.mark.anyio


async def test_get_profile(seller):
    profile = await seller.profile.get_profile()
    assert profile == seller.session.current_user()


async def test_oversized_avatar_is_rejected_locally(seller, notifier):
    assert not seller.profile.select_avatar(image("me.png", MIB + 1))
    assert seller.profile.selected_avatar() is None
    assert seller.profile.upload_error().startswith("file size")
    assert notifier.upload_errors[0][0] == "me.png"


async def test_save_profile_uploads_avatar_and_updates_session(seller, notifier):
    seen = []
    seller.profile.display_avatar.subscribe(seen.append)
    assert seller.profile.select_avatar(image("me.png", 4096))

    user = await seller.profile.save_profile(name="Ada Lovelace")

    assert user.name == "Ada Lovelace"
    assert user.avatar_url == seller.media.media()[0].url
    assert seller.session.current_user() == user
    assert (await seller.profile.get_profile()).avatar_url == user.avatar_url
    assert seen == [user.avatar_url]
    assert notifier.successes == ["Profile updated successfully!"]
    assert seller.profile.selected_avatar() is None


async def test_remove_avatar(seller):
    seller.session.update_user(avatar_url="http://img/old.png")
    seller.profile.remove_avatar()
    assert seller.profile.display_avatar() is None

    user = await seller.profile.save_profile()
    assert user.avatar_url is None
    assert (await seller.profile.get_profile()).avatar_url is None


async def test_change_password(seller, notifier):
    assert not await seller.profile.change_password("pw123456", "newpass1", "different")
    assert notifier.errors == ["Passwords do not match"]

    assert not await seller.profile.change_password("wrong-pass", "newpass1", "newpass1")
    assert notifier.errors[-1] == "Failed to change password: Current password is incorrect"

    assert await seller.profile.change_password("pw123456", "newpass1", "newpass1")
    email = seller.session.current_user().email
    seller.session.logout()
    await seller.session.login(email, "newpass1")
    assert seller.session.is_authenticated()


async def test_save_requires_session(storefront, notifier):
    assert await storefront.profile.save_profile(name="Nobody") is None
    assert notifier.errors == ["Please sign in to update your profile"]
