import logging

import httpx
from pydantic import ValidationError

from storefront.core.config import Settings
from storefront.core.errors import InvalidInput, StorefrontError, Unauthenticated, UploadFailed
from storefront.core.reactive import Computed, Signal
from storefront.schemas.auth import UpdateProfileRequest, User
from storefront.services.files.types import LocalFile
from storefront.services.files.validator import AVATAR, validate_file
from storefront.services.http import request_json
from storefront.services.media import MediaService
from storefront.services.notify import Notifier
from storefront.services.session import SessionStore, validation_messages

logger = logging.getLogger(__name__)


class ProfileService:
    """Profile edits for the signed-in user, including the avatar."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        settings: Settings,
        session: SessionStore,
        media: MediaService,
        notifier: Notifier,
    ) -> None:
        self._http = http
        self.settings = settings
        self.session = session
        self.media = media
        self.notifier = notifier

        self.selected_avatar: Signal[LocalFile | None] = Signal(None)
        self.avatar_removed = Signal(False)
        self.upload_error = Signal("")
        self.is_loading = Signal(False)
        self.display_avatar = Computed(self._display_avatar, self.session.current_user, self.avatar_removed)

    @property
    def me_url(self) -> str:
        return f"{self.settings.users_url}/me"

    def _report(self, prefix: str, exc: StorefrontError) -> None:
        cause = exc.cause if isinstance(exc, UploadFailed) else exc
        # 401 redirects to login without a toast
        if not isinstance(cause, Unauthenticated):
            self.notifier.error(f"{prefix}: {exc.message}")

    def _display_avatar(self) -> str | None:
        user = self.session.current_user()
        if self.avatar_removed() or user is None:
            return None
        return user.avatar_url

    async def get_profile(self) -> User:
        data = await request_json(self._http, "GET", self.me_url)
        return User.model_validate(data)

    def select_avatar(self, file: LocalFile | None) -> bool:
        """Stage an avatar; invalid files are rejected before any upload."""
        self.upload_error.set("")
        self.selected_avatar.set(None)
        if file is None:
            return False
        result = validate_file(file, AVATAR)
        if not result.valid:
            self.upload_error.set(result.errors[0])
            self.notifier.file_upload_error(file.name, result.errors[0])
            return False
        self.selected_avatar.set(file)
        self.avatar_removed.set(False)
        return True

    def remove_avatar(self) -> None:
        self.selected_avatar.set(None)
        self.upload_error.set("")
        self.avatar_removed.set(True)

    async def save_profile(self, name: str | None = None) -> User | None:
        if self.session.current_user() is None:
            self.notifier.error("Please sign in to update your profile")
            return None
        self.is_loading.set(True)
        try:
            return await self._save(name)
        finally:
            self.is_loading.set(False)

    async def _save(self, name: str | None) -> User | None:
        avatar: str | None = None
        file = self.selected_avatar()
        if file is not None:
            try:
                avatar = (await self.media.upload_file(file)).url
            except (InvalidInput, UploadFailed) as exc:
                self._report("Failed to upload avatar", exc)
                return None
        elif self.avatar_removed():
            avatar = ""

        try:
            payload = UpdateProfileRequest(name=name, avatar=avatar)
        except ValidationError as exc:
            self.upload_error.set(validation_messages(exc)[0])
            return None
        try:
            data = await request_json(self._http, "PUT", self.me_url, json=payload.to_wire(exclude_none=True))
            updated = User.model_validate(data)
        except StorefrontError as exc:
            self._report("Failed to update profile", exc)
            return None
        except ValidationError:
            self.notifier.error("Failed to update profile")
            return None

        self.session.update_user(name=updated.name, avatar_url=updated.avatar_url)
        self.selected_avatar.set(None)
        self.avatar_removed.set(False)
        self.notifier.success("Profile updated successfully!")
        logger.info("profile_updated", extra={"user_id": updated.id})
        return self.session.current_user()

    async def change_password(self, current_password: str, new_password: str, confirm_password: str) -> bool:
        if new_password != confirm_password:
            self.notifier.error("Passwords do not match")
            return False
        try:
            payload = UpdateProfileRequest(password=current_password, new_password=new_password)
        except ValidationError as exc:
            self.notifier.error(validation_messages(exc)[0])
            return False
        try:
            await request_json(self._http, "PUT", self.me_url, json=payload.to_wire(exclude_none=True))
        except StorefrontError as exc:
            self._report("Failed to change password", exc)
            return False
        self.notifier.success("Password changed successfully!")
        return True
