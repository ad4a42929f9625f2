import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from storefront.core.errors import NotFound, StorefrontError, Unauthenticated
from storefront.core.reactive import Computed, Signal
from storefront.schemas.media import Media
from storefront.schemas.product import Product, ProductUpdate
from storefront.services.files.types import LocalFile
from storefront.services.files.validator import PRODUCT_IMAGE, invalid_files
from storefront.services.forms import ProductFormFields
from storefront.services.media import MediaService
from storefront.services.notify import Dialogs, Navigator, Notifier
from storefront.services.products import ProductService

logger = logging.getLogger(__name__)

DASHBOARD_ROUTE = "/seller/dashboard"
REDIRECT_DELAY_SECONDS = 1.0


@dataclass(slots=True, frozen=True)
class ExistingImage:
    media_id: str | None
    url: str


class ProductFormOrchestrator:
    """Create or edit one product together with its images.

    Create: upload the selected files, POST the product, then associate every
    uploaded media with it. Update: flush pending image removals, upload and
    associate new files, then PUT the descriptive fields. A failing step
    notifies once and stops; the form keeps the user's edits and stays dirty.
    Media that were uploaded but not yet associated are kept so a retry does
    not upload them again.
    """

    def __init__(
        self,
        products: ProductService,
        media: MediaService,
        notifier: Notifier,
        dialogs: Dialogs,
        navigator: Navigator,
        redirect_delay: float = REDIRECT_DELAY_SECONDS,
    ) -> None:
        self.products = products
        self.media = media
        self.notifier = notifier
        self.dialogs = dialogs
        self.navigator = navigator
        self.redirect_delay = redirect_delay

        self.fields = ProductFormFields()
        self.product_id: str | None = None
        self.existing_images: Signal[list[ExistingImage]] = Signal([])
        self.existing_image_urls = Computed(lambda: [i.url for i in self.existing_images()], self.existing_images)
        self.selected_files: Signal[list[LocalFile]] = Signal([])
        self.deleted_media_ids: list[str] = []
        self.unassociated_media: list[Media] = []

        self.is_loading = Signal(False)
        self.is_saving = Signal(False)
        self.dirty = False
        self.upload_error = ""
        self.error_message = ""
        self.success_message = ""

    @property
    def is_edit_mode(self) -> bool:
        return self.product_id is not None

    def set_fields(self, **values: Any) -> None:
        for name, value in values.items():
            if name not in ("name", "description", "price", "quantity"):
                raise AttributeError(f"Unknown form field: {name}")
            setattr(self.fields, name, value)
        self.dirty = True

    def _fail(self, exc: StorefrontError, message: str) -> None:
        self.error_message = message
        logger.warning("product_form_step_failed", extra={"step_message": message, "error": exc.message})
        # a 401 already redirected to login; no toast for it
        if not isinstance(exc, Unauthenticated):
            self.notifier.error(message)

    async def load(self, product_id: str) -> Product | None:
        self.is_loading.set(True)
        self.error_message = ""
        try:
            product = await self.products.get_by_id(product_id)
        except StorefrontError as exc:
            self._fail(exc, "Failed to load product")
            return None
        finally:
            self.is_loading.set(False)

        self.product_id = product.id
        self.fields = ProductFormFields(
            name=product.name,
            description=product.description,
            price=product.price,
            quantity=product.quantity,
        )
        self.existing_images.set(self._images_of(product))
        self.selected_files.set([])
        self.deleted_media_ids = []
        self.unassociated_media = []
        self.dirty = False
        return product

    def _images_of(self, product: Product) -> list[ExistingImage]:
        if len(product.media_ids) == len(product.image_urls):
            return [ExistingImage(m, u) for m, u in zip(product.media_ids, product.image_urls)]
        return [ExistingImage(self.media.media_id_from_url(u), u) for u in product.image_urls]

    def select_files(self, files: list[LocalFile]) -> bool:
        """Queue files for upload; if any is invalid none of them is queued."""
        if not files:
            return False
        self.upload_error = ""
        problems = invalid_files(files, PRODUCT_IMAGE)
        if problems:
            file, result = problems[0]
            self.upload_error = f"{file.name}: {result.errors[0]}"
            return False
        self.selected_files.update(lambda current: [*current, *files])
        self.dirty = True
        return True

    def remove_selected_file(self, index: int) -> None:
        self.selected_files.update(lambda current: [f for i, f in enumerate(current) if i != index])

    async def remove_existing_image(self, index: int) -> bool:
        images = self.existing_images()
        if not 0 <= index < len(images):
            return False
        image = images[index]
        media_id = image.media_id or self._cached_media_id(image.url)
        if media_id is None:
            logger.warning("image_without_media_id", extra={"url": image.url})
            self.error_message = "Failed to delete image"
            self.notifier.error(self.error_message)
            return False
        if not await self.dialogs.confirm_delete("this image"):
            return False

        try:
            await self.media.delete_media(media_id)
        except NotFound:
            logger.debug("media_already_deleted", extra={"media_id": media_id})
        except StorefrontError as exc:
            self._fail(exc, "Failed to delete image")
            return False
        if self.product_id is not None:
            await self._dissociate_quietly(media_id)

        self.existing_images.update(lambda current: [i for i in current if i != image])
        self.dirty = True
        self.notifier.success("Image deleted successfully", 2000)
        return True

    def _cached_media_id(self, url: str) -> str | None:
        return next((m.id for m in self.media.media() if m.url == url), None)

    async def _dissociate_quietly(self, media_id: str) -> None:
        try:
            await self.products.dissociate_media(self.product_id, media_id)
        except NotFound:
            pass
        except StorefrontError as exc:
            # retried as part of the next save
            logger.warning("dissociate_deferred", extra={"media_id": media_id, "error": exc.message})
            if media_id not in self.deleted_media_ids:
                self.deleted_media_ids.append(media_id)

    async def submit(self) -> Product | None:
        if self.is_saving():
            logger.debug("product_form_save_in_progress")
            return None
        if not self.fields.validate():
            return None
        self.is_saving.set(True)
        self.error_message = ""
        self.success_message = ""
        try:
            product_id = self.product_id
            outcome = await (self._create() if product_id is None else self._update(product_id))
        finally:
            self.is_saving.set(False)
        if outcome is None:
            return None
        product, message = outcome
        await self._finish(message)
        return product

    async def _upload_selected(self) -> bool:
        files = self.selected_files()
        if not files:
            return True
        try:
            uploaded = await self.media.upload_files(files)
        except StorefrontError as exc:
            self._fail(exc, "Failed to upload images. Please try again.")
            return False
        self.unassociated_media.extend(uploaded)
        self.selected_files.set([])
        return True

    async def _associate_pending(self, product_id: str) -> None:
        pending = list(self.unassociated_media)
        await asyncio.gather(*(self.products.associate_media(product_id, m.id) for m in pending))
        self.unassociated_media = [m for m in self.unassociated_media if m not in pending]
        self.existing_images.update(lambda current: [*current, *(ExistingImage(m.id, m.url) for m in pending)])

    async def _create(self) -> tuple[Product, str] | None:
        if not await self._upload_selected():
            return None
        try:
            product = await self.products.create(self.fields.to_request())
        except StorefrontError as exc:
            self._fail(exc, "Failed to create product. Please try again.")
            return None

        # from here on a retry edits this product instead of creating another
        self.product_id = product.id
        with_images = bool(self.unassociated_media)
        if with_images:
            try:
                await self._associate_pending(product.id)
            except StorefrontError as exc:
                self._fail(exc, "Product created but failed to associate images.")
                return None
        message = "Product created successfully with images!" if with_images else "Product created successfully!"
        return product, message

    async def _update(self, product_id: str) -> tuple[Product, str] | None:
        if self.deleted_media_ids:
            try:
                await asyncio.gather(*(self._purge(product_id, media_id) for media_id in list(self.deleted_media_ids)))
            except StorefrontError as exc:
                self._fail(exc, "Failed to remove images. Please try again.")
                return None

        if not await self._upload_selected():
            return None
        if self.unassociated_media:
            try:
                await self._associate_pending(product_id)
            except StorefrontError as exc:
                self._fail(exc, "Failed to attach images to product. Please try again.")
                return None

        request = self.fields.to_request()
        try:
            product = await self.products.update(product_id, ProductUpdate(**request.model_dump()))
        except StorefrontError as exc:
            self._fail(exc, "Failed to update product. Please try again.")
            return None
        return product, "Product updated successfully!"

    async def _purge(self, product_id: str, media_id: str) -> None:
        try:
            await self.products.dissociate_media(product_id, media_id)
        except NotFound:
            pass
        try:
            await self.media.delete_media(media_id)
        except NotFound:
            pass
        self.deleted_media_ids.remove(media_id)

    async def _finish(self, message: str) -> None:
        self.success_message = message
        self.dirty = False
        self.notifier.success(message)
        await asyncio.sleep(self.redirect_delay)
        self.navigator.navigate(DASHBOARD_ROUTE)

    async def cancel(self) -> bool:
        if self.dirty and not await self.dialogs.confirm_discard():
            return False
        self.navigator.navigate(DASHBOARD_ROUTE)
        return True
