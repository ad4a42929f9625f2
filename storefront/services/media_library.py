import asyncio
import logging

from storefront.core.errors import DeleteMediaFailed, StorefrontError, Unauthenticated
from storefront.core.reactive import Computed, Signal
from storefront.schemas.media import Media
from storefront.schemas.product import Product
from storefront.services.files.types import LocalFile
from storefront.services.media import MediaService
from storefront.services.notify import Dialogs, Notifier
from storefront.services.products import ProductService
from storefront.services.progress import UploadProgressTracker

logger = logging.getLogger(__name__)

FILTER_ALL = "all"
FILTER_UNASSIGNED = "unassigned"


class MediaLibrary:
    """The seller's image library: browse, filter, bulk upload and delete."""

    def __init__(
        self,
        media: MediaService,
        products: ProductService,
        notifier: Notifier,
        dialogs: Dialogs,
        tracker: UploadProgressTracker | None = None,
    ) -> None:
        self.media = media
        self.products = products
        self.notifier = notifier
        self.dialogs = dialogs
        self.tracker = tracker or UploadProgressTracker()

        self.is_loading = Signal(False)
        self.is_uploading = Signal(False)
        self.selected: Signal[frozenset[str]] = Signal(frozenset())
        self.my_products: Signal[list[Product]] = Signal([])
        self.selected_product_id: Signal[str | None] = Signal(None)
        self.filter: Signal[str] = Signal(FILTER_ALL)

        self.filtered_media = Computed(self._filtered, self.media.media, self.filter)
        self.total_size = Computed(lambda: sum(m.size for m in self.filtered_media()), self.filtered_media)
        self.selected_count = Computed(lambda: len(self.selected()), self.selected)
        self.has_selection = Computed(lambda: bool(self.selected()), self.selected)

    def _filtered(self) -> list[Media]:
        items = self.media.media()
        current = self.filter()
        if current == FILTER_ALL:
            return items
        if current == FILTER_UNASSIGNED:
            return [m for m in items if not m.product_id]
        return [m for m in items if m.product_id == current]

    async def load(self) -> None:
        self.is_loading.set(True)
        try:
            results = await asyncio.gather(self.media.get_all_media(), self.products.list_mine(), return_exceptions=True)
        finally:
            self.is_loading.set(False)
        media_result, products_result = results
        if isinstance(products_result, StorefrontError):
            logger.warning("library_products_unavailable", extra={"error": products_result.message})
        elif isinstance(products_result, BaseException):
            raise products_result
        else:
            self.my_products.set(products_result)
        if isinstance(media_result, StorefrontError):
            if not isinstance(media_result, Unauthenticated):
                self.notifier.error("Failed to load media")
        elif isinstance(media_result, BaseException):
            raise media_result

    def filter_by(self, value: str) -> None:
        self.filter.set(value)

    def product_name(self, product_id: str | None) -> str:
        if not product_id:
            return "Unassigned"
        for product in self.my_products():
            if product.id == product_id:
                return product.name
        return f"Product {product_id}"

    def toggle(self, media_id: str) -> None:
        current = self.selected()
        self.selected.set(current - {media_id} if media_id in current else current | {media_id})

    def select_all(self) -> None:
        self.selected.set(frozenset(m.id for m in self.media.media()))

    def deselect_all(self) -> None:
        self.selected.set(frozenset())

    def is_selected(self, media_id: str) -> bool:
        return media_id in self.selected()

    async def upload(self, files: list[LocalFile]) -> list[Media]:
        if not files:
            return []
        self.is_uploading.set(True)
        try:
            uploaded = await self.media.upload_files_with_progress(files, self.tracker)
        finally:
            self.is_uploading.set(False)

        product_id = self.selected_product_id()
        if uploaded and product_id:
            try:
                await asyncio.gather(*(self.products.associate_media(product_id, m.id) for m in uploaded))
            except StorefrontError as exc:
                logger.warning("library_association_failed", extra={"product_id": product_id, "error": exc.message})
                self.notifier.error("Uploaded images could not be attached to the product")
                return uploaded

        completed, failed = self.tracker.counts()
        if completed:
            self.notifier.file_upload_success(completed, failed or None)
            try:
                await self.media.get_all_media()
            except StorefrontError as exc:
                logger.warning("library_refresh_failed", extra={"error": exc.message})
        else:
            self.notifier.error("All uploads failed")
        return uploaded

    async def delete(self, media_id: str) -> bool:
        if not await self.dialogs.confirm_delete("this image"):
            return False
        try:
            await self.media.delete_media(media_id)
        except StorefrontError as exc:
            if not isinstance(exc, Unauthenticated):
                self.notifier.error("Failed to delete image")
            return False
        self.selected.set(self.selected() - {media_id})
        self.notifier.success("Image deleted successfully", 2000)
        return True

    async def delete_selected(self) -> bool:
        ids = sorted(self.selected())
        if not ids:
            return False
        confirmed = await self.dialogs.confirm(
            "Delete Multiple Images",
            f"Are you sure you want to delete {len(ids)} selected image(s)? This action cannot be undone.",
            "Delete All",
            danger=True,
        )
        if not confirmed:
            return False
        try:
            await self.media.delete_media_files(ids)
        except DeleteMediaFailed as exc:
            # successful deletions already left the cache
            self.selected.set(frozenset(exc.failures))
            if not isinstance(exc.first, Unauthenticated):
                self.notifier.error(f"Failed to delete {len(exc.failures)} of {len(ids)} image(s)")
            return False
        self.deselect_all()
        self.notifier.success(f"{len(ids)} image(s) deleted successfully", 2000)
        return True
