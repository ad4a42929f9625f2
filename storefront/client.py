import logging
from pathlib import Path

import httpx

from storefront.core.config import Settings, get_settings
from storefront.core.logging import configure_logging
from storefront.core.storage import LocalStorage
from storefront.services.http import create_http_client
from storefront.services.media import MediaService
from storefront.services.media_library import MediaLibrary
from storefront.services.notify import Dialogs, HistoryNavigator, LoggingNotifier, Navigator, Notifier, StaticDialogs
from storefront.services.product_form import REDIRECT_DELAY_SECONDS, ProductFormOrchestrator
from storefront.services.products import ProductService
from storefront.services.profile import ProfileService
from storefront.services.progress import PROGRESS_RETENTION_SECONDS, UploadProgressTracker
from storefront.services.session import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_PATH = Path.home() / ".storefront" / "storage.json"


class Storefront:
    """One signed-in client: session, shared HTTP client and services.

    Use as an async context manager, or call ``aclose`` when done.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        storage: LocalStorage | None = None,
        notifier: Notifier | None = None,
        dialogs: Dialogs | None = None,
        navigator: Navigator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        configure_logs: bool = False,
    ) -> None:
        self.settings = settings or get_settings()
        if configure_logs:
            configure_logging(self.settings)
        self.storage = storage if storage is not None else LocalStorage(DEFAULT_STORAGE_PATH)
        self.notifier = notifier or LoggingNotifier()
        self.dialogs = dialogs or StaticDialogs()
        self.navigator = navigator or HistoryNavigator()

        self.session = SessionStore(self.settings, self.storage, transport=transport)
        self.http = create_http_client(self.settings, self.session, self.navigator, transport=transport)
        self.media = MediaService(self.http, self.settings)
        self.products = ProductService(self.http, self.settings, self.session)
        self.profile = ProfileService(self.http, self.settings, self.session, self.media, self.notifier)
        logger.debug("storefront_ready", extra={"api_url": self.settings.api_url, "production": self.settings.production})

    def product_form(self, redirect_delay: float = REDIRECT_DELAY_SECONDS) -> ProductFormOrchestrator:
        return ProductFormOrchestrator(
            self.products, self.media, self.notifier, self.dialogs, self.navigator, redirect_delay=redirect_delay
        )

    def media_library(self, retention_seconds: float = PROGRESS_RETENTION_SECONDS) -> MediaLibrary:
        return MediaLibrary(
            self.media, self.products, self.notifier, self.dialogs, UploadProgressTracker(retention_seconds)
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "Storefront":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
