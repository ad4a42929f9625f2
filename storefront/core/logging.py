import logging

from storefront.core.config import Settings


class RedactionFilter(logging.Filter):
    """Mask credentials passed to loggers through ``extra``."""

    BLOCKED_KEYS = {"token", "password", "new_password", "authorization"}

    def filter(self, record: logging.LogRecord) -> bool:
        for key in self.BLOCKED_KEYS:
            if hasattr(record, key):
                setattr(record, key, "[REDACTED]")
        return True


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.enable_debug_logging else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    root = logging.getLogger()
    root.setLevel(level)
    # handler filters also see records propagated from child loggers
    for handler in root.handlers:
        if not any(isinstance(f, RedactionFilter) for f in handler.filters):
            handler.addFilter(RedactionFilter())
    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if settings.enable_debug_logging else logging.WARNING)
