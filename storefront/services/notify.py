"""Interfaces of the UI collaborators the services talk to.

The toast, dialog and router widgets live outside this package; services only
depend on these protocols. The concrete classes below are headless defaults
used by scripts and the dev tooling.
"""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def success(self, message: str, duration: int | None = None) -> None: ...

    def error(self, message: str, duration: int | None = None) -> None: ...

    def file_upload_success(self, count: int, failed: int | None = None) -> None: ...

    def file_upload_error(self, filename: str, error: str) -> None: ...


class Dialogs(Protocol):
    async def confirm(self, title: str, message: str, confirm_text: str = "Confirm", danger: bool = False) -> bool: ...

    async def confirm_delete(self, item: str) -> bool: ...

    async def confirm_discard(self) -> bool: ...


class Navigator(Protocol):
    def navigate(self, path: str) -> None: ...


class LoggingNotifier:
    def success(self, message: str, duration: int | None = None) -> None:
        logger.info("notify_success %s", message)

    def error(self, message: str, duration: int | None = None) -> None:
        logger.error("notify_error %s", message)

    def file_upload_success(self, count: int, failed: int | None = None) -> None:
        if failed:
            self.success(f"{count} file(s) uploaded, {failed} failed")
        else:
            self.success(f"{count} file(s) uploaded successfully")

    def file_upload_error(self, filename: str, error: str) -> None:
        self.error(f"{filename}: {error}")


class StaticDialogs:
    """Answers every confirmation with the same value."""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer

    async def confirm(self, title: str, message: str, confirm_text: str = "Confirm", danger: bool = False) -> bool:
        logger.debug("dialog_confirm %s -> %s", title, self.answer)
        return self.answer

    async def confirm_delete(self, item: str) -> bool:
        return await self.confirm("Delete", f"Are you sure you want to delete {item}?", "Delete", danger=True)

    async def confirm_discard(self) -> bool:
        return await self.confirm("Discard changes", "You have unsaved changes. Discard them?", "Discard")


class HistoryNavigator:
    def __init__(self, start: str = "/") -> None:
        self.history: list[str] = [start]

    @property
    def current(self) -> str:
        return self.history[-1]

    def navigate(self, path: str) -> None:
        logger.debug("navigate %s", path)
        self.history.append(path)
