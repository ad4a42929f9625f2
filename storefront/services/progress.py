import asyncio
import logging

from storefront.core.reactive import Computed, Signal
from storefront.schemas.media import UploadProgress, UploadStatus

logger = logging.getLogger(__name__)

PROGRESS_RETENTION_SECONDS = 3.0


class UploadProgressTracker:
    """Per-file upload state keyed by filename.

    ``uploading`` moves to ``completed`` or ``error`` exactly once; later
    updates for a terminal file are ignored. When every tracked file is
    terminal the map is kept for ``retention_seconds`` and then cleared.
    """

    def __init__(self, retention_seconds: float = PROGRESS_RETENTION_SECONDS) -> None:
        self.retention_seconds = retention_seconds
        self.progress: Signal[dict[str, UploadProgress]] = Signal({})
        self.items = Computed(lambda: list(self.progress().values()), self.progress)
        self.all_terminal = Computed(
            lambda: bool(self.progress()) and all(p.is_terminal for p in self.progress().values()),
            self.progress,
        )
        self._clear_handle: asyncio.TimerHandle | None = None

    def track(self, filenames: list[str]) -> None:
        self._cancel_clear()
        self.progress.set({name: UploadProgress(filename=name) for name in filenames})

    def get(self, filename: str) -> UploadProgress | None:
        return self.progress().get(filename)

    def update(self, filename: str, percent: int) -> None:
        current = self.get(filename)
        if current is None or current.is_terminal:
            return
        percent = max(current.percent, min(99, max(0, percent)))
        self._put(current.model_copy(update={"percent": percent}))

    def complete(self, filename: str, url: str | None = None) -> None:
        self._finish(filename, status=UploadStatus.COMPLETED, percent=100, url=url)

    def fail(self, filename: str, error: str) -> None:
        self._finish(filename, status=UploadStatus.ERROR, error=error)

    def counts(self) -> tuple[int, int]:
        """(completed, failed)"""
        items = self.items()
        completed = sum(1 for p in items if p.status is UploadStatus.COMPLETED)
        failed = sum(1 for p in items if p.status is UploadStatus.ERROR)
        return completed, failed

    def clear_all(self) -> None:
        self._cancel_clear()
        self.progress.set({})

    def _finish(self, filename: str, **changes) -> None:
        current = self.get(filename) or UploadProgress(filename=filename)
        if current.is_terminal:
            return
        self._put(current.model_copy(update=changes))
        if self.all_terminal():
            self._schedule_clear()

    def _put(self, record: UploadProgress) -> None:
        self.progress.set({**self.progress(), record.filename: record})

    def _schedule_clear(self) -> None:
        self._cancel_clear()
        loop = asyncio.get_running_loop()
        self._clear_handle = loop.call_later(self.retention_seconds, self.clear_all)
        logger.debug("upload_batch_finished", extra={"files": len(self.progress())})

    def _cancel_clear(self) -> None:
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None
