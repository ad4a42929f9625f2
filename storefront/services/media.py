import asyncio
import io
import logging
from collections.abc import AsyncIterator, Callable
from urllib.parse import urlparse

import httpx
from pydantic import TypeAdapter

from storefront.core.config import Settings
from storefront.core.errors import DeleteMediaFailed, InvalidFile, StorefrontError, UploadFailed
from storefront.core.reactive import Signal
from storefront.schemas.media import Media
from storefront.services.files.types import LocalFile
from storefront.services.files.validator import PRODUCT_IMAGE, FilePreset, invalid_files, validate_file
from storefront.services.http import build_request, request_json, send_request
from storefront.services.progress import UploadProgressTracker

logger = logging.getLogger(__name__)

MEDIA_LIST = TypeAdapter(list[Media])


class ProgressStream(httpx.AsyncByteStream):
    """Request body wrapper reporting bytes handed to the transport."""

    def __init__(self, stream: httpx.AsyncByteStream, total: int, on_progress: Callable[[int, int], None]) -> None:
        self._stream = stream
        self._total = total
        self._on_progress = on_progress

    async def __aiter__(self) -> AsyncIterator[bytes]:
        sent = 0
        async for chunk in self._stream:
            sent += len(chunk)
            yield chunk
            self._on_progress(sent, self._total)

    async def aclose(self) -> None:
        await self._stream.aclose()


class MediaService:
    """Upload, list and delete the current user's images.

    ``media`` mirrors the server at the last successful listing; uploads
    append to it and deletions remove entries once the server confirms.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings, preset: FilePreset = PRODUCT_IMAGE) -> None:
        self._http = http
        self.settings = settings
        self.preset = preset
        self.media: Signal[list[Media]] = Signal([])

    @property
    def images_url(self) -> str:
        return f"{self.settings.media_url}/images"

    def media_url(self, media_id: str) -> str:
        return f"{self.images_url}/{media_id}"

    @staticmethod
    def media_id_from_url(url: str) -> str | None:
        path = urlparse(url).path.rstrip("/")
        head, sep, tail = path.rpartition("/images/")
        if not sep or not tail or "/" in tail:
            return None
        return tail

    def _check(self, file: LocalFile) -> None:
        result = validate_file(file, self.preset)
        if not result.valid:
            raise InvalidFile(f"{file.name}: {', '.join(result.errors)}", errors=result.errors)

    async def _post(self, file: LocalFile, on_progress: Callable[[int, int], None] | None = None) -> Media:
        try:
            request = build_request(
                self._http,
                "POST",
                self.images_url,
                files={"file": (file.name, io.BytesIO(file.data), file.content_type)},
            )
            if on_progress is not None:
                total = int(request.headers.get("Content-Length") or file.size)
                request.stream = ProgressStream(request.stream, total, on_progress)
            response = await send_request(self._http, request)
            media = Media.model_validate(response.json())
        except StorefrontError as exc:
            logger.warning("media_upload_failed", extra={"file_name": file.name, "status": exc.status})
            raise UploadFailed(file.name, exc) from exc
        except ValueError as exc:
            raise UploadFailed(file.name, StorefrontError("Malformed upload response")) from exc
        self.media.update(lambda items: [*items, media])
        logger.info("media_uploaded", extra={"media_id": media.id, "size": media.size})
        return media

    async def upload_file(self, file: LocalFile) -> Media:
        self._check(file)
        return await self._post(file)

    async def upload_files(self, files: list[LocalFile]) -> list[Media]:
        """Upload a batch in parallel; nothing is sent if any file is invalid."""
        problems = [f"{file.name}: {', '.join(result.errors)}" for file, result in invalid_files(files, self.preset)]
        if problems:
            raise InvalidFile(f"Some files are invalid: {'; '.join(problems)}", errors=problems)
        if not files:
            return []
        return list(await asyncio.gather(*(self._post(file) for file in files)))

    async def upload_files_with_progress(
        self,
        files: list[LocalFile],
        tracker: UploadProgressTracker,
    ) -> list[Media]:
        """Upload each valid file, recording per-file state in ``tracker``.

        Invalid files are marked as errors without contacting the server. The
        successfully uploaded media are returned in input order.
        """
        tracker.track([file.name for file in files])

        async def run(file: LocalFile) -> Media | None:
            result = validate_file(file, self.preset)
            if not result.valid:
                tracker.fail(file.name, result.errors[0])
                return None
            try:
                media = await self._post(file, lambda sent, total: tracker.update(file.name, sent * 100 // max(total, 1)))
            except UploadFailed as exc:
                tracker.fail(file.name, exc.cause.message)
                return None
            tracker.complete(file.name, media.url)
            return media

        results = await asyncio.gather(*(run(file) for file in files))
        return [media for media in results if media is not None]

    async def get_all_media(self) -> list[Media]:
        data = await request_json(self._http, "GET", self.images_url)
        items = MEDIA_LIST.validate_python(data or [])
        self.media.set(items)
        return items

    async def delete_media(self, media_id: str) -> None:
        await request_json(self._http, "DELETE", self.media_url(media_id))
        self.media.update(lambda items: [m for m in items if m.id != media_id])
        logger.info("media_deleted", extra={"media_id": media_id})

    async def delete_media_files(self, media_ids: list[str]) -> list[None]:
        results = await asyncio.gather(*(self.delete_media(i) for i in media_ids), return_exceptions=True)
        failures: dict[str, StorefrontError] = {}
        for media_id, result in zip(media_ids, results):
            if isinstance(result, StorefrontError):
                failures[media_id] = result
            elif isinstance(result, BaseException):
                raise result
        if failures:
            raise DeleteMediaFailed(failures)
        return [None] * len(media_ids)
