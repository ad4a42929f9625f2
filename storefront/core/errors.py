"""Client-side error taxonomy.

Every service translates transport failures and HTTP statuses into one of
these classes; callers never see raw ``httpx`` exceptions.
"""

from typing import Any

import httpx


class StorefrontError(Exception):
    default_message = "Request failed"

    def __init__(self, message: str | None = None, status: int | None = None) -> None:
        self.message = message or self.default_message
        self.status = status
        super().__init__(self.message)


class InvalidInput(StorefrontError):
    default_message = "Invalid input"

    def __init__(self, message: str | None = None, errors: list[str] | None = None, status: int | None = None) -> None:
        super().__init__(message, status)
        self.errors = errors or []


class InvalidFile(InvalidInput):
    default_message = "Invalid file"


class Unauthenticated(StorefrontError):
    default_message = "Authentication required"


class InvalidCredentials(Unauthenticated):
    default_message = "Invalid email or password"


class Forbidden(StorefrontError):
    default_message = "You do not have permission to perform this action"


class NotFound(StorefrontError):
    default_message = "Resource not found"


class Conflict(StorefrontError):
    default_message = "Conflict"


class EmailTaken(Conflict):
    default_message = "Email already registered"


class NetworkError(StorefrontError):
    default_message = "Network error"


class ServerError(StorefrontError):
    default_message = "Server error"


class UploadFailed(StorefrontError):
    default_message = "Upload failed"

    def __init__(self, filename: str, cause: StorefrontError) -> None:
        super().__init__(f"{filename}: {cause.message}", cause.status)
        self.filename = filename
        self.cause = cause


class DeleteMediaFailed(StorefrontError):
    """Raised by batch deletion; ``failures`` maps media id to its error."""

    def __init__(self, failures: dict[str, StorefrontError]) -> None:
        first = next(iter(failures.values()))
        super().__init__(first.message, first.status)
        self.failures = failures
        self.first = first


STATUS_ERRORS: dict[int, type[StorefrontError]] = {
    400: InvalidInput,
    401: Unauthenticated,
    403: Forbidden,
    404: NotFound,
    409: Conflict,
    422: InvalidInput,
}


def _extract_message(response: httpx.Response) -> str | None:
    try:
        body: Any = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, list) and value:
                # FastAPI validation errors
                return "; ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in value)
    return None


def error_from_response(
    response: httpx.Response,
    overrides: dict[int, type[StorefrontError]] | None = None,
) -> StorefrontError:
    status = response.status_code
    message = _extract_message(response)
    error_cls = (overrides or {}).get(status) or STATUS_ERRORS.get(status)
    if error_cls is None:
        error_cls = ServerError if status >= 500 else StorefrontError
    return error_cls(message, status=status)
