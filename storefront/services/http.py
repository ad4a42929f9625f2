import logging
from collections.abc import Generator
from typing import TYPE_CHECKING, Any

import httpx

from storefront.core.config import Settings
from storefront.core.errors import NetworkError, StorefrontError, error_from_response
from storefront.services.notify import Navigator

if TYPE_CHECKING:
    from storefront.services.session import SessionStore

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "/auth/login"


class BearerAuth(httpx.Auth):
    """Attach the session token and drop the session on a 401.

    The token is read when the request is sent. The flow yields exactly once,
    so a 401 is never retried and recovery runs once per response.
    """

    def __init__(self, session: "SessionStore", navigator: Navigator) -> None:
        self.session = session
        self.navigator = navigator

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self.session.token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        response = yield request
        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.info("session_rejected", extra={"method": request.method, "url": str(request.url)})
            self.session.logout()
            self.navigator.navigate(LOGIN_ROUTE)


def create_http_client(
    settings: Settings,
    session: "SessionStore",
    navigator: Navigator,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.api_url,
        auth=BearerAuth(session, navigator),
        transport=transport,
        headers={"Accept": "application/json"},
    )


async def send_request(
    client: httpx.AsyncClient,
    request: httpx.Request,
    overrides: dict[int, type[StorefrontError]] | None = None,
) -> httpx.Response:
    """Send a built request and translate any failure into the error taxonomy."""
    try:
        response = await client.send(request)
    except httpx.TransportError as exc:
        logger.warning("http_transport_error", extra={"method": request.method, "url": str(request.url), "error": str(exc)})
        raise NetworkError(f"Could not reach server: {exc}") from exc
    except (httpx.RequestError, httpx.InvalidURL) as exc:
        # undecodable bodies, redirect loops and bad redirect targets
        logger.warning("http_request_error", extra={"method": request.method, "url": str(request.url), "error": str(exc)})
        raise NetworkError(f"Request failed: {exc}") from exc
    if response.is_error:
        logger.debug(
            "http_error_response",
            extra={"method": request.method, "url": str(request.url), "status": response.status_code},
        )
        raise error_from_response(response, overrides)
    return response


def build_request(client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Request:
    try:
        return client.build_request(method, url, **kwargs)
    except httpx.InvalidURL as exc:
        raise NetworkError(f"Invalid request URL: {exc}") from exc


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    overrides: dict[int, type[StorefrontError]] | None = None,
    **kwargs: Any,
) -> httpx.Response:
    return await send_request(client, build_request(client, method, url, **kwargs), overrides)


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    overrides: dict[int, type[StorefrontError]] | None = None,
    **kwargs: Any,
) -> Any:
    response = await send(client, method, url, overrides, **kwargs)
    if response.status_code == httpx.codes.NO_CONTENT or not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise StorefrontError("Malformed response body", status=response.status_code) from exc
