import httpx
import pytest
from fastapi.testclient import TestClient

from storefront.client import Storefront
from storefront.core.config import Settings
from storefront.core.storage import LocalStorage
from storefront.devserver.main import create_app
from storefront.devserver.store import MemoryStore
from storefront.schemas.auth import Role
from storefront.services.files.types import LocalFile
from storefront.services.notify import HistoryNavigator

API_URL = "http://testserver/api"
KIB = 1024


class RecordingNotifier:
    def __init__(self) -> None:
        self.successes: list[str] = []
        self.errors: list[str] = []
        self.upload_results: list[tuple[int, int | None]] = []
        self.upload_errors: list[tuple[str, str]] = []

    def success(self, message, duration=None):
        self.successes.append(message)

    def error(self, message, duration=None):
        self.errors.append(message)

    def file_upload_success(self, count, failed=None):
        self.upload_results.append((count, failed))

    def file_upload_error(self, filename, error):
        self.upload_errors.append((filename, error))


class ScriptedDialogs:
    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.prompts: list[str] = []

    async def confirm(self, title, message, confirm_text="Confirm", danger=False):
        self.prompts.append(title)
        return self.answer

    async def confirm_delete(self, item):
        return await self.confirm("Delete", item, "Delete", danger=True)

    async def confirm_discard(self):
        return await self.confirm("Discard", "Discard changes?", "Discard")


class RecordingTransport(httpx.AsyncBaseTransport):
    """Delegates to ``inner``; answers 500 to requests matching ``fail``."""

    def __init__(self, inner: httpx.AsyncBaseTransport) -> None:
        self.inner = inner
        self.requests: list[tuple[str, str]] = []
        self.fail = None

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        if self.fail is not None and self.fail(request):
            return httpx.Response(500, json={"message": "injected failure"})
        return await self.inner.handle_async_request(request)

    def count(self, method: str, path_part: str) -> int:
        return sum(1 for m, p in self.requests if m == method and path_part in p)


def image(name: str = "photo.png", size: int = 10 * KIB, content_type: str | None = None) -> LocalFile:
    if content_type is None:
        content_type = "image/png" if name.endswith(".png") else "image/jpeg"
    return LocalFile(name=name, content_type=content_type, data=b"\x01" * size)


async def sign_in(sf: Storefront, email: str, role: Role = Role.SELLER, password: str = "pw123456"):
    await sf.session.register({"email": email, "password": password, "name": "Test User", "role": role})
    return await sf.session.login(email, password)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def app(store):
    return create_app(store)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def settings():
    return Settings.for_api(API_URL)


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def dialogs():
    return ScriptedDialogs()


@pytest.fixture()
def navigator():
    return HistoryNavigator()


@pytest.fixture()
def make_storefront(app, settings, notifier, dialogs, navigator):
    def factory(storage: LocalStorage | None = None, transport: httpx.AsyncBaseTransport | None = None) -> Storefront:
        return Storefront(
            settings=settings,
            storage=storage if storage is not None else LocalStorage(),
            notifier=notifier,
            dialogs=dialogs,
            navigator=navigator,
            transport=transport or httpx.ASGITransport(app=app),
        )

    return factory


@pytest.fixture()
def recorder(app):
    return RecordingTransport(httpx.ASGITransport(app=app))


@pytest.fixture()
async def storefront(make_storefront):
    async with make_storefront() as sf:
        yield sf


@pytest.fixture()
async def seller(storefront):
    await sign_in(storefront, "seller@example.com")
    return storefront
