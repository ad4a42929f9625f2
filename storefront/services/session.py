import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import ValidationError

from storefront.core.config import Settings
from storefront.core.errors import EmailTaken, InvalidCredentials, InvalidInput, StorefrontError
from storefront.core.reactive import Computed, Signal
from storefront.core.storage import LocalStorage
from storefront.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, Role, Session, User
from storefront.services.http import request_json

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
USER_KEY = "current_user"

IMMUTABLE_USER_FIELDS = {"id", "role"}


def validation_messages(exc: ValidationError) -> list[str]:
    return [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]


class SessionStore:
    """Authenticated user and bearer token, mirrored to durable storage.

    ``set_auth`` and ``clear_auth`` are the only writers of the pair. The
    public cells are read-only views: call them to read, ``subscribe`` to be
    told about changes.
    """

    def __init__(
        self,
        settings: Settings,
        storage: LocalStorage,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.storage = storage
        self._transport = transport

        self._user: Signal[User | None] = Signal(None)
        self._token: Signal[str | None] = Signal(None)
        self._loading: Signal[bool] = Signal(False)

        self.current_user = Computed(self._user.get, self._user)
        self.token = Computed(self._token.get, self._token)
        self.is_loading = Computed(self._loading.get, self._loading)
        self.is_authenticated = Computed(
            lambda: self._user() is not None and self._token() is not None, self._user, self._token
        )
        self.is_seller = Computed(lambda: self.has_role(Role.SELLER), self._user)
        self.is_client = Computed(lambda: self.has_role(Role.CLIENT), self._user)
        self.is_admin = Computed(lambda: self.has_role(Role.ADMIN), self._user)

        self._rehydrate()

    def _rehydrate(self) -> None:
        stored = self.storage.get_items([TOKEN_KEY, USER_KEY])
        token, user_json = stored[TOKEN_KEY], stored[USER_KEY]
        if token is None and user_json is None:
            return
        if not token or not user_json:
            logger.warning("session_rehydrate_incomplete")
            self.clear_auth()
            return
        try:
            user = User.model_validate_json(user_json)
        except ValidationError:
            logger.warning("session_rehydrate_corrupt_user")
            self.clear_auth()
            return
        self._user.set(user)
        self._token.set(token)
        logger.debug("session_rehydrated", extra={"user_id": user.id})

    def has_role(self, role: Role | str) -> bool:
        user = self._user()
        try:
            return user is not None and user.role == Role(role)
        except ValueError:
            return False

    def set_auth(self, user: User, token: str) -> None:
        self.storage.set_items({TOKEN_KEY: token, USER_KEY: user.model_dump_json(by_alias=True)})
        self._user.set(user)
        self._token.set(token)

    def clear_auth(self) -> None:
        self.storage.remove_items([TOKEN_KEY, USER_KEY])
        self._user.set(None)
        self._token.set(None)

    def _client(self) -> httpx.AsyncClient:
        # auth endpoints are public; they bypass the bearer/401 decoration
        return httpx.AsyncClient(transport=self._transport, headers={"Accept": "application/json"})

    async def login(self, email: str, password: str) -> Session:
        try:
            payload = LoginRequest(email=email, password=password)
        except ValidationError as exc:
            raise InvalidInput("Invalid login details", errors=validation_messages(exc)) from exc

        self._loading.set(True)
        try:
            async with self._client() as client:
                data = await request_json(
                    client,
                    "POST",
                    f"{self.settings.auth_url}/login",
                    overrides={401: InvalidCredentials, 403: InvalidCredentials},
                    json=payload.to_wire(),
                )
            session = _parse_session(data)
            self.set_auth(session.user, session.token)
        finally:
            self._loading.set(False)
        logger.info("login_succeeded", extra={"user_id": session.user.id})
        return session

    async def register(self, payload: RegisterRequest | Mapping[str, Any]) -> User:
        if not isinstance(payload, RegisterRequest):
            try:
                payload = RegisterRequest.model_validate(payload)
            except ValidationError as exc:
                raise InvalidInput("Invalid registration details", errors=validation_messages(exc)) from exc

        self._loading.set(True)
        try:
            async with self._client() as client:
                try:
                    data = await request_json(
                        client,
                        "POST",
                        f"{self.settings.auth_url}/register",
                        overrides={409: EmailTaken},
                        json=payload.to_wire(exclude_none=True),
                    )
                except InvalidInput as exc:
                    # some backends answer a duplicate email with 400 instead of 409
                    if exc.status == 400 and _reports_taken_email(exc.message):
                        raise EmailTaken(exc.message, status=exc.status) from exc
                    raise
            body = data.get("user", data) if isinstance(data, dict) else data
            try:
                user = User.model_validate(body)
            except ValidationError as exc:
                raise StorefrontError("Malformed registration response") from exc
        finally:
            self._loading.set(False)
        logger.info("registration_succeeded", extra={"user_id": user.id})
        return user

    def logout(self) -> None:
        if self._user() is None and self._token() is None and TOKEN_KEY not in self.storage:
            return
        self.clear_auth()
        logger.info("logged_out")

    def update_user(self, updates: Mapping[str, Any] | None = None, **fields: Any) -> None:
        """Merge profile changes into the current user; id and role are kept."""
        user = self._user()
        if user is None:
            return
        changes = {**(updates or {}), **fields}
        merged = user.model_dump()
        for key, value in changes.items():
            name = _field_name(key)
            if name in IMMUTABLE_USER_FIELDS or name not in User.model_fields:
                continue
            merged[name] = value
        updated = User.model_validate(merged)
        self.storage.set_item(USER_KEY, updated.model_dump_json(by_alias=True))
        self._user.set(updated)


def _reports_taken_email(message: str) -> bool:
    text = message.lower()
    return "email" in text and ("already" in text or "taken" in text or "exists" in text)


def _field_name(key: str) -> str:
    for name, info in User.model_fields.items():
        if key in (name, info.alias):
            return name
    return key


def _parse_session(data: Any) -> Session:
    try:
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            return Session.model_validate(data)
        response = AuthResponse.model_validate(data)
    except ValidationError as exc:
        raise StorefrontError("Malformed login response") from exc
    return Session(user=response.user(), token=response.token)
