"""Bearer tokens and password hashes for the mock backend's users."""

from datetime import datetime, timedelta, timezone
from functools import lru_cache

from jose import JWTError, jwt
from passlib.context import CryptContext

from storefront.devserver.config import get_dev_settings
from storefront.devserver.store import UserRecord


@lru_cache(maxsize=4)
def _hasher(scheme: str) -> CryptContext:
    return CryptContext(schemes=[scheme])


def hash_password(password: str) -> str:
    return _hasher(get_dev_settings().password_scheme).hash(password)


def password_matches(user: UserRecord, password: str) -> bool:
    return _hasher(get_dev_settings().password_scheme).verify(password, user.password_hash)


def issue_token(user: UserRecord) -> str:
    """Signed token naming the user and role; the client treats it as opaque."""
    settings = get_dev_settings()
    issued = datetime.now(timezone.utc)
    claims = {
        "sub": user.id,
        "role": user.role.value,
        "iat": issued,
        "exp": issued + timedelta(minutes=settings.token_ttl_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def token_subject(token: str) -> str:
    """User id carried by ``token``; raises ValueError when it cannot be trusted."""
    settings = get_dev_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    subject = claims.get("sub")
    if not subject:
        raise ValueError("Token has no subject")
    return str(subject)
