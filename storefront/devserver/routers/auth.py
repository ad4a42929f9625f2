import logging

from fastapi import APIRouter, Depends, HTTPException, status

from storefront.devserver.deps import get_store
from storefront.devserver.security import hash_password, issue_token, password_matches
from storefront.devserver.store import MemoryStore, UserRecord
from storefront.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, User

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def to_user(record: UserRecord) -> User:
    return User(
        id=record.id,
        email=record.email,
        name=record.name,
        role=record.role,
        avatar_url=record.avatar_url,
    )


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, store: MemoryStore = Depends(get_store)) -> User:
    if store.user_by_email(payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    user = UserRecord(
        email=payload.email,
        name=payload.name,
        role=payload.role,
        password_hash=hash_password(payload.password),
        avatar_url=payload.avatar_url or None,
    )
    store.users[user.id] = user
    logger.info("user_registered", extra={"user_id": user.id, "role": user.role.value})
    return to_user(user)


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, store: MemoryStore = Depends(get_store)) -> AuthResponse:
    user = store.user_by_email(payload.email)
    if not user or not password_matches(user, payload.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    return AuthResponse(token=issue_token(user), **to_user(user).model_dump())
