from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.devserver.security import token_subject
from storefront.devserver.store import MemoryStore, UserRecord
from storefront.schemas.auth import Role

bearer_scheme = HTTPBearer(auto_error=False)


def get_store(request: Request) -> MemoryStore:
    return request.app.state.store


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    store: MemoryStore = Depends(get_store),
) -> UserRecord:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    try:
        user_id = token_subject(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    user = store.users.get(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_seller(user: UserRecord = Depends(get_current_user)) -> UserRecord:
    if user.role is not Role.SELLER:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Seller role required")
    return user
