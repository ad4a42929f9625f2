from fastapi import APIRouter, Depends, HTTPException, status

from storefront.devserver.deps import get_current_user
from storefront.devserver.routers.auth import to_user
from storefront.devserver.security import hash_password, password_matches
from storefront.devserver.store import UserRecord
from storefront.schemas.auth import UpdateProfileRequest, User

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=User)
def read_me(current_user: UserRecord = Depends(get_current_user)) -> User:
    return to_user(current_user)


@router.put("/me", response_model=User)
def update_me(payload: UpdateProfileRequest, current_user: UserRecord = Depends(get_current_user)) -> User:
    if payload.new_password is not None:
        if not payload.password or not password_matches(current_user, payload.password):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
        current_user.password_hash = hash_password(payload.new_password)
    if payload.name is not None:
        current_user.name = payload.name
    if payload.avatar is not None:
        # an empty string removes the avatar
        current_user.avatar_url = payload.avatar or None
    return to_user(current_user)
