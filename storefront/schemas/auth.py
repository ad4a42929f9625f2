from enum import Enum

from pydantic import EmailStr, Field

from storefront.schemas.base import WireModel


class Role(str, Enum):
    SELLER = "SELLER"
    CLIENT = "CLIENT"
    ADMIN = "ADMIN"


class User(WireModel):
    id: str
    email: EmailStr
    name: str
    role: Role
    avatar_url: str | None = None


class LoginRequest(WireModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(WireModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    name: str = Field(min_length=2, max_length=100)
    role: Role = Role.CLIENT
    avatar_url: str | None = None


class AuthResponse(User):
    token: str

    def user(self) -> User:
        return User.model_validate(self.model_dump(exclude={"token"}))


class Session(WireModel):
    user: User
    token: str


class UpdateProfileRequest(WireModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    avatar: str | None = None
    password: str | None = None
    new_password: str | None = Field(default=None, min_length=6, max_length=128)
