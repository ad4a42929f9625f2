import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from storefront.schemas.auth import Role


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class UserRecord:
    email: str
    name: str
    role: Role
    password_hash: str
    avatar_url: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class ProductRecord:
    name: str
    description: str
    price: float
    quantity: int
    seller_id: str
    media_ids: list[str] = field(default_factory=list)
    image_urls: list[str] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class MediaRecord:
    original_filename: str
    content_type: str
    data: bytes = field(repr=False)
    user_id: str
    url: str = ""
    product_id: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class MemoryStore:
    users: dict[str, UserRecord] = field(default_factory=dict)
    products: dict[str, ProductRecord] = field(default_factory=dict)
    media: dict[str, MediaRecord] = field(default_factory=dict)

    def user_by_email(self, email: str) -> UserRecord | None:
        email = email.lower()
        return next((u for u in self.users.values() if u.email.lower() == email), None)
