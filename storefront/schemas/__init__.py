from storefront.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, Role, Session, UpdateProfileRequest, User
from storefront.schemas.media import Media, UploadProgress, UploadStatus
from storefront.schemas.product import Product, ProductRequest, ProductUpdate

__all__ = [
    "Role",
    "User",
    "LoginRequest",
    "RegisterRequest",
    "AuthResponse",
    "Session",
    "UpdateProfileRequest",
    "Product",
    "ProductRequest",
    "ProductUpdate",
    "Media",
    "UploadProgress",
    "UploadStatus",
]
