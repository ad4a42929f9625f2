from datetime import datetime
from enum import Enum

from pydantic import Field

from storefront.schemas.base import WireModel


class Media(WireModel):
    id: str
    url: str
    original_filename: str
    size: int
    content_type: str
    user_id: str | None = None
    product_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UploadStatus(str, Enum):
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"


class UploadProgress(WireModel):
    model_config = {"frozen": True}

    filename: str
    percent: int = Field(default=0, ge=0, le=100)
    status: UploadStatus = UploadStatus.UPLOADING
    url: str | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not UploadStatus.UPLOADING
