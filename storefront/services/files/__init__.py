from storefront.services.files.types import LocalFile
from storefront.services.files.validator import (
    AVATAR,
    PRODUCT_IMAGE,
    FilePreset,
    FileValidationResult,
    format_file_size,
    validate_file,
    invalid_files,
    validate_files,
)

__all__ = [
    "LocalFile",
    "FilePreset",
    "FileValidationResult",
    "AVATAR",
    "PRODUCT_IMAGE",
    "format_file_size",
    "validate_file",
    "invalid_files",
    "validate_files",
]
