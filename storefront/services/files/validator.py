from collections.abc import Iterable
from dataclasses import dataclass, field

from storefront.services.files.types import LocalFile

MIB = 1024 * 1024

IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})
IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp"})


@dataclass(slots=True, frozen=True)
class FilePreset:
    name: str
    allowed_types: frozenset[str]
    allowed_extensions: frozenset[str]
    max_bytes: int


AVATAR = FilePreset("avatar", IMAGE_TYPES, IMAGE_EXTENSIONS, 1 * MIB)
PRODUCT_IMAGE = FilePreset("product_image", IMAGE_TYPES, IMAGE_EXTENSIONS, 2 * MIB)


@dataclass(slots=True)
class FileValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    idx = 0
    while value >= 1024 and idx < len(units) - 1:
        value /= 1024
        idx += 1
    return f"{round(value, 2):g} {units[idx]}"


def validate_file(file: LocalFile, preset: FilePreset) -> FileValidationResult:
    errors: list[str] = []
    if file.content_type not in preset.allowed_types:
        errors.append(f"disallowed type: {file.content_type or 'unknown'}")
    if file.extension not in preset.allowed_extensions:
        errors.append(f"disallowed extension: {file.extension or '(none)'}")
    if file.size == 0:
        errors.append("file is empty")
    elif file.size > preset.max_bytes:
        errors.append(
            f"file size ({format_file_size(file.size)}) exceeds {format_file_size(preset.max_bytes)} limit"
        )
    return FileValidationResult(valid=not errors, errors=errors)


def validate_files(files: Iterable[LocalFile], preset: FilePreset) -> dict[str, FileValidationResult]:
    """Results keyed by filename; a repeated name keeps only its last result."""
    return {file.name: validate_file(file, preset) for file in files}


def invalid_files(files: Iterable[LocalFile], preset: FilePreset) -> list[tuple[LocalFile, FileValidationResult]]:
    """Every failing file with its result, input order, duplicates included."""
    checked = ((file, validate_file(file, preset)) for file in files)
    return [(file, result) for file, result in checked if not result.valid]
