"""Ingestion checks on declared size and media type."""
from dataclasses import dataclass
from typing import Optional

from compressor.config import MAX_FILE_SIZE_BYTES, MAX_FILE_SIZE_MB, SUPPORTED_MEDIA_TYPES

SIZE_ERROR = f"File size must be less than {MAX_FILE_SIZE_MB}MB"
FORMAT_ERROR = "Unsupported file format"


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: Optional[str] = None


def validate_file(size: int, media_type: Optional[str]) -> ValidationResult:
    """Size is checked before type. The declared type is trusted as-is."""
    if size > MAX_FILE_SIZE_BYTES:
        return ValidationResult(False, SIZE_ERROR)
    if (media_type or "") not in SUPPORTED_MEDIA_TYPES:
        return ValidationResult(False, FORMAT_ERROR)
    return ValidationResult(True)
