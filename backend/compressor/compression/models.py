"""Compression request/result models."""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from compressor.config import DEFAULT_QUALITY, OUTPUT_FORMATS
from compressor.compression.errors import InvalidSettingsError

FileSource = Union[bytes, Path]


class FileStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    DONE = "done"
    ERRORED = "errored"


class OutputFormat(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"


@dataclass(frozen=True)
class FormatInfo:
    mime_type: str
    extension: str
    name: str
    supports_lossless: bool
    min_quality: int = 1
    max_quality: int = 100


FORMAT_INFO: dict[str, FormatInfo] = {
    "image/jpeg": FormatInfo("image/jpeg", "jpg", "JPEG", supports_lossless=False),
    "image/png": FormatInfo("image/png", "png", "PNG", supports_lossless=True),
    "image/gif": FormatInfo("image/gif", "gif", "GIF", supports_lossless=True),
    "image/webp": FormatInfo("image/webp", "webp", "WebP", supports_lossless=True),
    "image/svg+xml": FormatInfo("image/svg+xml", "svg", "SVG", supports_lossless=True),
}


@dataclass(frozen=True)
class CompressionSettings:
    """Target quality/format/bounds for one batch run. Validated on construction."""

    quality: int = DEFAULT_QUALITY
    format: OutputFormat = OutputFormat.JPEG
    max_width: Optional[int] = None
    max_height: Optional[int] = None
    maintain_aspect_ratio: bool = True
    lossless: bool = False

    def __post_init__(self):
        if isinstance(self.quality, bool) or not isinstance(self.quality, int):
            raise InvalidSettingsError(f"quality must be an integer, got {self.quality!r}")
        if not 1 <= self.quality <= 100:
            raise InvalidSettingsError(f"quality must be between 1 and 100, got {self.quality}")
        fmt = self.format.value if isinstance(self.format, OutputFormat) else str(self.format).lower()
        if fmt not in OUTPUT_FORMATS:
            raise InvalidSettingsError(f"Unsupported output format: {self.format}")
        object.__setattr__(self, "format", OutputFormat(fmt))
        for name in ("max_width", "max_height"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidSettingsError(f"{name} must be a positive integer, got {value!r}")

    @property
    def uses_lossless(self) -> bool:
        """lossless only has an effect where the target format supports it."""
        return self.lossless and self.format != OutputFormat.JPEG

    def to_dict(self) -> dict:
        return {
            "quality": self.quality,
            "format": self.format.value,
            "max_width": self.max_width,
            "max_height": self.max_height,
            "maintain_aspect_ratio": self.maintain_aspect_ratio,
            "lossless": self.lossless,
        }


@dataclass
class CompressedOutput:
    data: bytes
    size: int
    quality: int
    format: str
    width: int
    height: int
    compression_ratio: float

    def to_dict(self) -> dict:
        return {
            "size": self.size,
            "quality": self.quality,
            "format": self.format,
            "width": self.width,
            "height": self.height,
            "compression_ratio": round(self.compression_ratio, 2),
        }


@dataclass(frozen=True)
class Preset:
    preset_id: str
    name: str
    description: str
    settings: CompressionSettings

    def to_dict(self) -> dict:
        return {
            "id": self.preset_id,
            "name": self.name,
            "description": self.description,
            "settings": self.settings.to_dict(),
        }


class InputFile:
    """In-memory state of one selected file, from ingestion until removal."""

    def __init__(self, file_id: str, name: str, size: int, media_type: str, source: FileSource):
        self.file_id = file_id
        self.name = name
        self.size = size
        self.media_type = media_type
        self.source = source
        self.preview: Optional[str] = None  # data URL
        self.error: Optional[str] = None
        self.is_processing: bool = False
        self.compressed: Optional[CompressedOutput] = None

    @property
    def status(self) -> FileStatus:
        if self.is_processing:
            return FileStatus.PROCESSING
        if self.error:
            return FileStatus.ERRORED
        if self.compressed is not None:
            return FileStatus.DONE
        return FileStatus.IDLE

    @property
    def is_eligible(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "id": self.file_id,
            "name": self.name,
            "size": self.size,
            "type": self.media_type,
            "status": self.status.value,
            "preview": self.preview,
            "error": self.error,
            "is_processing": self.is_processing,
            "compressed": self.compressed.to_dict() if self.compressed else None,
        }

    def __repr__(self) -> str:
        return f"InputFile({self.file_id!r}, {self.name!r}, status={self.status.value})"


@dataclass
class FileResult:
    file_id: str
    name: str
    status: FileStatus
    original_size: int
    compressed_size: Optional[int] = None
    error: Optional[str] = None
    processing_time: float = 0.0


@dataclass
class BatchSummary:
    results: list[FileResult] = field(default_factory=list)
    total_original_size: int = 0
    total_compressed_size: int = 0
    processing_time: float = 0.0

    @property
    def total_savings(self) -> int:
        return self.total_original_size - self.total_compressed_size

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.status == FileStatus.DONE)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == FileStatus.ERRORED)

    def to_dict(self) -> dict:
        return {
            "results": [
                {
                    "id": r.file_id,
                    "name": r.name,
                    "status": r.status.value,
                    "original_size": r.original_size,
                    "compressed_size": r.compressed_size,
                    "error": r.error,
                    "processing_time": round(r.processing_time, 3),
                }
                for r in self.results
            ],
            "succeeded": self.succeeded,
            "failed": self.failed,
            "total_original_size": self.total_original_size,
            "total_compressed_size": self.total_compressed_size,
            "total_savings": self.total_savings,
            "processing_time": round(self.processing_time, 3),
        }
