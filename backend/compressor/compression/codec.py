"""Image codec boundary: decode, resize and re-encode via Pillow, plus preview thumbnails."""
import asyncio
import base64
import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from compressor.config import PREVIEW_MAX_SIZE, PREVIEW_QUALITY
from compressor.compression.errors import CodecError, PreviewError, SourceReadError
from compressor.compression.models import CompressedOutput, CompressionSettings, FileSource, OutputFormat
from compressor.compression.naming import calculate_compression_ratio
from compressor.compression.resize import (
    compute_preview_dimensions,
    compute_target_dimensions,
    resize_exact,
    to_pixels,
)

logger = logging.getLogger("compressor.codec")

PREVIEW_READ_FAILED = "read failed"
PREVIEW_DECODE_FAILED = "decode failed"


async def read_source(source: FileSource) -> bytes:
    """Return the raw bytes of an input file. Paths are read off the event loop."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    try:
        return await asyncio.to_thread(Path(source).read_bytes)
    except OSError as e:
        raise SourceReadError(f"Failed to read file: {e}") from e


class ImageCodec(ABC):
    """Interface the orchestrator compresses through."""

    @abstractmethod
    async def encode(self, source: FileSource, settings: CompressionSettings, original_size: int) -> CompressedOutput:
        raise NotImplementedError

    @abstractmethod
    async def thumbnail(self, source: FileSource) -> bytes:
        """Small JPEG of the image, longest side bounded. Raises PreviewError."""
        raise NotImplementedError


def _prepare_mode(img: Image.Image, fmt: OutputFormat) -> Image.Image:
    if fmt == OutputFormat.JPEG:
        return img if img.mode == "RGB" else img.convert("RGB")
    if img.mode in ("RGB", "RGBA"):
        return img
    if img.mode in ("LA", "PA") or "transparency" in img.info:
        return img.convert("RGBA")
    return img.convert("RGB")


def _save_kwargs(settings: CompressionSettings) -> dict:
    if settings.format == OutputFormat.JPEG:
        return {"format": "JPEG", "quality": settings.quality, "optimize": True}
    if settings.format == OutputFormat.PNG:
        return {"format": "PNG", "optimize": True}
    save_kw = {"format": "WEBP", "quality": settings.quality, "method": 4}
    if settings.uses_lossless:
        save_kw["lossless"] = True
    return save_kw


class PillowCodec(ImageCodec):
    """Default codec. Blocking Pillow work runs in a worker thread."""

    def __init__(self, preview_max_size: int = PREVIEW_MAX_SIZE, preview_quality: int = PREVIEW_QUALITY):
        self.preview_max_size = preview_max_size
        self.preview_quality = preview_quality

    async def encode(self, source: FileSource, settings: CompressionSettings, original_size: int) -> CompressedOutput:
        try:
            data = await read_source(source)
        except SourceReadError as e:
            raise CodecError(str(e)) from e
        return await asyncio.to_thread(self._encode_sync, data, settings, original_size)

    def _encode_sync(self, data: bytes, settings: CompressionSettings, original_size: int) -> CompressedOutput:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                target_w, target_h = compute_target_dimensions(
                    img.width,
                    img.height,
                    max_width=settings.max_width,
                    max_height=settings.max_height,
                    maintain_aspect_ratio=settings.maintain_aspect_ratio,
                )
                width, height = to_pixels(target_w, target_h)
                work = resize_exact(_prepare_mode(img, settings.format), width, height)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, EOFError, ValueError) as e:
            raise CodecError(f"Failed to load image: {e}") from e

        buf = io.BytesIO()
        try:
            work.save(buf, **_save_kwargs(settings))
        except (OSError, ValueError, KeyError) as e:
            raise CodecError(f"Failed to compress image: {e}") from e
        payload = buf.getvalue()
        if not payload:
            raise CodecError("Failed to compress image")

        logger.debug("Encoded %sx%s %s (%s bytes)", width, height, settings.format.value, len(payload))
        return CompressedOutput(
            data=payload,
            size=len(payload),
            quality=settings.quality,
            format=settings.format.value,
            width=width,
            height=height,
            compression_ratio=calculate_compression_ratio(original_size, len(payload)),
        )

    async def thumbnail(self, source: FileSource) -> bytes:
        try:
            data = await read_source(source)
        except SourceReadError as e:
            raise PreviewError(PREVIEW_READ_FAILED) from e
        return await asyncio.to_thread(self._thumbnail_sync, data)

    def _thumbnail_sync(self, data: bytes) -> bytes:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                w, h = compute_preview_dimensions(img.width, img.height, self.preview_max_size)
                thumb = resize_exact(_prepare_mode(img, OutputFormat.JPEG), *to_pixels(w, h))
            buf = io.BytesIO()
            thumb.save(buf, format="JPEG", quality=self.preview_quality)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, EOFError, ValueError) as e:
            raise PreviewError(PREVIEW_DECODE_FAILED) from e
        return buf.getvalue()


@dataclass(frozen=True)
class PreviewResult:
    data_url: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.data_url is not None


async def create_preview(source: FileSource, codec: ImageCodec, name: str = "") -> PreviewResult:
    """Best-effort thumbnail as a data URL. Failures come back as a result, never raised."""
    try:
        jpeg = await codec.thumbnail(source)
    except PreviewError as e:
        logger.warning("Could not build preview for %s: %s", name or "file", e)
        return PreviewResult(error=str(e) or PREVIEW_DECODE_FAILED)
    b64 = base64.b64encode(jpeg).decode("ascii")
    return PreviewResult(data_url=f"data:image/jpeg;base64,{b64}")
