"""Built-in compression presets (read-only)."""
from typing import Optional

from compressor.config import DEFAULT_FORMAT, DEFAULT_QUALITY
from compressor.compression.models import CompressionSettings, OutputFormat, Preset

COMPRESSION_PRESETS: tuple[Preset, ...] = (
    Preset(
        "high-quality",
        "High Quality",
        "Minimal compression, maximum quality",
        CompressionSettings(quality=90, format=OutputFormat.JPEG),
    ),
    Preset(
        "balanced",
        "Balanced",
        "Good balance of quality and file size",
        CompressionSettings(quality=75, format=OutputFormat.JPEG),
    ),
    Preset(
        "small-size",
        "Small Size",
        "Maximum compression, smaller file size",
        CompressionSettings(quality=50, format=OutputFormat.JPEG),
    ),
    Preset(
        "webp-optimized",
        "WebP Optimized",
        "Modern format with excellent compression",
        CompressionSettings(quality=80, format=OutputFormat.WEBP),
    ),
    Preset(
        "lossless",
        "Lossless",
        "No quality loss, PNG format",
        CompressionSettings(quality=100, format=OutputFormat.PNG, lossless=True),
    ),
)

_PRESETS_BY_ID = {p.preset_id: p for p in COMPRESSION_PRESETS}


def get_preset(preset_id: str) -> Optional[Preset]:
    return _PRESETS_BY_ID.get((preset_id or "").strip().lower())


def default_settings() -> CompressionSettings:
    return CompressionSettings(quality=DEFAULT_QUALITY, format=DEFAULT_FORMAT)
