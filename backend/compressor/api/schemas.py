from typing import Literal, Optional

from pydantic import BaseModel, Field

from compressor.compression.models import CompressionSettings
from compressor.config import DEFAULT_FORMAT, DEFAULT_QUALITY


class CompressionSettingsIn(BaseModel):
    quality: int = Field(DEFAULT_QUALITY, ge=1, le=100)
    format: Literal["jpeg", "png", "webp"] = DEFAULT_FORMAT
    max_width: Optional[int] = Field(None, gt=0)
    max_height: Optional[int] = Field(None, gt=0)
    maintain_aspect_ratio: bool = True
    lossless: bool = False

    def to_settings(self) -> CompressionSettings:
        return CompressionSettings(
            quality=self.quality,
            format=self.format,
            max_width=self.max_width,
            max_height=self.max_height,
            maintain_aspect_ratio=self.maintain_aspect_ratio,
            lossless=self.lossless,
        )


class CompressRequest(BaseModel):
    preset_id: Optional[str] = None
    settings: Optional[CompressionSettingsIn] = None
