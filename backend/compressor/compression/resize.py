"""Target-dimension policies for compression and preview thumbnails."""
from typing import Optional, Tuple

from PIL import Image


def compute_target_dimensions(
    width: float,
    height: float,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
    maintain_aspect_ratio: bool = True,
) -> Tuple[float, float]:
    """
    Apply the width bound, then the height bound, each against the current dimensions.
    This is two sequential passes, not a bounding-box fit: with aspect ratio kept, the
    second pass can push the other side back over its bound.
    Results may be fractional; callers truncate when allocating pixels.
    """
    if max_width and width > max_width:
        if maintain_aspect_ratio:
            height = height * max_width / width
        width = max_width

    if max_height and height > max_height:
        if maintain_aspect_ratio:
            width = width * max_height / height
        height = max_height

    return width, height


def compute_preview_dimensions(width: float, height: float, max_size: int) -> Tuple[float, float]:
    """Fit the longest side within max_size. Aspect ratio is always kept."""
    if width > height:
        if width > max_size:
            height = height * max_size / width
            width = max_size
    elif height > max_size:
        width = width * max_size / height
        height = max_size
    return width, height


def to_pixels(width: float, height: float) -> Tuple[int, int]:
    return max(1, int(width)), max(1, int(height))


def resize_exact(img: Image.Image, width: int, height: int) -> Image.Image:
    if img.size == (width, height):
        return img.copy()
    return img.resize((width, height), Image.Resampling.LANCZOS)
