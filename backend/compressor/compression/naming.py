"""Id generation, size formatting and filename helpers."""
import re
import uuid

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_UNDERSCORE_RUNS = re.compile(r"_+")
_EXTENSION = re.compile(r"\.[^/.]+$")


def generate_unique_id() -> str:
    return str(uuid.uuid4())


def format_file_size(num_bytes: int) -> str:
    """
    Human readable size: 0 -> "0 Bytes", 1536 -> "1.5 KB", 1048576 -> "1 MB".
    Value is rounded to two decimals with trailing zeros dropped.
    """
    if num_bytes == 0:
        return "0 Bytes"
    if num_bytes < 0:
        return "-" + format_file_size(-num_bytes)
    k = 1024
    i = 0
    # i = floor(log_k(num_bytes)), capped at GB
    while i < len(_SIZE_UNITS) - 1 and num_bytes >= k ** (i + 1):
        i += 1
    value = f"{num_bytes / k ** i:.2f}".rstrip("0").rstrip(".")
    return f"{value} {_SIZE_UNITS[i]}"


def calculate_compression_ratio(original_size: int, compressed_size: int) -> float:
    """Percentage saved relative to the original; negative when the output grew."""
    if original_size <= 0:
        return 0.0
    return (original_size - compressed_size) / original_size * 100


def get_file_extension(filename: str) -> str:
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def strip_extension(filename: str) -> str:
    return _EXTENSION.sub("", filename)


def sanitize_filename(filename: str) -> str:
    s = _UNSAFE_CHARS.sub("_", filename)
    s = _UNDERSCORE_RUNS.sub("_", s)
    return s.strip("_")


def output_filename(original_name: str, fmt: str) -> str:
    """"My Photo!! 2024.jpg", "webp" -> "My_Photo_2024_compressed.webp"."""
    return f"{sanitize_filename(strip_extension(original_name))}_compressed.{fmt}"
