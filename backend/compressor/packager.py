"""Single-file download and zip packaging of compressed outputs."""
import io
import logging
import zipfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional

from compressor.compression.errors import DownloadError, NothingToDownloadError
from compressor.compression.models import CompressedOutput, InputFile
from compressor.compression.naming import output_filename

logger = logging.getLogger("compressor.packager")

SINGLE_DOWNLOAD_FAILED = "Failed to download file"
ZIP_DOWNLOAD_FAILED = "Failed to create ZIP file"
NOTHING_TO_DOWNLOAD = "No valid compressed files to download"

_MEDIA_TYPES = {
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "zip": "application/zip",
}


@dataclass(frozen=True)
class DownloadArtifact:
    filename: str
    content: bytes
    media_type: str

    @property
    def size(self) -> int:
        return len(self.content)


Sink = Callable[[DownloadArtifact], None]


def zip_filename(now: Optional[datetime] = None) -> str:
    """compressed_images_2024-05-01T12-30-45.zip (UTC, seconds precision)."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    timestamp = now.strftime("%Y-%m-%dT%H:%M:%S").replace(":", "-")
    return f"compressed_images_{timestamp}.zip"


def downloadable(files: Iterable[InputFile]) -> list[InputFile]:
    return [f for f in files if f.compressed is not None and not f.error]


def download_one(output: CompressedOutput, original_name: str, sink: Optional[Sink] = None) -> DownloadArtifact:
    """Deliver one output as <sanitized-base>_compressed.<format>."""
    try:
        artifact = DownloadArtifact(
            filename=output_filename(original_name, output.format),
            content=output.data,
            media_type=_MEDIA_TYPES.get(output.format, "application/octet-stream"),
        )
        if sink:
            sink(artifact)
    except Exception as e:
        logger.exception("Error downloading file %s: %s", original_name, e)
        raise DownloadError(SINGLE_DOWNLOAD_FAILED) from e
    logger.info("Prepared download %s (%s bytes)", artifact.filename, artifact.size)
    return artifact


def build_zip(files: list[InputFile]) -> bytes:
    """
    One entry per file under its output filename. Duplicate names are not
    de-duplicated; the later entry replaces the earlier one.
    """
    entries: dict[str, bytes] = {}
    for f in files:
        entries[output_filename(f.name, f.compressed.format)] = f.compressed.data
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for arcname, data in entries.items():
            zf.writestr(arcname, data)
    return buf.getvalue()


def download_batch(
    files: Iterable[InputFile],
    sink: Optional[Sink] = None,
    now: Optional[datetime] = None,
) -> DownloadArtifact:
    """Zip every compressed, non-errored file. Raises NothingToDownloadError when none qualify."""
    valid = downloadable(files)
    if not valid:
        raise NothingToDownloadError(NOTHING_TO_DOWNLOAD)
    try:
        artifact = DownloadArtifact(
            filename=zip_filename(now),
            content=build_zip(valid),
            media_type=_MEDIA_TYPES["zip"],
        )
        if sink:
            sink(artifact)
    except Exception as e:
        logger.exception("Error creating ZIP file: %s", e)
        raise DownloadError(ZIP_DOWNLOAD_FAILED) from e
    logger.info("Created zip %s with %s files", artifact.filename, len(valid))
    return artifact


def download_all(files: Iterable[InputFile], sink: Optional[Sink] = None) -> DownloadArtifact:
    """A lone file in the working set is delivered as-is; anything more is zipped."""
    files = list(files)
    if len(files) == 1:
        only = files[0]
        if only.compressed is None or only.error:
            raise NothingToDownloadError(NOTHING_TO_DOWNLOAD)
        return download_one(only.compressed, only.name, sink=sink)
    return download_batch(files, sink=sink)


def save_artifact(artifact: DownloadArtifact, directory: Path) -> Path:
    """File-system sink: write the artifact under directory and return its path."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / artifact.filename
    path.write_bytes(artifact.content)
    return path


def directory_sink(directory: Path) -> Sink:
    def _sink(artifact: DownloadArtifact) -> None:
        save_artifact(artifact, directory)
    return _sink
