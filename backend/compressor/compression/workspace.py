"""Caller-owned working set of input files, plus ingestion (validate + preview)."""
import logging
from typing import Iterator, Optional

from compressor.config import MAX_WORKSPACE_FILES
from compressor.compression.codec import ImageCodec, create_preview
from compressor.compression.errors import FileNotFoundInWorkspace, WorkspaceFullError
from compressor.compression.models import FileSource, InputFile
from compressor.compression.naming import format_file_size, generate_unique_id
from compressor.compression.validation import validate_file

logger = logging.getLogger("compressor.workspace")


class Workspace:
    """Ordered collection of InputFile records. Order is selection order."""

    def __init__(self, max_files: int = MAX_WORKSPACE_FILES):
        self.max_files = max_files
        self._files: dict[str, InputFile] = {}

    def __iter__(self) -> Iterator[InputFile]:
        return iter(list(self._files.values()))

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, file_id: str) -> bool:
        return file_id in self._files

    @property
    def files(self) -> list[InputFile]:
        return list(self._files.values())

    def has_room(self, count: int = 1) -> bool:
        return not self.max_files or len(self._files) + count <= self.max_files

    def ensure_room(self, count: int = 1) -> None:
        if not self.has_room(count):
            raise WorkspaceFullError(f"Max {self.max_files} files per workspace")

    def add(self, file: InputFile) -> InputFile:
        self.ensure_room()
        self._files[file.file_id] = file
        return file

    def get(self, file_id: str) -> InputFile:
        try:
            return self._files[file_id]
        except KeyError:
            raise FileNotFoundInWorkspace(f"File not found: {file_id}") from None

    def find(self, file_id: str) -> Optional[InputFile]:
        return self._files.get(file_id)

    def remove(self, file_id: str) -> InputFile:
        file = self.get(file_id)
        del self._files[file_id]
        logger.debug("Removed %s from workspace", file.name)
        return file

    def clear(self) -> int:
        count = len(self._files)
        self._files.clear()
        return count

    def stats(self) -> dict:
        """Totals as shown in the statistics panel. Original size counts every file."""
        files = self.files
        compressed = [f.compressed for f in files if f.compressed is not None]
        original_size = sum(f.size for f in files)
        compressed_size = sum(c.size for c in compressed)
        out = {
            "total_files": len(files),
            "valid_files": sum(1 for f in files if f.error is None),
            "compressed_files": len(compressed),
            "original_size": original_size,
            "original_size_display": format_file_size(original_size),
        }
        if compressed:
            saved = original_size - compressed_size
            out.update({
                "compressed_size": compressed_size,
                "compressed_size_display": format_file_size(compressed_size),
                "space_saved": saved,
                "space_saved_display": format_file_size(saved),
            })
        return out


async def ingest_file(
    workspace: Workspace,
    codec: ImageCodec,
    name: str,
    media_type: Optional[str],
    size: int,
    source: FileSource,
) -> InputFile:
    """
    Add one selected file to the workspace.
    Rejected files are kept, flagged with their validation error, and never previewed.
    Accepted files get a best-effort preview; a failed preview leaves preview unset.
    """
    file = InputFile(
        file_id=generate_unique_id(),
        name=name,
        size=size,
        media_type=media_type or "",
        source=source,
    )
    validation = validate_file(size, media_type)
    if not validation.is_valid:
        file.error = validation.error
        logger.info("Rejected %s: %s", name, validation.error)
        return workspace.add(file)

    workspace.add(file)
    result = await create_preview(source, codec, name=name)
    if result.ok:
        file.preview = result.data_url
    return file
