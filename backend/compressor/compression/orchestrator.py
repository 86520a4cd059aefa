"""Sequential batch compression over a caller-owned set of input files."""
import logging
import time
from typing import Callable, Iterable, Optional

from compressor.compression.codec import ImageCodec, PillowCodec
from compressor.compression.models import (
    BatchSummary,
    CompressionSettings,
    FileResult,
    FileStatus,
    InputFile,
)

logger = logging.getLogger("compressor.orchestrator")

COMPRESSION_FAILED = "Compression failed"

ProgressCallback = Callable[[str, int, int], None]


class BatchOrchestrator:
    """Drives the codec file by file and records each file's outcome on the file itself."""

    def __init__(self, codec: Optional[ImageCodec] = None):
        self.codec = codec or PillowCodec()
        logger.info("BatchOrchestrator initialized with codec=%s", type(self.codec).__name__)

    @staticmethod
    def eligible(files: Iterable[InputFile]) -> list[InputFile]:
        return [f for f in files if f.is_eligible]

    async def compress_one(self, file: InputFile, settings: CompressionSettings) -> FileResult:
        """
        One attempt: Processing, then Done or Errored. Codec failures are recorded on
        the file, never raised, so a batch keeps going.
        """
        started = time.perf_counter()
        file.is_processing = True
        try:
            output = await self.codec.encode(file.source, settings, file.size)
        except Exception as e:
            logger.exception("Compression failed for %s: %s", file.name, e)
            file.error = COMPRESSION_FAILED
            return FileResult(
                file_id=file.file_id,
                name=file.name,
                status=FileStatus.ERRORED,
                original_size=file.size,
                error=COMPRESSION_FAILED,
                processing_time=time.perf_counter() - started,
            )
        finally:
            file.is_processing = False

        file.compressed = output
        logger.info(
            "Compressed %s: %s -> %s bytes (%.1f%%)",
            file.name, file.size, output.size, output.compression_ratio,
        )
        return FileResult(
            file_id=file.file_id,
            name=file.name,
            status=FileStatus.DONE,
            original_size=file.size,
            compressed_size=output.size,
            processing_time=time.perf_counter() - started,
        )

    async def run_batch(
        self,
        files: Iterable[InputFile],
        settings: CompressionSettings,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchSummary:
        """
        Compress every eligible file strictly one at a time, in input order.
        Files already carrying an error are skipped and left untouched.
        Runs to completion; there is no cancellation.
        """
        started = time.perf_counter()
        todo = self.eligible(files)
        summary = BatchSummary()
        logger.info("Batch started: %s eligible files, settings=%s", len(todo), settings.to_dict())
        for index, file in enumerate(todo, start=1):
            result = await self.compress_one(file, settings)
            summary.results.append(result)
            if result.compressed_size is not None:
                summary.total_original_size += result.original_size
                summary.total_compressed_size += result.compressed_size
            if on_progress:
                on_progress(file.file_id, index, len(todo))
        summary.processing_time = time.perf_counter() - started
        logger.info(
            "Batch finished: %s succeeded, %s failed in %.2fs",
            summary.succeeded, summary.failed, summary.processing_time,
        )
        return summary
