from .codec import ImageCodec, PillowCodec, PreviewResult, create_preview
from .models import CompressedOutput, CompressionSettings, FileStatus, InputFile, OutputFormat, Preset
from .orchestrator import BatchOrchestrator
from .validation import validate_file
from .workspace import Workspace, ingest_file

__all__ = [
    "BatchOrchestrator",
    "CompressedOutput",
    "CompressionSettings",
    "FileStatus",
    "ImageCodec",
    "InputFile",
    "OutputFormat",
    "PillowCodec",
    "Preset",
    "PreviewResult",
    "Workspace",
    "create_preview",
    "ingest_file",
    "validate_file",
]
