"""Exceptions raised by the compression pipeline."""


class CompressorError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(CompressorError):
    """File rejected at ingestion (size or media type)."""


class InvalidSettingsError(CompressorError, ValueError):
    pass


class PreviewError(CompressorError):
    pass


class CodecError(CompressorError):
    """Image could not be decoded or re-encoded."""


class CompressionError(CompressorError):
    pass


class DownloadError(CompressorError):
    pass


class NothingToDownloadError(DownloadError):
    pass


class WorkspaceError(CompressorError):
    pass


class FileNotFoundInWorkspace(WorkspaceError):
    pass


class WorkspaceFullError(WorkspaceError):
    pass


class SourceReadError(CompressorError):
    """Raw bytes of an input file could not be obtained."""
