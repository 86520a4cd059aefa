"""API routes for file selection, batch compression and download."""
import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import Response

from compressor.api.schemas import CompressRequest
from compressor.compression.models import FORMAT_INFO
from compressor.compression.orchestrator import BatchOrchestrator
from compressor.compression.presets import COMPRESSION_PRESETS, default_settings, get_preset
from compressor.compression.workspace import Workspace, ingest_file
from compressor.config import (
    MAX_FILE_SIZE_BYTES,
    MAX_SESSIONS,
    MAX_WORKSPACE_FILES,
    OUTPUT_FORMATS,
    SESSION_TTL_SECONDS,
    SUPPORTED_MEDIA_TYPES,
)
from compressor.packager import DownloadArtifact, download_all, download_batch, download_one, downloadable

logger = logging.getLogger("compressor.api")
router = APIRouter(prefix="/api", tags=["compressor"])

READ_CHUNK = 1024 * 1024


@dataclass
class Session:
    session_id: str
    workspace: Workspace = field(default_factory=Workspace)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    last_seen: float = field(default_factory=time.monotonic)

    @property
    def busy(self) -> bool:
        return self.lock.locked()


_sessions: dict[str, Session] = {}
_orchestrator: Optional[BatchOrchestrator] = None


def get_orchestrator() -> BatchOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = BatchOrchestrator()
    return _orchestrator


def get_or_create_session_id(request: Request) -> str:
    """Use X-Session-ID header or generate and attach to request for response header."""
    sid = (request.headers.get("X-Session-ID") or "").strip()
    if sid:
        return sid
    sid = str(uuid.uuid4())
    request.state.session_id = sid
    return sid


def evict_sessions(now: Optional[float] = None) -> list[str]:
    """
    Drop idle sessions past SESSION_TTL_SECONDS, then the least recently used idle
    sessions until there is room for one more under MAX_SESSIONS.
    Sessions with a running batch are never evicted.
    """
    now = time.monotonic() if now is None else now
    evicted = [
        sid for sid, s in _sessions.items()
        if not s.busy and SESSION_TTL_SECONDS and now - s.last_seen > SESSION_TTL_SECONDS
    ]
    for sid in evicted:
        del _sessions[sid]
    if MAX_SESSIONS:
        idle = sorted((s for s in _sessions.values() if not s.busy), key=lambda s: s.last_seen)
        while len(_sessions) >= MAX_SESSIONS and idle:
            victim = idle.pop(0)
            del _sessions[victim.session_id]
            evicted.append(victim.session_id)
    if evicted:
        logger.info("Evicted %s idle sessions, %s remain", len(evicted), len(_sessions))
    return evicted


def get_session(session_id: str = Depends(get_or_create_session_id)) -> Session:
    now = time.monotonic()
    session = _sessions.get(session_id)
    if session is None:
        evict_sessions(now)
        session = Session(session_id=session_id)
        _sessions[session_id] = session
        logger.info("Created workspace for session %s", session_id[:8])
    session.last_seen = now
    return session


def drop_sessions() -> None:
    _sessions.clear()


def _ensure_idle(session: Session) -> None:
    if session.busy:
        raise HTTPException(409, "A batch is running for this session")


def _artifact_response(artifact: DownloadArtifact) -> Response:
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


async def _read_capped(file: UploadFile, max_bytes: int) -> tuple[bytes, int]:
    """Read the upload; stop once past max_bytes and report the size seen so far."""
    chunks: list[bytes] = []
    total = 0
    while chunk := await file.read(READ_CHUNK):
        total += len(chunk)
        if total > max_bytes:
            return b"", total
        chunks.append(chunk)
    return b"".join(chunks), total


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/limits")
def get_limits():
    return {
        "max_file_size_mb": MAX_FILE_SIZE_BYTES // (1024 * 1024),
        "max_file_size_bytes": MAX_FILE_SIZE_BYTES,
        "max_workspace_files": MAX_WORKSPACE_FILES or None,
        "max_sessions": MAX_SESSIONS or None,
        "session_ttl_seconds": SESSION_TTL_SECONDS or None,
    }


@router.get("/formats")
def get_formats():
    return {
        "input": list(SUPPORTED_MEDIA_TYPES),
        "output": list(OUTPUT_FORMATS),
        "info": {
            mime: {
                "extension": info.extension,
                "name": info.name,
                "supports_lossless": info.supports_lossless,
                "min_quality": info.min_quality,
                "max_quality": info.max_quality,
            }
            for mime, info in FORMAT_INFO.items()
        },
    }


@router.get("/presets")
def get_presets():
    return {"presets": [p.to_dict() for p in COMPRESSION_PRESETS]}


@router.post("/files")
async def upload_files(
    files: list[UploadFile] = File(...),
    session: Session = Depends(get_session),
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
):
    """
    Add files to the workspace. Invalid files are kept, flagged with their error.
    The whole upload is refused up front when it would not fit the workspace.
    """
    _ensure_idle(session)
    session.workspace.ensure_room(len(files))
    added = []
    for upload in files:
        try:
            data, size = await _read_capped(upload, MAX_FILE_SIZE_BYTES)
        except Exception as e:
            logger.exception("Upload failed for %s: %s", upload.filename, e)
            raise HTTPException(500, f"Upload failed: {upload.filename}")
        file = await ingest_file(
            session.workspace,
            orchestrator.codec,
            name=upload.filename or "image",
            media_type=upload.content_type,
            size=size,
            source=data,
        )
        added.append(file.to_dict())
    return {"files": added}


@router.get("/files")
def list_files(session: Session = Depends(get_session)):
    return {"files": [f.to_dict() for f in session.workspace]}


@router.get("/files/{file_id}")
def get_file(file_id: str, session: Session = Depends(get_session)):
    return session.workspace.get(file_id).to_dict()


@router.delete("/files/{file_id}")
def remove_file(file_id: str, session: Session = Depends(get_session)):
    _ensure_idle(session)
    session.workspace.remove(file_id)
    return {"ok": True}


@router.delete("/files")
def clear_files(session: Session = Depends(get_session)):
    _ensure_idle(session)
    removed = session.workspace.clear()
    return {"ok": True, "removed": removed}


@router.post("/compress")
async def compress_files(
    body: Optional[CompressRequest] = Body(None),
    session: Session = Depends(get_session),
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
):
    """Compress every valid file in the workspace, one after another."""
    body = body or CompressRequest()
    if body.preset_id:
        preset = get_preset(body.preset_id)
        if preset is None:
            raise HTTPException(400, f"Unknown preset: {body.preset_id}")
        settings = preset.settings
    elif body.settings is not None:
        settings = body.settings.to_settings()
    else:
        settings = default_settings()

    if not orchestrator.eligible(session.workspace):
        raise HTTPException(400, "No valid files to compress")
    if session.busy:
        raise HTTPException(409, "A batch is already running for this session")
    async with session.lock:
        summary = await orchestrator.run_batch(session.workspace.files, settings)
    return {
        "settings": settings.to_dict(),
        "summary": summary.to_dict(),
        "files": [f.to_dict() for f in session.workspace],
    }


@router.get("/files/{file_id}/download")
def download_file(file_id: str, session: Session = Depends(get_session)):
    """Only a Done output with no recorded error is served."""
    file = session.workspace.get(file_id)
    if not downloadable([file]):
        raise HTTPException(404, "No valid compressed output for this file")
    return _artifact_response(download_one(file.compressed, file.name))


@router.get("/download")
def download_zip(session: Session = Depends(get_session)):
    """Zip of every compressed file in the workspace."""
    return _artifact_response(download_batch(session.workspace))


@router.get("/download/all")
def download_everything(session: Session = Depends(get_session)):
    """Single file when the workspace holds one file, zip otherwise."""
    return _artifact_response(download_all(session.workspace))


@router.get("/stats")
def workspace_stats(session: Session = Depends(get_session)):
    return session.workspace.stats()
