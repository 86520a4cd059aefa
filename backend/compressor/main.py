"""FastAPI application: image compression over per-session workspaces."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from compressor.api.routes import drop_sessions, router
from compressor.compression.errors import (
    CompressorError,
    FileNotFoundInWorkspace,
    InvalidSettingsError,
    NothingToDownloadError,
    WorkspaceFullError,
)
from compressor.config import CORS_ORIGINS, HOST, MAX_SESSIONS, PORT, SESSION_TTL_SECONDS

logger = logging.getLogger("compressor.main")

# Most specific first; anything else from the pipeline is a server error
ERROR_STATUS: list[tuple[type[CompressorError], int]] = [
    (NothingToDownloadError, 404),
    (FileNotFoundInWorkspace, 404),
    (WorkspaceFullError, 413),
    (InvalidSettingsError, 400),
]


def status_for(exc: CompressorError) -> int:
    for exc_type, status in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status
    return 500


async def compressor_error_handler(request: Request, exc: CompressorError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


async def session_header_middleware(request: Request, call_next):
    """Echo a freshly generated session id so the client can reuse its workspace."""
    response = await call_next(request)
    session_id = getattr(request.state, "session_id", None)
    if session_id:
        response.headers["X-Session-ID"] = session_id
    return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Compressor API started (max sessions %s, idle ttl %ss)",
        MAX_SESSIONS or "unlimited",
        SESSION_TTL_SECONDS or "none",
    )
    yield
    drop_sessions()
    logger.info("Compressor API shutting down, workspaces dropped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Image Compressor API",
        description="Validate, preview, batch-compress and download images. Nothing is persisted.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Session-ID", "Content-Disposition"],
    )
    app.middleware("http")(session_header_middleware)
    app.add_exception_handler(CompressorError, compressor_error_handler)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("compressor.main:app", host=HOST, port=PORT, reload=True)
