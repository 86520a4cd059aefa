"""Application configuration. Loads from environment and .env file."""
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
# Load .env from cwd, then backend/.env, then project root .env
load_dotenv()
load_dotenv(BASE_DIR / ".env")
load_dotenv(BASE_DIR.parent / ".env")

# Accepted input media types (declared type is trusted, no sniffing)
SUPPORTED_MEDIA_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml")
OUTPUT_FORMATS = ("jpeg", "png", "webp")

# Limits (env)
MAX_FILE_SIZE_MB = int(os.getenv("MAX_FILE_SIZE_MB", "50"))
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024
# 0 = no cap on the number of files held in one working set
MAX_WORKSPACE_FILES = int(os.getenv("MAX_WORKSPACE_FILES", "0"))
# Sessions (one working set each): idle ones expire, the oldest idle one is evicted at the cap
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "100"))
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))

# Preview thumbnails
PREVIEW_MAX_SIZE = int(os.getenv("PREVIEW_MAX_SIZE", "200"))
PREVIEW_QUALITY = int(os.getenv("PREVIEW_QUALITY", "80"))

# Compression defaults
DEFAULT_QUALITY = int(os.getenv("DEFAULT_QUALITY", "75"))
DEFAULT_FORMAT = os.getenv("DEFAULT_FORMAT", "jpeg").strip().lower()

# Server (for uvicorn)
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
# CORS: comma-separated origins, e.g. "http://localhost:3000,http://127.0.0.1:3000"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",") if o.strip()]

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("compressor")
