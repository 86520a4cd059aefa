"""
Shared fixtures: in-memory test images, a deterministic fake codec and an API client.
"""
import asyncio
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from compressor.api.routes import drop_sessions
from compressor.compression.codec import ImageCodec
from compressor.compression.errors import CodecError, PreviewError
from compressor.compression.models import CompressedOutput, InputFile
from compressor.compression.naming import calculate_compression_ratio
from compressor.main import app

BAD_BYTES = b"not an image at all"


def make_image(fmt: str = "PNG", size: tuple[int, int] = (64, 32), mode: str = "RGB", color=(200, 40, 40)) -> bytes:
    img = Image.new(mode, size, color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


class FakeCodec(ImageCodec):
    """
    Deterministic codec: output is half the input size, 10x10.
    Records call order and how many encodes overlap.
    """

    def __init__(self, delay: float = 0.0, fail_on: tuple[bytes, ...] = (BAD_BYTES,)):
        self.delay = delay
        self.fail_on = set(fail_on)
        self.calls: list[bytes] = []
        self.events: list[tuple[str, bytes]] = []
        self.active = 0
        self.max_active = 0
        self.on_encode = None

    async def encode(self, source, settings, original_size):
        self.calls.append(source)
        self.events.append(("start", source))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.on_encode:
                self.on_encode(source)
            await asyncio.sleep(self.delay)
            if source in self.fail_on:
                raise CodecError("Failed to load image")
            data = b"c" * max(1, original_size // 2)
            return CompressedOutput(
                data=data,
                size=len(data),
                quality=settings.quality,
                format=settings.format.value,
                width=10,
                height=10,
                compression_ratio=calculate_compression_ratio(original_size, len(data)),
            )
        finally:
            self.active -= 1
            self.events.append(("end", source))

    async def thumbnail(self, source):
        if source in self.fail_on:
            raise PreviewError("decode failed")
        return b"\xff\xd8\xff fake jpeg"


@pytest.fixture
def fake_codec():
    return FakeCodec()


@pytest.fixture
def png_bytes():
    return make_image("PNG", (64, 32))


@pytest.fixture
def make_input_file():
    """Factory for InputFile records backed by in-memory bytes."""
    counter = {"n": 0}

    def _make(name: str = None, source: bytes = b"0123456789" * 10, size: int = None, error: str = None) -> InputFile:
        counter["n"] += 1
        f = InputFile(
            file_id=f"file-{counter['n']}",
            name=name or f"photo_{counter['n']}.jpg",
            size=len(source) if size is None else size,
            media_type="image/jpeg",
            source=source,
        )
        f.error = error
        return f

    return _make


@pytest.fixture
def client():
    """API client with a fixed session id; session state reset around each test."""
    drop_sessions()
    with TestClient(app) as c:
        c.headers["X-Session-ID"] = "test-session"
        yield c
    app.dependency_overrides.clear()
    drop_sessions()
