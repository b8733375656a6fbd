import io
import os
from pathlib import Path

import pytest

# Must be set before app.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("API_KEY_MAIN", "test-main-key")
os.environ.setdefault("API_KEY_SECONDARY", "test-secondary-key")

from PIL import Image  # noqa: E402

from app.config import StorageConfig  # noqa: E402
from app.database import build_engine, build_session_factory  # noqa: E402
from app.models import Base  # noqa: E402
from app.services.storage_service import StorageService  # noqa: E402

THUMB_SIZE = (64, 48)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def storage_config(tmp_path: Path) -> StorageConfig:
    return StorageConfig(
        upload_path=tmp_path / "uploads",
        max_file_size=256 * 1024,
        thumbnail_width=THUMB_SIZE[0],
        thumbnail_height=THUMB_SIZE[1],
        thumbnail_quality=80,
    )


@pytest.fixture
async def session_factory(anyio_backend, tmp_path: Path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'files.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def storage_service(storage_config: StorageConfig, session_factory) -> StorageService:
    service = StorageService(storage_config, session_factory)
    service.storage.ensure_layout()
    return service


def make_image(size: tuple[int, int] = (120, 80), fmt: str = "PNG", mode: str = "RGB") -> bytes:
    color = (200, 30, 30, 255) if mode == "RGBA" else (200, 30, 30)
    img = Image.new(mode, size, color)
    out = io.BytesIO()
    img.save(out, format=fmt)
    return out.getvalue()
