import io

import pytest
from PIL import Image

from app.config import StorageConfig
from app.services.file_storage import FileStorageService
from app.services.thumbnails import ThumbnailDeriver
from conftest import THUMB_SIZE, make_image

pytestmark = pytest.mark.anyio


def _deriver(storage_config: StorageConfig) -> ThumbnailDeriver:
    storage = FileStorageService(storage_config)
    storage.ensure_layout()
    return ThumbnailDeriver(storage_config, storage)


@pytest.mark.parametrize("source_size", [(400, 100), (50, 300), (64, 48), (10, 10)])
async def test_render_always_matches_configured_size(storage_config, source_size) -> None:
    jpeg = _deriver(storage_config).render(make_image(source_size))

    with Image.open(io.BytesIO(jpeg)) as img:
        assert img.format == "JPEG"
        assert img.size == THUMB_SIZE


async def test_render_flattens_transparent_images(storage_config) -> None:
    jpeg = _deriver(storage_config).render(make_image((100, 100), mode="RGBA"))

    with Image.open(io.BytesIO(jpeg)) as img:
        assert img.mode == "RGB"
        assert img.size == THUMB_SIZE


async def test_derive_writes_into_thumbnails_dir(storage_config) -> None:
    deriver = _deriver(storage_config)

    path = await deriver.derive(make_image(), "abc.png")

    assert path == "thumbnails/thumb_abc.png"
    with Image.open(deriver.storage.resolve(path)) as img:
        assert img.size == THUMB_SIZE


async def test_derive_returns_none_for_undecodable_bytes(storage_config) -> None:
    deriver = _deriver(storage_config)

    path = await deriver.derive(b"<svg xmlns='http://www.w3.org/2000/svg'/>", "logo.svg")

    assert path is None
    assert not await deriver.storage.exists("thumbnails/thumb_logo.svg")
