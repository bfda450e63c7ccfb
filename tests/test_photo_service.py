import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from app.core.exceptions import ValidationError


def upload(name, content_type="image/png", size=10):
    return UploadFile(file=io.BytesIO(b"x" * size), filename=name, headers=Headers({"content-type": content_type}))


@pytest.mark.asyncio
async def test_save_writes_unique_file(photo_store):
    name = await photo_store.save(upload("Yard.PNG"))
    assert name.endswith(".png")
    assert (photo_store.upload_dir / name).read_bytes() == b"x" * 10


@pytest.mark.asyncio
@pytest.mark.parametrize("name,content_type", [
    ("doc.pdf", "application/pdf"),
    ("fake.jpg", "text/plain"),
    ("image.webp", "image/webp"),
])
async def test_save_rejects_non_images(photo_store, name, content_type):
    with pytest.raises(ValidationError):
        await photo_store.save(upload(name, content_type))


@pytest.mark.asyncio
async def test_oversized_file_is_removed(photo_store):
    with pytest.raises(ValidationError):
        await photo_store.save(upload("big.png", size=photo_store.max_file_bytes + 1))
    assert not any(photo_store.upload_dir.iterdir())


@pytest.mark.asyncio
async def test_save_all_enforces_count(photo_store):
    uploads = [upload(f"{i}.png") for i in range(photo_store.max_files + 1)]
    with pytest.raises(ValidationError):
        await photo_store.save_all(uploads)
    assert all(u.file.closed for u in uploads)


@pytest.mark.asyncio
async def test_save_all_rolls_back_batch(photo_store):
    uploads = [upload("a.png"), upload("b.png"), upload("c.txt", "text/plain"), upload("d.png")]
    with pytest.raises(ValidationError):
        await photo_store.save_all(uploads)
    assert list(photo_store.upload_dir.iterdir()) == []
    assert all(u.file.closed for u in uploads)


@pytest.mark.asyncio
async def test_save_all_skips_empty_parts(photo_store):
    names = await photo_store.save_all([upload("a.jpg", "image/jpeg"), upload("")])
    assert len(names) == 1
