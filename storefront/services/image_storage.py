import uuid
from pathlib import Path

from fastapi import UploadFile

from storefront.domain.errors import FileTooLarge, NoFileUploaded, UnsupportedFileType
from storefront.utils.settings import MAX_UPLOAD_MB, MEDIA_ROOT
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ALLOWED_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}
CHUNK_SIZE = 1024 * 1024
MEDIA_URL = "/media"


class ImageStorage:
    """Product images on local disk under MEDIA_ROOT/products, served from /media."""

    def __init__(self, root: str | Path = MEDIA_ROOT, max_mb: int = MAX_UPLOAD_MB):
        self.root = Path(root)
        self.max_bytes = max_mb * 1024 * 1024
        self.max_mb = max_mb

    async def save(self, upload: UploadFile | None) -> str:
        if upload is None or not upload.filename:
            raise NoFileUploaded()

        extension = ALLOWED_TYPES.get((upload.content_type or "").lower())
        if not extension:
            raise UnsupportedFileType(upload.content_type)

        target_dir = self.root / "products"
        target_dir.mkdir(parents=True, exist_ok=True)

        name = f"{uuid.uuid4().hex}.{extension}"
        tmp_path = target_dir / f"tmp_{name}"
        written = 0

        try:
            with tmp_path.open("wb") as f:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise FileTooLarge(self.max_mb)
                    f.write(chunk)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

        if written == 0:
            tmp_path.unlink(missing_ok=True)
            raise NoFileUploaded()

        tmp_path.rename(target_dir / name)
        logger.info(f"Stored product image {name} ({written} bytes)")
        return f"{MEDIA_URL}/products/{name}"
