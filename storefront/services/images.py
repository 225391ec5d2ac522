"""Image store: allow-list check and durable storage of uploaded product images."""

from __future__ import annotations

import logging
import secrets
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from storefront.core.errors import FieldValidationError, UnsupportedMediaTypeError

if TYPE_CHECKING:
    from storefront.core.config import Settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png", ".webp", ".gif"})
ALLOWED_IMAGE_MIME_TYPES = frozenset(
    {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"}
)
UNSUPPORTED_IMAGE_MESSAGE = "Only image files are allowed (jpeg, jpg, png, webp, gif)!"

# Read uploads in chunks so the size limit is enforced without buffering everything first.
READ_CHUNK_BYTES = 64 * 1024


def has_upload(upload: UploadFile | None) -> bool:
    """Browsers send an empty file part with no filename when no file was chosen."""
    return upload is not None and bool(getattr(upload, "filename", None))


def check_allowed_image(upload: UploadFile) -> str:
    """Return the normalized extension; raise UnsupportedMediaTypeError if either check fails."""
    filename = upload.filename or ""
    ext = Path(filename).suffix.lower()
    mime = (upload.content_type or "").split(";")[0].strip().lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS or mime not in ALLOWED_IMAGE_MIME_TYPES:
        logger.info("Image rejected: filename=%r content_type=%r", filename, mime)
        raise UnsupportedMediaTypeError(UNSUPPORTED_IMAGE_MESSAGE)
    return ext


class ImageStore(ABC):
    """Accepts one upload and returns a publicly dereferenceable URL for it."""

    @abstractmethod
    async def save(self, upload: UploadFile, folder: str) -> str:
        """Validate and persist upload under folder. Returns the public URL."""

    @abstractmethod
    async def discard(self, url: str) -> None:
        """Remove an image previously returned by save. Unknown URLs are ignored."""

    def is_ready(self) -> bool:
        return True


class LocalImageStore(ImageStore):
    """
    Stores images on the local filesystem under root/<folder>/ and returns
    URLs under url_prefix, which the HTTP layer mounts as static files.
    """

    def __init__(self, root: str | Path, url_prefix: str, max_bytes: int) -> None:
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> LocalImageStore:
        return cls(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX, settings.MAX_IMAGE_BYTES)

    @staticmethod
    def _make_name(ext: str) -> str:
        return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}{ext}"

    async def _read_limited(self, upload: UploadFile) -> bytes:
        chunks: list[bytes] = []
        total = 0
        while True:
            chunk = await upload.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            total += len(chunk)
            if total > self.max_bytes:
                raise FieldValidationError(
                    f"Image must not exceed {self.max_bytes // 1024} KB.", fields=["image"]
                )
            chunks.append(chunk)
        if total == 0:
            raise FieldValidationError("Uploaded image is empty.", fields=["image"])
        return b"".join(chunks)

    async def save(self, upload: UploadFile, folder: str) -> str:
        ext = check_allowed_image(upload)
        content = await self._read_limited(upload)
        folder = folder.strip("/")
        target_dir = self.root / folder
        name = self._make_name(ext)
        await run_in_threadpool(self._write, target_dir / name, content)
        logger.info("Image stored: folder=%s name=%s bytes=%s", folder, name, len(content))
        return f"{self.url_prefix}/{folder}/{name}"

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    def _path_for(self, url: str) -> Path | None:
        prefix = f"{self.url_prefix}/"
        if not url.startswith(prefix):
            return None
        root = self.root.resolve()
        path = (root / url[len(prefix):]).resolve()
        if not path.is_relative_to(root) or path == root:
            return None
        return path

    async def discard(self, url: str) -> None:
        path = self._path_for(url)
        if path is None:
            logger.warning("Image discard ignored: url=%s", url)
            return
        await run_in_threadpool(path.unlink, missing_ok=True)
        logger.info("Image discarded: url=%s", url)

    def is_ready(self) -> bool:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return self.root.is_dir()
