"""
Tienda Services: Product Image Storage
========================================

What:  Validates and stores product images uploaded to the Products service.
How:   Extension allow-list, size check and a libmagic sniff of the header
       bytes, then an async write with aiofiles into UPLOAD_DIR under a
       generated name. The file is served back by
       the /uploads static mount as /uploads/<name>.
Who:   Called by ProductoService on create and update.

Generated names:
    <epoch-ms>-<8 hex>-<original stem><ext>
    e.g. "Polera Gamer.PNG" → "1718031212345-9f2c41ab-Polera_Gamer.png"

    Whitespace in the original stem becomes "_" and any character outside
    letters, digits, ".", "-" and "_" is dropped, so a client-supplied name
    can never introduce a path separator. The random part keeps two uploads
    of the same file in the same millisecond apart.
"""

import logging
import re
import secrets
import time
from pathlib import Path
from typing import Optional

import aiofiles
import magic
from starlette.datastructures import UploadFile

from tienda.config import settings
from tienda.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

# What libmagic must report for the bytes, whatever the extension says
ALLOWED_MIME_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp"}

PUBLIC_PREFIX = "/uploads"

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^\w.-]")


class FileService:
    """
    Stores uploaded images for one Products service process.

    Created by the app factory (one per app) so tests can point it at a
    temporary directory.
    """

    def __init__(self, upload_dir: Optional[str] = None, max_file_size: Optional[int] = None):
        self.upload_dir = Path(upload_dir or settings.upload_dir).resolve()
        self.max_file_size = max_file_size or settings.max_file_size

    def ensure_directory(self) -> None:
        """Create the upload directory; called from the lifespan."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Upload directory: %s", self.upload_dir)

    def validate_extension(self, filename: str) -> str:
        """
        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if the extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"Tipo de archivo '{ext or filename}' no permitido. "
                    f"Permitidos: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="imagen",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, size: int) -> None:
        if size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"La imagen supera el máximo de {max_mb:.0f}MB",
                field="imagen",
                context={"max_size": self.max_file_size, "actual_size": size},
            )

    def validate_mime_type(self, content: bytes) -> str:
        """
        Sniff the real type from the file header (PNG starts with 89 50 4E 47,
        JPEG with FF D8 FF), so a renamed text file is rejected even with an
        image extension.

        Returns: Detected MIME type.
        Raises:  ValidationError if the bytes are not an allowed image,
                 FileStorageError if libmagic itself fails.
        """
        try:
            mime_type = magic.from_buffer(content, mime=True)
        except magic.MagicException as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="No se pudo verificar el tipo de la imagen. Intente nuevamente.",
                context={"error": str(e)},
            ) from e

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=f"El contenido '{mime_type}' no es una imagen válida",
                field="imagen",
                context={"detected_mime": mime_type, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )
        return mime_type

    def generate_name(self, filename: str, extension: str) -> str:
        stem = Path(filename).stem
        stem = _UNSAFE.sub("", _WHITESPACE.sub("_", stem.strip())) or "imagen"
        return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}-{stem}{extension}"

    def public_url(self, name: str) -> str:
        return f"{PUBLIC_PREFIX}/{name}"

    async def store(self, filename: str, content: bytes) -> str:
        """
        Validate and write one image.

        Returns: Public URL of the stored file ("/uploads/<name>").
        Raises:  ValidationError for a bad extension, size or content type,
                 FileStorageError when the write fails.
        """
        ext = self.validate_extension(filename)
        self.validate_size(len(content))
        self.validate_mime_type(content)

        name = self.generate_name(filename, ext)
        path = self.upload_dir / name
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store upload at %s: %s", path, str(e))
            raise FileStorageError(
                message="No se pudo guardar la imagen. Intente nuevamente.",
                context={"path": str(path), "os_error": str(e)},
            ) from e

        logger.info("Upload stored: %s (%d bytes)", name, len(content))
        return self.public_url(name)

    async def store_upload(self, upload: UploadFile) -> str:
        """Read a multipart upload fully (bounded by the size check) and store it."""
        try:
            content = await upload.read()
        finally:
            await upload.close()
        return await self.store(upload.filename or "imagen", content)

    async def cleanup(self, url: Optional[str]) -> None:
        """
        Remove a stored file by its public URL after a failed write to the
        database. Missing files are ignored.
        """
        if not url or not url.startswith(PUBLIC_PREFIX + "/"):
            return
        path = self.upload_dir / Path(url).name
        try:
            path.unlink(missing_ok=True)
            logger.info("Cleaned up upload: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up upload %s: %s", path, str(e))
