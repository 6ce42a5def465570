"""
Tienda Services: File Service Unit Tests
==========================================

What:  Tests for FileService validation, naming, storage and cleanup.
How:   Each test gets its own temporary upload directory.

Test Strategy:
    ✅ Allowed and rejected extensions
    ✅ Size limit boundary
    ✅ Content sniffed with libmagic, not trusted from the extension
    ✅ Generated names never carry path separators
    ✅ Store → file on disk → public URL
    ✅ Cleanup after a failed database write
"""

import io
import re
from pathlib import Path
from unittest.mock import patch

import magic

import pytest
from starlette.datastructures import UploadFile

from tienda.exceptions import FileStorageError, ValidationError
from tienda.services.file_service import FileService


class TestFileValidation:
    """Tests for the validation helpers of FileService."""

    def setup_method(self):
        self.service = FileService(upload_dir="/tmp/tienda-unused", max_file_size=1024)

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["foto.png", "foto.jpg", "foto.jpeg", "foto.gif", "foto.webp"])
    def test_allowed_extensions(self, filename):
        assert self.service.validate_extension(filename) == Path(filename).suffix

    def test_extension_check_is_case_insensitive(self):
        assert self.service.validate_extension("foto.PNG") == ".png"
        assert self.service.validate_extension("foto.Jpeg") == ".jpeg"

    @pytest.mark.parametrize("filename", ["documento.pdf", "script.exe", "sinextension"])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError, match="no permitido") as exc_info:
            self.service.validate_extension(filename)
        assert exc_info.value.field == "imagen"

    # ── Size Validation ───────────────────────────────────────────────────

    def test_size_at_limit_passes(self):
        self.service.validate_size(1024)

    def test_size_over_limit_rejected(self):
        with pytest.raises(ValidationError, match="supera"):
            self.service.validate_size(1025)

    # ── MIME Validation ───────────────────────────────────────────────────

    def test_png_content_is_detected(self, sample_image_bytes):
        assert self.service.validate_mime_type(sample_image_bytes) == "image/png"

    @pytest.mark.parametrize("content", [b"hola mundo, no soy una imagen", b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n"])
    def test_non_image_content_rejected(self, content):
        with pytest.raises(ValidationError, match="no es una imagen") as exc_info:
            self.service.validate_mime_type(content)
        assert exc_info.value.field == "imagen"

    def test_libmagic_failure_becomes_file_storage_error(self, sample_image_bytes):
        with patch("tienda.services.file_service.magic.from_buffer", side_effect=magic.MagicException("boom")):
            with pytest.raises(FileStorageError):
                self.service.validate_mime_type(sample_image_bytes)

    # ── Name Generation ───────────────────────────────────────────────────

    def test_generated_name_keeps_stem_and_lowercase_extension(self):
        name = self.service.generate_name("Polera Gamer.PNG", ".png")
        assert re.fullmatch(r"\d+-[0-9a-f]{8}-Polera_Gamer\.png", name)

    def test_generated_name_drops_directories(self):
        name = self.service.generate_name("../../etc/passwd.png", ".png")
        assert "/" not in name
        assert ".." not in name.removesuffix(".png")

    def test_generated_name_falls_back_when_stem_is_unusable(self):
        name = self.service.generate_name("???.png", ".png")
        assert name.endswith("-imagen.png")

    def test_generated_names_are_unique(self):
        names = {self.service.generate_name("a.png", ".png") for _ in range(20)}
        assert len(names) == 20


class TestFileStorage:
    """Tests for writing and removing stored images."""

    @pytest.mark.asyncio
    async def test_store_writes_file_and_returns_public_url(self, temp_storage, sample_image_bytes):
        service = FileService(upload_dir=temp_storage)

        url = await service.store("polera.png", sample_image_bytes)

        assert url.startswith("/uploads/")
        assert url.endswith("-polera.png")
        stored = Path(temp_storage) / Path(url).name
        assert stored.read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_store_rejects_before_writing(self, temp_storage):
        service = FileService(upload_dir=temp_storage, max_file_size=1024)

        with pytest.raises(ValidationError):
            await service.store("grande.png", b"x" * 2048)

        assert list(Path(temp_storage).iterdir()) == []

    @pytest.mark.asyncio
    async def test_renamed_text_file_is_not_stored(self, temp_storage):
        service = FileService(upload_dir=temp_storage)

        with pytest.raises(ValidationError, match="no es una imagen"):
            await service.store("foto.png", b"hola mundo")

        assert list(Path(temp_storage).iterdir()) == []

    @pytest.mark.asyncio
    async def test_store_upload_reads_multipart_file(self, temp_storage, sample_image_bytes):
        service = FileService(upload_dir=temp_storage)
        upload = UploadFile(file=io.BytesIO(sample_image_bytes), filename="teclado.jpg")

        url = await service.store_upload(upload)

        assert url.endswith("-teclado.jpg")
        assert (Path(temp_storage) / Path(url).name).exists()

    @pytest.mark.asyncio
    async def test_write_failure_becomes_file_storage_error(self, temp_storage, sample_image_bytes):
        service = FileService(upload_dir=temp_storage)

        with patch("tienda.services.file_service.aiofiles.open", side_effect=OSError("disk full")):
            with pytest.raises(FileStorageError) as exc_info:
                await service.store("polera.png", sample_image_bytes)

        assert "disk full" not in exc_info.value.message

    # ── Cleanup ───────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_cleanup_removes_stored_file(self, temp_storage, sample_image_bytes):
        service = FileService(upload_dir=temp_storage)
        url = await service.store("polera.png", sample_image_bytes)

        await service.cleanup(url)

        assert not (Path(temp_storage) / Path(url).name).exists()

    @pytest.mark.asyncio
    async def test_cleanup_ignores_missing_and_foreign_urls(self, temp_storage):
        service = FileService(upload_dir=temp_storage)

        # None of these should raise
        await service.cleanup(None)
        await service.cleanup("/uploads/no-existe.png")
        await service.cleanup("https://cdn.example.com/foto.png")
