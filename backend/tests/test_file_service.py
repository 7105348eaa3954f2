"""
Football Academy Backend — Photo Storage Unit Tests
=====================================================

What:  Tests for FileService validation (extension, size, MIME type),
       storage layout, path resolution and cleanup.
How:   Each test gets its own storage root under tmp_path; libmagic is
       patched where the test is about our handling of its answer.

Test Strategy:
    ✅ Allowed extensions (.jpg, .jpeg, .png), case-insensitive
    ✅ Rejected extensions (.gif, .pdf, none)
    ✅ Size limits (empty, header over limit, body over limit)
    ✅ Sniffed MIME type wins over the extension
    ✅ Traversal-proof path resolution
"""

from unittest.mock import patch

import magic
import pytest

from academy.exceptions import FileStorageError, NotFoundError, ValidationError
from academy.services.file_service import FileService


@pytest.fixture
def service(tmp_path):
    return FileService(storage_root=str(tmp_path / "storage"))


class TestFileValidation:

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["photo.jpg", "photo.jpeg", "photo.png", "PHOTO.JPG", "a.Png"])
    def test_allowed_extensions(self, service, filename):
        assert service.validate_extension(filename) in {".jpg", ".jpeg", ".png"}

    @pytest.mark.parametrize("filename", ["animation.gif", "document.pdf", "noextension", "malware.exe"])
    def test_rejected_extensions(self, service, filename):
        with pytest.raises(ValidationError, match="not supported"):
            service.validate_extension(filename)

    # ── Size Validation ───────────────────────────────────────────────────

    def test_size_within_limit(self, service):
        service.validate_size(1000, 1000)

    def test_empty_file(self, service):
        with pytest.raises(ValidationError, match="empty"):
            service.validate_size(0, 0)

    def test_reported_size_over_limit(self, service):
        with patch("academy.services.file_service.settings") as mock_settings:
            mock_settings.max_file_size = 1024
            with pytest.raises(ValidationError, match="exceeds maximum"):
                service.validate_size(2048, 10)

    def test_actual_size_over_limit_despite_small_header(self, service):
        with patch("academy.services.file_service.settings") as mock_settings:
            mock_settings.max_file_size = 1024
            with pytest.raises(ValidationError, match="exceeds maximum"):
                service.validate_size(100, 4096)

    # ── MIME Validation ───────────────────────────────────────────────────

    def test_mime_png_accepted(self, service):
        with patch("academy.services.file_service.magic.from_buffer", return_value="image/png"):
            assert service.validate_mime_type(b"...") == "image/png"

    def test_renamed_pdf_rejected(self, service):
        with patch("academy.services.file_service.magic.from_buffer", return_value="application/pdf"):
            with pytest.raises(ValidationError, match="application/pdf"):
                service.validate_mime_type(b"%PDF-1.4")

    def test_libmagic_failure_is_storage_error(self, service):
        with patch(
            "academy.services.file_service.magic.from_buffer",
            side_effect=magic.MagicException("broken"),
        ):
            with pytest.raises(FileStorageError):
                service.validate_mime_type(b"...")


class TestFileStorage:

    @pytest.mark.asyncio
    async def test_store_uses_month_directory_and_sniffed_extension(self, service, sample_png_bytes):
        with patch("academy.services.file_service.magic.from_buffer", return_value="image/png"):
            relative = await service.validate_and_store("portrait.jpeg", sample_png_bytes)

        parts = relative.split("/")
        assert parts[0] == "players"
        assert len(parts[1]) == 4 and len(parts[2]) == 2
        # Stored under the sniffed type, not the client's extension
        assert relative.endswith(".png")
        assert service.resolve(relative).read_bytes() == sample_png_bytes

    @pytest.mark.asyncio
    async def test_cleanup_removes_file(self, service):
        relative = await service.store_file(b"jpegbytes", ".jpg")
        path = service.resolve(relative)
        await service.cleanup_file(relative)
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_cleanup_of_missing_file_is_quiet(self, service):
        await service.cleanup_file("players/2020/01/missing.jpg")

    def test_resolve_refuses_traversal(self, service):
        with pytest.raises(ValidationError, match="Invalid file path"):
            service.resolve("../../etc/passwd")

    def test_resolve_missing_file(self, service):
        with pytest.raises(NotFoundError):
            service.resolve("players/2020/01/missing.jpg")
