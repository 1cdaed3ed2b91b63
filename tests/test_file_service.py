"""
Wayfarer Backend - File Service Unit Tests
============================================

What:  Tests for FileService validation, storage and path resolution.
Why:   Photo upload is a security boundary: type, size and path checks.

Test Strategy:
    ✅ Allowed content types (jpeg, png, webp) and matching extensions
    ✅ Rejected types (gif, pdf) and mismatched extensions
    ✅ Size limits (empty, boundary at MAX_FILE_SIZE)
    ✅ UUID filenames, flat storage directory
    ✅ Served paths cannot escape the storage root
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from wayfarer.exceptions import NotFoundError, ValidationError
from wayfarer.services.file_service import FileService


class TestFileValidation:

    @pytest.fixture(autouse=True)
    def _service(self, files):
        self.service = files

    # ── Content Type Validation ───────────────────────────────────────────

    @pytest.mark.parametrize(
        "content_type,filename,expected",
        [
            ("image/jpeg", "photo.jpg", ".jpg"),
            ("image/jpeg", "photo.JPEG", ".jpg"),
            ("image/png", "photo.png", ".png"),
            ("image/webp", "photo.webp", ".webp"),
            ("image/png; charset=binary", "photo.png", ".png"),
        ],
    )
    def test_allowed_types(self, content_type, filename, expected):
        assert self.service.validate_content_type(content_type, filename) == expected

    def test_gif_rejected(self):
        with pytest.raises(ValidationError, match="Only JPEG, PNG, and WebP"):
            self.service.validate_content_type("image/gif", "animation.gif")

    def test_missing_content_type_rejected(self):
        with pytest.raises(ValidationError, match="Invalid file type"):
            self.service.validate_content_type(None, "photo.jpg")

    def test_extension_must_be_an_image(self):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_content_type("image/jpeg", "payload.exe")

    # ── Size Validation ───────────────────────────────────────────────────

    def test_size_within_limit(self):
        self.service.validate_size(1000)

    def test_size_at_limit(self):
        with patch("wayfarer.services.file_service.settings") as mock_settings:
            mock_settings.max_file_size = 2048
            self.service.validate_size(2048)

    def test_size_over_limit(self):
        with patch("wayfarer.services.file_service.settings") as mock_settings:
            mock_settings.max_file_size = 2048
            with pytest.raises(ValidationError, match="exceeds maximum"):
                self.service.validate_size(2049)

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0)


class TestFileStorage:

    async def test_validate_and_store_writes_uuid_file(self, files, sample_image_bytes):
        abs_path, filename = await files.validate_and_store("../../etc/passwd.jpg", "image/jpeg", sample_image_bytes)

        assert Path(abs_path).parent == files.storage_root
        assert Path(abs_path).read_bytes() == sample_image_bytes
        assert filename.endswith(".jpg")
        assert "/" not in filename
        assert "passwd" not in filename

    async def test_invalid_type_writes_nothing(self, files, sample_image_bytes):
        with pytest.raises(ValidationError):
            await files.validate_and_store("notes.pdf", "application/pdf", sample_image_bytes)
        assert list(files.storage_root.iterdir()) == []

    async def test_resolve_stored_file(self, files, sample_image_bytes):
        abs_path, filename = await files.validate_and_store("a.png", "image/png", sample_image_bytes)
        assert files.resolve(filename) == Path(abs_path)

    def test_resolve_rejects_traversal(self, files):
        with pytest.raises(ValidationError, match="Invalid file path"):
            files.resolve("../outside.jpg")

    def test_resolve_missing_file(self, files):
        with pytest.raises(NotFoundError):
            files.resolve("does-not-exist.jpg")

    # ── Cleanup ───────────────────────────────────────────────────────────

    async def test_cleanup_file_removes_file(self, tmp_path):
        test_file = tmp_path / "test.jpg"
        test_file.write_bytes(b"test content")

        await FileService(storage_root=str(tmp_path)).cleanup_file(str(test_file))
        assert not test_file.exists()

    async def test_cleanup_file_nonexistent(self, files, tmp_path):
        await files.cleanup_file(str(tmp_path / "nonexistent.jpg"))
