"""Tests for upload validation (no DB, no filesystem)."""

import pytest

from app.config import Settings
from app.errors import FileTooLarge, TooManyFiles, UnsupportedType, ValidationError
from app.models.resource_type import ResourceType
from app.services.upload_validation import (
    check_file_counts,
    file_extension,
    preview_image_slot,
    resource_file_slot,
    validate_for_type,
    validate_upload,
)

MB = 1024 * 1024


@pytest.fixture
def slots():
    settings = Settings(_env_file=None)
    return resource_file_slot(settings), preview_image_slot(settings)


class TestFileExtension:

    def test_lower_cases_suffix(self):
        assert file_extension("Lesson.PDF") == "pdf"

    def test_only_last_suffix_counts(self):
        assert file_extension("archive.tar.gz") == "gz"

    def test_missing_extension(self):
        assert file_extension("README") == ""
        assert file_extension(None) == ""


class TestResourceFileSlot:

    @pytest.mark.parametrize("name", ["notes.pdf", "slides.PPTX", "clip.mkv", "data.csv", "photo.jpeg"])
    def test_accepts_allowed_types(self, slots, name):
        resource_slot, _ = slots
        validate_upload(name, 1024, resource_slot)

    @pytest.mark.parametrize("name", ["setup.exe", "script.sh", "image.webp", "noextension"])
    def test_rejects_other_types(self, slots, name):
        resource_slot, _ = slots
        with pytest.raises(UnsupportedType):
            validate_upload(name, 1024, resource_slot)

    def test_rejection_is_a_validation_error(self, slots):
        resource_slot, _ = slots
        with pytest.raises(ValidationError, match=r"\.exe is not allowed"):
            validate_upload("setup.exe", 10, resource_slot)

    def test_request_cap(self, slots):
        resource_slot, _ = slots
        validate_upload("big.zip", 1024 * MB, resource_slot)
        with pytest.raises(FileTooLarge, match="1GB"):
            validate_upload("big.zip", 1024 * MB + 1, resource_slot)


class TestPreviewImageSlot:

    def test_accepts_webp(self, slots):
        _, preview_slot = slots
        assert validate_upload("cover.webp", 100, preview_slot) == "webp"

    def test_rejects_documents(self, slots):
        _, preview_slot = slots
        with pytest.raises(UnsupportedType, match="Preview image must be one of"):
            validate_upload("cover.pdf", 100, preview_slot)

    def test_five_megabyte_ceiling(self, slots):
        _, preview_slot = slots
        validate_upload("cover.png", 5 * MB, preview_slot)
        with pytest.raises(FileTooLarge):
            validate_upload("cover.png", 5 * MB + 1, preview_slot)

    def test_ceiling_follows_settings(self):
        slot = preview_image_slot(Settings(_env_file=None, MAX_PREVIEW_IMAGE_SIZE=10))
        with pytest.raises(FileTooLarge):
            validate_upload("cover.png", 11, slot)


class TestResourceTypeRules:

    def test_video_over_type_ceiling(self):
        video = ResourceType(type_name="Video", allowed_extensions="mp4,avi,mov", max_file_size=500 * MB)
        with pytest.raises(FileTooLarge, match="Video"):
            validate_for_type("movie.mp4", 600 * MB, video)

    def test_video_within_ceiling(self):
        video = ResourceType(type_name="Video", allowed_extensions="mp4,avi,mov", max_file_size=500 * MB)
        validate_for_type("movie.MP4", 400 * MB, video)

    def test_extension_outside_type(self):
        document = ResourceType(type_name="Document", allowed_extensions="pdf, doc ,docx", max_file_size=None)
        with pytest.raises(UnsupportedType, match="Document"):
            validate_for_type("movie.mp4", 10, document)

    def test_type_without_rules_accepts_anything(self):
        other = ResourceType(type_name="Other", allowed_extensions=None, max_file_size=None)
        validate_for_type("anything.bin", 10 * 1024 * MB, other)


class TestFileCounts:

    def test_one_file_and_one_preview(self):
        check_file_counts({"file": 1, "preview_image": 1}, {"file": 1, "preview_image": 1})

    def test_two_primary_files(self):
        with pytest.raises(TooManyFiles):
            check_file_counts({"file": 2}, {"file": 1, "preview_image": 1})

    def test_two_previews(self):
        with pytest.raises(TooManyFiles):
            check_file_counts({"file": 1, "preview_image": 2}, {"file": 1, "preview_image": 1})

    def test_unexpected_field(self):
        with pytest.raises(TooManyFiles, match="attachment"):
            check_file_counts({"file": 1, "attachment": 1}, {"file": 1, "preview_image": 1})
