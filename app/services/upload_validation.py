"""Upload validation — accept or reject an incoming file before anything is stored.

Two upload slots exist: the primary resource file and an optional preview
image. Each slot has its own extension allow-list and size ceiling; the
resource type chosen for the upload narrows the primary slot further.
"""

from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

from app.config import Settings, split_csv
from app.errors import UnsupportedType, FileTooLarge, TooManyFiles
from app.models.resource_type import ResourceType

MB = 1024 * 1024


@dataclass(frozen=True)
class UploadSlot:
    name: str
    allowed_extensions: frozenset[str]
    max_size: int


def resource_file_slot(settings: Settings) -> UploadSlot:
    return UploadSlot(
        name="file",
        allowed_extensions=frozenset(split_csv(settings.RESOURCE_FILE_EXTENSIONS)),
        max_size=settings.MAX_RESOURCE_FILE_SIZE,
    )


def preview_image_slot(settings: Settings) -> UploadSlot:
    return UploadSlot(
        name="preview_image",
        allowed_extensions=frozenset(split_csv(settings.PREVIEW_IMAGE_EXTENSIONS)),
        max_size=settings.MAX_PREVIEW_IMAGE_SIZE,
    )


def file_extension(filename: Optional[str]) -> str:
    """Lower-cased suffix without the dot; empty string when there is none."""
    if not filename:
        return ""
    return PurePath(filename).suffix.lower().lstrip(".")


def _human_size(num_bytes: int) -> str:
    if num_bytes >= 1024 * MB:
        return f"{num_bytes / (1024 * MB):g}GB"
    if num_bytes >= MB:
        return f"{num_bytes / MB:g}MB"
    return f"{num_bytes}B"


def validate_upload(filename: Optional[str], size: int, slot: UploadSlot) -> str:
    """Check a file against a slot. Returns the extension on success."""
    ext = file_extension(filename)
    if ext not in slot.allowed_extensions:
        allowed = ", ".join(sorted(slot.allowed_extensions))
        if slot.name == "preview_image":
            raise UnsupportedType(f"Preview image must be one of: {allowed}")
        raise UnsupportedType(f"File type .{ext} is not allowed")
    if size > slot.max_size:
        raise FileTooLarge(f"File size too large. Maximum size is {_human_size(slot.max_size)}.")
    return ext


def validate_for_type(filename: Optional[str], size: int, resource_type: ResourceType) -> None:
    """Apply the resource type's own extension list and ceiling to the primary file."""
    ext = file_extension(filename)
    allowed = resource_type.extension_list
    if allowed and ext not in allowed:
        raise UnsupportedType(
            f"{resource_type.type_name} resources must be one of: {', '.join(allowed)}"
        )
    if resource_type.max_file_size and size > resource_type.max_file_size:
        raise FileTooLarge(
            f"File size too large. Maximum size for {resource_type.type_name} "
            f"is {_human_size(resource_type.max_file_size)}."
        )


def check_file_counts(files_by_field: dict[str, int], limits: dict[str, int]) -> None:
    """Reject unexpected file fields and fields carrying more files than allowed."""
    for field, count in files_by_field.items():
        if field not in limits:
            raise TooManyFiles(f"Unexpected file field '{field}'")
        if count > limits[field]:
            raise TooManyFiles(f"Too many files. Only {limits[field]} '{field}' allowed per upload.")
