"""File type enumeration."""
from enum import Enum


class FileTypeEnum(str, Enum):
    """Supported invoice file types, keyed by extension."""

    PDF = "pdf"
    IMAGE_JPG = "jpg"
    IMAGE_JPEG = "jpeg"

    @property
    def mime_type(self) -> str:
        """MIME type sent to the model alongside the encoded document."""
        if self is FileTypeEnum.PDF:
            return "application/pdf"
        return "image/jpeg"

    @classmethod
    def from_extension(cls, extension: str) -> "FileTypeEnum":
        """
        Resolve an extension such as '.PDF' or 'jpg'.

        Raises:
            ValueError: If the extension is not supported.
        """
        return cls(extension.lower().lstrip("."))

    @classmethod
    def get_extensions(cls) -> list:
        """Get the supported extensions with a leading dot."""
        return [f".{member.value}" for member in cls]
