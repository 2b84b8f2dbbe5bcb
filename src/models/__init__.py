"""Models package initialization."""

from models.enums import (
    EventTypeEnum,
    FileTypeEnum,
    ProcessingStatusEnum,
    ValidationStatusEnum,
)

__all__ = ["FileTypeEnum", "ProcessingStatusEnum", "EventTypeEnum", "ValidationStatusEnum"]
