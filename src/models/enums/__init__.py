"""Enums package initialization."""

from models.enums.FileTypeEnum import FileTypeEnum
from models.enums.ResponseEnums import (
    EventTypeEnum,
    ProcessingStatusEnum,
    ValidationStatusEnum,
)

__all__ = ["FileTypeEnum", "ProcessingStatusEnum", "EventTypeEnum", "ValidationStatusEnum"]
