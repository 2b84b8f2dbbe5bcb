"""
Progress Event Schemas 📡
=========================

The four message kinds carried by the processing stream. Each serialises to
a JSON object whose ``type`` field is the discriminator.
"""

from typing import Any, ClassVar, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class _Event(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Wire keys left out entirely when unset
    omit_when_none: ClassVar[Tuple[str, ...]] = ()

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json", by_alias=True)
        for key in self.omit_when_none:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload


class Progress(BaseModel):
    """Batch position: 1-based index of the current document and batch size."""

    current: int
    total: int


class InfoEvent(_Event):
    omit_when_none: ClassVar[Tuple[str, ...]] = ("totalFiles",)

    type: Literal["info"] = "info"
    message: str
    total_files: Optional[int] = Field(None, alias="totalFiles")


class FileUpdateEvent(_Event):
    type: Literal["file_update"] = "file_update"
    progress: Progress
    data: Dict[str, Any]


class IndexProcessedEvent(_Event):
    omit_when_none: ClassVar[Tuple[str, ...]] = ("processedFileResult",)

    type: Literal["index_processed"] = "index_processed"
    message: str
    processed_file_index: int = Field(..., alias="processedFileIndex")
    is_overall_last_file: bool = Field(..., alias="isOverallLastFile")
    total_files: int = Field(..., alias="totalFiles")
    processed_file_result: Optional[Dict[str, Any]] = Field(None, alias="processedFileResult")


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    message: str


ProgressEvent = Union[InfoEvent, FileUpdateEvent, IndexProcessedEvent, ErrorEvent]
