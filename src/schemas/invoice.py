"""
Invoice Processing Schemas 📋
============================

Pydantic models for the per-document extraction record and the schema
validation outcome. Records travel over the progress stream with camelCase
keys, so every field carries its wire alias.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.enums import ProcessingStatusEnum, ValidationStatusEnum

# Reserved key under which the validation outcome is stored in parsed data
VALIDATION_DETAILS_KEY = "__validation_details"


class ExtractionRecord(BaseModel):
    """Mutable state of one document while it moves through the pipeline."""

    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(..., alias="fileName")
    status: ProcessingStatusEnum = ProcessingStatusEnum.PROCESSING_STARTED
    gemini_response_preview: Optional[str] = Field(None, alias="geminiResponsePreview")
    error_detail: Optional[str] = Field(None, alias="errorDetail")
    parsed_data_snippet: Optional[str] = Field(None, alias="parsedDataSnippet")
    parsed_data: Optional[Dict[str, Any]] = Field(None, alias="parsedData")
    output_filename: Optional[str] = Field(None, alias="outputFilename")
    preview_mime_type: Optional[str] = Field(None, alias="previewMimeType")
    preview_data: Optional[str] = Field(None, alias="previewData")
    is_last_update_for_file: bool = Field(False, alias="isLastUpdateForFile")

    def snapshot(self) -> Dict[str, Any]:
        """Detached, JSON-ready copy for emission; later mutations do not leak into it."""
        return self.model_dump(mode="json", by_alias=True)

    def clear_preview(self) -> None:
        self.preview_mime_type = None
        self.preview_data = None


class ValidationOutcome(BaseModel):
    """Result of checking extracted data against the invoice schema."""

    status: ValidationStatusEnum
    errors_summary: Optional[str] = None
    errors_list: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.status is ValidationStatusEnum.PASSED

    def to_details(self) -> Dict[str, Any]:
        """Shape stored under the reserved validation key."""
        if self.passed:
            return {"status": self.status.value}
        return {
            "status": self.status.value,
            "errors_summary": self.errors_summary,
            "errors_list": self.errors_list,
        }
