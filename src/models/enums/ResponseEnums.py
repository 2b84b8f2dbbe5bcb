"""Status and event enumerations for the processing stream."""
from enum import Enum


class ProcessingStatusEnum(str, Enum):
    """Per-document pipeline states, in the order they are reached."""
    PROCESSING_STARTED = "processing_started"
    PREPARED_FOR_GEMINI = "prepared_for_gemini"
    GEMINI_PASS1_CALLING = "gemini_pass1_calling"
    GEMINI_PASS1_COMPLETE = "gemini_pass1_complete"
    GEMINI_PASS2_CALLING = "gemini_pass2_calling"
    GEMINI_PASS2_COMPLETE = "gemini_pass2_complete"
    GEMINI_PASS3_CALLING = "gemini_pass3_json_extraction_calling"
    GEMINI_PASS3_COMPLETE = "gemini_pass3_json_extraction_complete"
    JSON_PARSED_AND_ENRICHED = "json_parsed_and_enriched"
    VALIDATION_PASSED = "validation_passed"
    VALIDATION_FAILED = "validation_failed"
    SAVED_SUCCESSFULLY = "saved_successfully"
    ERROR_PROCESSING_FILE = "error_processing_file"

    @property
    def is_error(self) -> bool:
        return self.value.startswith("error_")

    @property
    def is_terminal(self) -> bool:
        return self is ProcessingStatusEnum.SAVED_SUCCESSFULLY or self.is_error


class EventTypeEnum(str, Enum):
    """Discriminator of messages on the progress stream."""
    INFO = "info"
    FILE_UPDATE = "file_update"
    INDEX_PROCESSED = "index_processed"
    ERROR = "error"


class ValidationStatusEnum(str, Enum):
    """Schema validation verdict."""
    PASSED = "passed"
    FAILED = "failed"
