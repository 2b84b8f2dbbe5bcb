"""
Invoice Extraction Pipeline ⚡
=============================

Drives one invoice from raw file to saved JSON, announcing every step on the
progress stream.

The Pipeline Workflow:
----------------------
1. **Prepare**: read and encode the file; the first update carries a
   one-time preview of the document.
2. **Pass 1**: structural analysis of the layout.
3. **Pass 2**: locate the key invoice regions, using pass 1 as context.
4. **Pass 3**: extract the fields as a single JSON object.
5. **Parse & enrich**: decode the JSON, stamp ``original_filename`` and
   ``processing_timestamp``.
6. **Validate**: check against the invoice schema; failures are recorded,
   not fatal.
7. **Persist**: write the enriched object under its deterministic name.

Any error inside steps 1–7 stays with this document: the record ends in
``error_processing_file`` and the batch carries on. A closed progress
stream is the exception: the consumer is gone, so the document is
abandoned without writing anything.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Optional

from core.errors import DocumentError, ModelCallError, ResponseParseError, StreamClosedError
from core.logging_config import get_logger
from models.enums import ProcessingStatusEnum as Status
from schemas.events import FileUpdateEvent, Progress
from schemas.invoice import VALIDATION_DETAILS_KEY, ExtractionRecord
from services.document_service import Document, PreparedDocument, prepare_document
from services.gemini_service import ModelClient
from services.output_service import OutputPersister, build_output_filename
from services.progress_service import ProgressBroadcaster
from services.prompt_service import (
    PassPrompt,
    build_pass1_prompt,
    build_pass2_prompt,
    build_pass3_prompt,
)
from services.schema_service import InvoiceSchemaValidator
from utils.text_utils import Malformed, parse_model_json, preview

logger = get_logger(__name__)

RESPONSE_PREVIEW_LENGTH = 100
PARSED_SNIPPET_LENGTH = 250


class InvoicePipeline:
    """
    Per-document state machine.

    One instance handles one document for one request; the collaborators
    (model client, validator handle, persister) are shared and read-only.
    """

    def __init__(
        self,
        model_client: ModelClient,
        validator: InvoiceSchemaValidator,
        persister: OutputPersister,
        broadcaster: ProgressBroadcaster,
        system_prompt: str,
        progress: Progress,
    ):
        self.model_client = model_client
        self.validator = validator
        self.persister = persister
        self.broadcaster = broadcaster
        self.system_prompt = system_prompt
        self.progress = progress

    async def run(self, document: Document) -> ExtractionRecord:
        """
        Process ``document`` end to end.

        Returns:
            The final record (``saved_successfully`` or an ``error_`` status)

        Raises:
            StreamClosedError: If the consumer disconnected mid-document
        """
        record = ExtractionRecord(file_name=document.name, status=Status.PROCESSING_STARTED)
        log = logger.bind(file=document.name, index=self.progress.current - 1)
        log.info("Processing started")
        await self._publish(record)

        try:
            await self._extract(document, record)
        except StreamClosedError:
            log.warning("Consumer disconnected; abandoning document")
            raise
        except DocumentError as e:
            self._fail(record, e)
            log.error(f"Error processing file: {e}", extra={"category": e.category.value})
        except Exception as e:
            self._fail(record, e)
            log.exception(f"Unexpected error processing file: {e}")

        record.is_last_update_for_file = True
        await self._publish(record)
        log.info("Processing finished", extra={"status": record.status.value})
        return record

    async def _extract(self, document: Document, record: ExtractionRecord) -> None:
        prepared = await prepare_document(document)
        record.preview_mime_type = prepared.mime_type
        record.preview_data = prepared.data
        await self._advance(record, Status.PREPARED_FOR_GEMINI)
        record.clear_preview()

        pass1_text = await self._call_pass(
            record, prepared, build_pass1_prompt(),
            Status.GEMINI_PASS1_CALLING, Status.GEMINI_PASS1_COMPLETE,
        )
        pass2_text = await self._call_pass(
            record, prepared, build_pass2_prompt(pass1_text),
            Status.GEMINI_PASS2_CALLING, Status.GEMINI_PASS2_COMPLETE,
        )

        pass3_prompt = build_pass3_prompt(pass1_text, pass2_text)
        await self._advance(record, Status.GEMINI_PASS3_CALLING)
        pass3_text = await self._generate(prepared, pass3_prompt)
        record.gemini_response_preview = preview(pass3_text, RESPONSE_PREVIEW_LENGTH)
        await self._advance(record, Status.GEMINI_PASS3_COMPLETE)

        result = parse_model_json(pass3_text)
        if isinstance(result, Malformed):
            raise ResponseParseError(f"JSON parse error: {result.reason}")
        parsed = result.data

        parsed["original_filename"] = document.name
        parsed["processing_timestamp"] = datetime.now(timezone.utc).isoformat()
        record.parsed_data = parsed
        record.parsed_data_snippet = preview(json.dumps(parsed, indent=2), PARSED_SNIPPET_LENGTH, "\n...")
        await self._advance(record, Status.JSON_PARSED_AND_ENRICHED)

        outcome = self.validator.validate(parsed)
        parsed[VALIDATION_DETAILS_KEY] = outcome.to_details()
        if outcome.passed:
            next_status = Status.VALIDATION_PASSED
        else:
            next_status = Status.VALIDATION_FAILED
            record.error_detail = f"Schema validation failed: {outcome.errors_summary}"
        await self._advance(record, next_status)

        filename = build_output_filename(parsed)
        # Let a pending disconnect land before touching the disk
        await asyncio.sleep(0)
        self._ensure_open()
        path = await self.persister.save(filename, parsed)
        record.output_filename = path.name
        record.status = Status.SAVED_SUCCESSFULLY

    async def _call_pass(
        self,
        record: ExtractionRecord,
        prepared: PreparedDocument,
        prompt: PassPrompt,
        calling: Status,
        complete: Status,
    ) -> str:
        await self._advance(record, calling)
        text = await self._generate(prepared, prompt)
        await self._advance(record, complete)
        return text

    async def _generate(self, prepared: PreparedDocument, prompt: PassPrompt) -> str:
        text: Optional[str] = await self.model_client.generate(
            self.system_prompt,
            prepared.mime_type,
            prepared.data,
            prompt.parts,
            require_json=prompt.require_json,
        )
        if not text or not text.strip():
            raise ModelCallError(f"Gemini ({prompt.label}) returned no text.")
        return text

    def _fail(self, record: ExtractionRecord, error: Exception) -> None:
        message = str(error) or error.__class__.__name__
        record.error_detail = message
        if not record.status.is_error:
            record.status = Status.ERROR_PROCESSING_FILE
        record.clear_preview()
        record.output_filename = None
        if record.parsed_data is not None:
            record.parsed_data["error"] = "Processing failed for this file"
            record.parsed_data["details"] = message
            record.parsed_data_snippet = "Error in processing."

    async def _advance(self, record: ExtractionRecord, status: Status) -> None:
        record.status = status
        await self._publish(record)

    def _ensure_open(self) -> None:
        if self.broadcaster.closed:
            raise StreamClosedError("Progress stream closed by consumer")

    async def _publish(self, record: ExtractionRecord) -> None:
        self._ensure_open()
        await self.broadcaster.send(FileUpdateEvent(progress=self.progress, data=record.snapshot()))
