"""
Invoice Controller 🎮
=====================

Bridges the streaming route and the extraction pipeline. One call to
``process_index`` handles exactly one document, the one at ``start_index``
in a fresh listing of the input directory, and then closes the stream.

Responsibilities:
-----------------
- **Setup**: obtain the compiled schema, list the input documents, load the
  system prompt. Failures here end the stream with an ``error`` event.
- **Batch info**: announce the batch size (index 0) or the requested index.
- **Dispatch**: run the pipeline for the selected document.
- **Summary**: emit ``index_processed`` so the client can decide whether to
  request the next index.
"""
import asyncio
from typing import Optional

from controllers.base_controller import BaseController
from core.config import Settings
from core.errors import InvoiceProcessingError, StreamClosedError
from core.logging_config import get_logger
from pipeline.invoice_pipeline import InvoicePipeline
from schemas.events import ErrorEvent, IndexProcessedEvent, InfoEvent, Progress
from schemas.invoice import ExtractionRecord
from services.document_service import list_supported_documents
from services.gemini_service import ModelClient, get_model_client
from services.output_service import OutputPersister
from services.progress_service import ProgressBroadcaster
from services.prompt_service import load_system_prompt
from services.schema_service import SchemaValidatorProvider

logger = get_logger(__name__)

NO_DOCUMENTS_MESSAGE = "No supported files (PDF, JPEG, JPG) found in input-files directory."


class InvoiceController(BaseController):
    """
    Controller for the invoice processing stream.

    Holds only shared, read-only collaborators; all per-request state lives
    in the broadcaster and the pipeline created for that request.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        model_client: Optional[ModelClient] = None,
        validator_provider: Optional[SchemaValidatorProvider] = None,
    ):
        super().__init__(settings)
        self.model_client = model_client or get_model_client(self.settings.vlm)
        self.validator_provider = validator_provider or SchemaValidatorProvider(
            self.settings.paths.schema_file
        )
        self.persister = OutputPersister(
            self.output_dir,
            overwrite_existing=self.settings.output.overwrite_existing,
            indent=self.settings.output.indent,
        )

    async def process_index(self, start_index: int, broadcaster: ProgressBroadcaster) -> Optional[ExtractionRecord]:
        """
        Process the document at ``start_index`` and close the stream.

        Args:
            start_index: Batch cursor sent by the client (already coerced to >= 0)
            broadcaster: Event channel for this request

        Returns:
            The document's final record, or None when no document was processed
        """
        log = logger.bind(index=start_index)
        try:
            validator = await self.validator_provider.get()
            documents = await asyncio.to_thread(
                list_supported_documents, self.input_dir, self.settings.file.allowed_types_list
            )
            if not documents:
                log.warning(NO_DOCUMENTS_MESSAGE)
                await broadcaster.send(ErrorEvent(message=NO_DOCUMENTS_MESSAGE))
                return None

            system_prompt = await load_system_prompt(self.settings.paths.system_prompt_file)
            total = len(documents)

            if start_index == 0:
                await broadcaster.send(InfoEvent(
                    message=f"Found {total} supported files. Starting batch...",
                    total_files=total,
                ))
            else:
                await broadcaster.send(InfoEvent(
                    message=f"Requesting processing for file at index {start_index}. Total files: {total}",
                ))

            if start_index >= total:
                await broadcaster.send(IndexProcessedEvent(
                    message="All files processed or requested index is out of bounds.",
                    processed_file_index=start_index,
                    is_overall_last_file=True,
                    total_files=total,
                ))
                return None

            document = documents[start_index]
            pipeline = InvoicePipeline(
                model_client=self.model_client,
                validator=validator,
                persister=self.persister,
                broadcaster=broadcaster,
                system_prompt=system_prompt,
                progress=Progress(current=start_index + 1, total=total),
            )
            record = await pipeline.run(document)

            await broadcaster.send(IndexProcessedEvent(
                message=(
                    f"Finished processing for index {start_index}. "
                    f"File: {document.name}. Status: {record.status.value}."
                ),
                processed_file_index=start_index,
                is_overall_last_file=start_index >= total - 1,
                total_files=total,
                processed_file_result=record.snapshot(),
            ))
            return record

        except StreamClosedError:
            log.info("Stream closed before processing finished")
            return None
        except InvoiceProcessingError as e:
            log.error(f"Stream-fatal error: {e}", extra={"category": e.category.value})
            await broadcaster.send(ErrorEvent(message=str(e)))
            return None
        except Exception as e:
            log.exception("Error in invoice processing stream")
            await broadcaster.send(ErrorEvent(message=str(e) or "An unexpected error occurred."))
            return None
        finally:
            broadcaster.close()
