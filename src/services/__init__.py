"""
Services module for the invoice extraction pipeline.

This module provides the services each processing stage relies on:

- document_service: input enumeration and document preparation
- prompt_service: the three pass prompts and the system prompt
- gemini_service: Vision Language Model calls (Gemini or OpenAI-compatible)
- schema_service: compiled JSON Schema validation
- output_service: output naming and atomic persistence
- progress_service: Server-Sent-Events progress stream
"""

from services.document_service import Document, PreparedDocument, list_supported_documents, prepare_document
from services.gemini_service import GeminiClient, ModelClient, OpenAICompatibleClient, get_model_client
from services.output_service import OutputPersister, build_output_filename
from services.progress_service import ProgressBroadcaster, format_sse
from services.prompt_service import build_pass1_prompt, build_pass2_prompt, build_pass3_prompt, load_system_prompt
from services.schema_service import InvoiceSchemaValidator, SchemaValidatorProvider, load_schema_validator

__all__ = [
    # Documents
    "Document",
    "PreparedDocument",
    "list_supported_documents",
    "prepare_document",
    # Model
    "ModelClient",
    "GeminiClient",
    "OpenAICompatibleClient",
    "get_model_client",
    # Prompts
    "build_pass1_prompt",
    "build_pass2_prompt",
    "build_pass3_prompt",
    "load_system_prompt",
    # Validation
    "InvoiceSchemaValidator",
    "SchemaValidatorProvider",
    "load_schema_validator",
    # Output
    "OutputPersister",
    "build_output_filename",
    # Progress
    "ProgressBroadcaster",
    "format_sse",
]
