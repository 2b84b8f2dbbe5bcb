"""
Document Service 📂
===================

Enumerates the invoices waiting in the input directory and prepares a single
document for the model (read, base64-encode, resolve MIME type).

The enumeration is recomputed on every call: the index a client sends refers
to the listing taken for that request, not to a cached batch.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from core.errors import DocumentPreparationError, EnumerationError
from models.enums import FileTypeEnum
from utils.file_utils import read_base64

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """An input invoice, fixed at enumeration time."""
    name: str
    path: Path
    media_type: str


@dataclass(frozen=True)
class PreparedDocument:
    """Document content ready to be attached to a model request."""
    mime_type: str
    data: str


def _supported_extensions(allowed: Optional[Iterable[str]]) -> List[str]:
    if allowed is None:
        return FileTypeEnum.get_extensions()
    return [f".{ext.lower().lstrip('.')}" for ext in allowed]


def list_supported_documents(
    input_dir: Path, allowed_types: Optional[Iterable[str]] = None
) -> List[Document]:
    """
    List supported invoices in ``input_dir`` in a stable (name-sorted) order.

    Args:
        input_dir: Directory to scan (not recursive)
        allowed_types: Extensions to keep; defaults to every FileTypeEnum member

    Returns:
        Documents whose position in the list is their batch index

    Raises:
        EnumerationError: If the directory does not exist or cannot be listed
    """
    extensions = _supported_extensions(allowed_types)
    try:
        entries = sorted(os.listdir(input_dir))
    except FileNotFoundError:
        raise EnumerationError(f"Input directory not found: {input_dir}")
    except OSError as e:
        raise EnumerationError(f"Could not list input directory {input_dir}: {e}")

    documents = []
    for entry in entries:
        path = Path(input_dir) / entry
        ext = path.suffix.lower()
        if ext not in extensions or not path.is_file():
            continue
        try:
            file_type = FileTypeEnum.from_extension(ext)
        except ValueError:
            logger.debug(f"Skipping {entry}: no MIME type for {ext}")
            continue
        documents.append(Document(name=entry, path=path, media_type=file_type.mime_type))

    logger.debug(f"Enumerated {len(documents)} supported document(s) in {input_dir}")
    return documents


async def prepare_document(document: Document) -> PreparedDocument:
    """
    Read and encode a document for the model.

    Raises:
        DocumentPreparationError: If the file type is unsupported or the file cannot be read
    """
    try:
        mime_type = FileTypeEnum.from_extension(document.path.suffix).mime_type
    except ValueError:
        raise DocumentPreparationError(f"Unsupported file type: {document.path.suffix.lower()}")

    try:
        data = await asyncio.to_thread(read_base64, document.path)
    except OSError as e:
        logger.error(f"Error preparing invoice file {document.path}: {e}")
        raise DocumentPreparationError(f"Could not prepare invoice file {document.name}.")

    return PreparedDocument(mime_type=mime_type, data=data)
