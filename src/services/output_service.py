"""
Output Service 💾
=================

Names and writes the JSON file for a processed invoice.

File name: ``{supplier}_{date}_{invoiceNumber}.json`` built from the extracted
``supplier_name``, ``invoice_date`` and ``invoice_number``. Each part is used
only when it is a string, with every non-alphanumeric character replaced by
``_``; otherwise ``UnknownSupplier``, today's date or ``NoInvoiceNumber``.
"""

import asyncio
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from core.errors import PersistenceError
from utils.file_utils import unique_path, write_json_atomic
from utils.text_utils import sanitize_component

logger = logging.getLogger(__name__)

UNKNOWN_SUPPLIER = "UnknownSupplier"
NO_INVOICE_NUMBER = "NoInvoiceNumber"


def _component(value: Any, fallback: str) -> str:
    if isinstance(value, str):
        return sanitize_component(value)
    return fallback


def build_output_filename(parsed_data: Dict[str, Any], today: Optional[date] = None) -> str:
    """
    Deterministic output file name for an extracted invoice.

    Args:
        parsed_data: Extracted invoice object
        today: Date used when ``invoice_date`` is missing (defaults to the current UTC date)
    """
    today = today or datetime.now(timezone.utc).date()
    supplier = _component(parsed_data.get("supplier_name"), UNKNOWN_SUPPLIER)
    invoice_date = _component(parsed_data.get("invoice_date"), sanitize_component(today.isoformat()))
    invoice_number = _component(parsed_data.get("invoice_number"), NO_INVOICE_NUMBER)
    return f"{supplier}_{invoice_date}_{invoice_number}.json"


class OutputPersister:
    """Writes processed invoices into the output directory."""

    def __init__(self, output_dir: Path, overwrite_existing: bool = True, indent: int = 2):
        self.output_dir = Path(output_dir)
        self.overwrite_existing = overwrite_existing
        self.indent = indent

    def resolve_path(self, filename: str) -> Path:
        path = self.output_dir / filename
        if self.overwrite_existing:
            return path
        return unique_path(path)

    async def save(self, filename: str, data: Dict[str, Any]) -> Path:
        """
        Write ``data`` as ``filename``; all-or-nothing.

        Returns:
            Path of the written file (may carry a numeric suffix when overwriting is off)

        Raises:
            PersistenceError: If the file could not be written
        """
        path = self.resolve_path(filename)
        try:
            await asyncio.to_thread(write_json_atomic, path, data, self.indent)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"File save error: {e}")
        logger.info(f"💾 Saved extracted invoice to {path}")
        return path
