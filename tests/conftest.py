"""
InvoiceStream Test Suite Configuration
======================================

This module provides shared pytest fixtures and configuration for the
InvoiceStream test suite. It includes a scripted stand-in for the vision
model, a temporary input/output layout and sample invoice data.

Fixtures:
---------
    input_dir : Path
        Empty temporary input directory.
    output_dir : Path
        Temporary output directory (not created up front).
    test_settings : Settings
        Settings pointing at the temporary directories and the shipped
        schema and system prompt.
    valid_invoice : dict
        Extraction result that satisfies the invoice schema.
    fake_model : FakeModelClient
        Model client answering passes 1/2 with prose and pass 3 with JSON.
    validator : InvoiceSchemaValidator
        Validator compiled from the shipped schema.

Usage:
------
    Fixtures are automatically available in test functions:

    def test_example(test_settings, fake_model):
        assert test_settings.paths.schema_file.is_file()
        assert fake_model.calls == []
"""
import json
import sys
from pathlib import Path
from typing import List, Optional

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.config import OutputSettings, PathSettings, Settings  # noqa: E402
from services.schema_service import load_schema_validator  # noqa: E402

PROJECT_ROOT = Path(__file__).parent.parent
SCHEMA_PATH = PROJECT_ROOT / "config" / "invoice_output_schema.json"
SYSTEM_PROMPT_PATH = PROJECT_ROOT / "config" / "gemini_system_prompt.txt"

# Smallest bytes that pass for each supported type
PDF_BYTES = b"%PDF-1.4\n%test invoice\n"
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00test\xff\xd9"


class FakeModelClient:
    """
    Scripted ModelClient.

    Passes 1 and 2 get fixed prose; the JSON pass (``require_json=True``)
    gets ``final_response``. Set ``responses`` to script every call instead.
    """

    def __init__(self, final_response: Optional[str] = None, responses: Optional[List[Optional[str]]] = None):
        self.final_response = final_response
        self.responses = list(responses) if responses is not None else None
        self.calls: List[dict] = []

    async def generate(self, system_prompt, mime_type, data, parts, require_json=False):
        self.calls.append({
            "system_prompt": system_prompt,
            "mime_type": mime_type,
            "data": data,
            "parts": list(parts),
            "require_json": require_json,
        })
        if self.responses is not None:
            return self.responses.pop(0)
        if require_json:
            return self.final_response
        return f"Analysis {len(self.calls)}: header top, line items middle, totals bottom-right."


def write_document(directory: Path, name: str) -> Path:
    """Create a small input document whose bytes match its extension."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(PDF_BYTES if name.lower().endswith(".pdf") else JPEG_BYTES)
    return path


def parse_frames(frames: List[str]) -> List[dict]:
    """Decode ``data: <json>`` frames into event dicts."""
    return [json.loads(frame[len("data: "):].strip()) for frame in frames]


async def collect_events(broadcaster) -> List[dict]:
    """Close ``broadcaster`` and return every event it queued."""
    broadcaster.close()
    return parse_frames([frame async for frame in broadcaster.frames()])


@pytest.fixture
def input_dir(tmp_path):
    """
    Create the temporary input directory.

    Returns:
        Path: Empty directory for test invoices.
    """
    path = tmp_path / "input-files"
    path.mkdir()
    return path


@pytest.fixture
def output_dir(tmp_path):
    """
    Temporary output directory; the persister creates it on first write.

    Returns:
        Path: Output directory path.
    """
    return tmp_path / "output-data"


@pytest.fixture
def test_settings(input_dir, output_dir):
    """
    Create application settings for tests.

    Returns:
        Settings: Paths redirected to the temporary directories.
    """
    return Settings(
        paths=PathSettings(
            input_dir=str(input_dir),
            output_dir=str(output_dir),
            schema_path=str(SCHEMA_PATH),
            system_prompt_path=str(SYSTEM_PROMPT_PATH),
        ),
        output=OutputSettings(overwrite_existing=True, indent=2),
    )


@pytest.fixture
def valid_invoice():
    """
    Provide an extraction result that passes schema validation.

    Returns:
        dict: Invoice fields as the model would return them.
    """
    return {
        "supplier_name": "ACME Corp",
        "invoice_number": "INV-001",
        "invoice_date": "2024-01-15",
        "due_date": "2024-02-14",
        "line_items": [
            {"description": "Widget", "quantity": 2, "unit_price": 5.0, "total_amount": 10.0},
        ],
        "subtotal": 10.0,
        "tax_amount": 0.0,
        "grand_total": 10.0,
        "currency": "EUR",
    }


@pytest.fixture
def fake_model(valid_invoice):
    """
    Create a scripted model client.

    Returns:
        FakeModelClient: Answers the JSON pass with ``valid_invoice``.
    """
    return FakeModelClient(final_response=json.dumps(valid_invoice))


@pytest.fixture
def validator():
    """
    Compile the shipped invoice schema.

    Returns:
        InvoiceSchemaValidator: Ready-to-use validator.
    """
    return load_schema_validator(SCHEMA_PATH)
