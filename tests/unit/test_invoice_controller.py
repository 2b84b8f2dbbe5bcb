"""
Invoice Controller Unit Tests
=============================

Tests for one request's worth of work: setup, batch info, dispatch to the
pipeline and the closing summary.

Running Tests:
--------------
    pytest tests/unit/test_invoice_controller.py -v
"""
import threading
from unittest.mock import patch

import pytest

from conftest import FakeModelClient, collect_events, write_document
from controllers.invoice_controller import NO_DOCUMENTS_MESSAGE, InvoiceController
from core.config import PathSettings
from services.document_service import list_supported_documents
from services.progress_service import ProgressBroadcaster
from services.schema_service import SchemaValidatorProvider


@pytest.fixture
def controller(test_settings, fake_model):
    return InvoiceController(settings=test_settings, model_client=fake_model)


async def run_index(controller, index):
    broadcaster = ProgressBroadcaster()
    await controller.process_index(index, broadcaster)
    assert broadcaster.closed
    return await collect_events(broadcaster)


class TestBatchWalk:
    """Two documents processed one request at a time."""

    @pytest.mark.asyncio
    async def test_first_and_last_index(self, controller, input_dir, output_dir):
        write_document(input_dir, "a.pdf")
        write_document(input_dir, "b.jpg")

        first = await run_index(controller, 0)

        assert first[0] == {
            "type": "info",
            "message": "Found 2 supported files. Starting batch...",
            "totalFiles": 2,
        }
        updates = [e for e in first if e["type"] == "file_update"]
        assert {u["data"]["fileName"] for u in updates} == {"a.pdf"}
        assert updates[-1]["data"]["status"] == "saved_successfully"
        summary = first[-1]
        assert summary["type"] == "index_processed"
        assert summary["processedFileIndex"] == 0
        assert summary["isOverallLastFile"] is False
        assert summary["totalFiles"] == 2
        assert summary["processedFileResult"]["fileName"] == "a.pdf"
        assert summary["message"] == (
            "Finished processing for index 0. File: a.pdf. Status: saved_successfully."
        )

        second = await run_index(controller, 1)

        assert second[0]["type"] == "info"
        assert "totalFiles" not in second[0]
        assert second[0]["message"] == "Requesting processing for file at index 1. Total files: 2"
        assert {e["data"]["fileName"] for e in second if e["type"] == "file_update"} == {"b.jpg"}
        assert second[-1]["isOverallLastFile"] is True
        assert second[-1]["processedFileIndex"] == 1
        assert len(list(output_dir.iterdir())) >= 1

    @pytest.mark.asyncio
    async def test_out_of_range_index(self, controller, input_dir, fake_model):
        write_document(input_dir, "a.pdf")

        events = await run_index(controller, 5)

        assert [e["type"] for e in events] == ["info", "index_processed"]
        assert events[-1]["message"] == "All files processed or requested index is out of bounds."
        assert events[-1]["isOverallLastFile"] is True
        assert events[-1]["processedFileIndex"] == 5
        assert "processedFileResult" not in events[-1]
        assert fake_model.calls == []

    @pytest.mark.asyncio
    async def test_failed_document_still_ends_with_summary(self, test_settings, input_dir):
        write_document(input_dir, "a.pdf")
        controller = InvoiceController(settings=test_settings, model_client=FakeModelClient(final_response="nope"))

        events = await run_index(controller, 0)

        summary = events[-1]
        assert summary["type"] == "index_processed"
        assert summary["isOverallLastFile"] is True
        assert summary["processedFileResult"]["status"] == "error_processing_file"

    @pytest.mark.asyncio
    async def test_directory_listing_runs_off_the_event_loop(self, controller, input_dir):
        write_document(input_dir, "a.pdf")
        threads = []

        def listing(*args, **kwargs):
            threads.append(threading.current_thread())
            return list_supported_documents(*args, **kwargs)

        with patch("controllers.invoice_controller.list_supported_documents", side_effect=listing):
            events = await run_index(controller, 0)

        assert events[-1]["type"] == "index_processed"
        assert len(threads) == 1
        assert threads[0] is not threading.main_thread()


class TestStreamFatalErrors:
    """Setup problems end the stream with a single error event."""

    @pytest.mark.asyncio
    async def test_empty_input_directory(self, controller, fake_model):
        events = await run_index(controller, 0)

        assert events == [{"type": "error", "message": NO_DOCUMENTS_MESSAGE}]
        assert fake_model.calls == []

    @pytest.mark.asyncio
    async def test_missing_input_directory(self, test_settings, fake_model, tmp_path):
        settings = test_settings.model_copy(
            update={"paths": test_settings.paths.model_copy(update={"input_dir": str(tmp_path / "nope")})}
        )
        controller = InvoiceController(settings=settings, model_client=fake_model)

        events = await run_index(controller, 0)

        assert [e["type"] for e in events] == ["error"]
        assert "Input directory not found" in events[0]["message"]

    @pytest.mark.asyncio
    async def test_missing_schema(self, test_settings, fake_model, input_dir, tmp_path):
        write_document(input_dir, "a.pdf")
        controller = InvoiceController(
            settings=test_settings,
            model_client=fake_model,
            validator_provider=SchemaValidatorProvider(tmp_path / "missing.json"),
        )

        events = await run_index(controller, 0)

        assert [e["type"] for e in events] == ["error"]
        assert fake_model.calls == []

    @pytest.mark.asyncio
    async def test_missing_system_prompt(self, test_settings, fake_model, input_dir, tmp_path):
        write_document(input_dir, "a.pdf")
        paths = PathSettings(
            input_dir=test_settings.paths.input_dir,
            output_dir=test_settings.paths.output_dir,
            schema_path=test_settings.paths.schema_path,
            system_prompt_path=str(tmp_path / "missing.txt"),
        )
        controller = InvoiceController(
            settings=test_settings.model_copy(update={"paths": paths}), model_client=fake_model
        )

        events = await run_index(controller, 0)

        assert events == [{"type": "error", "message": "Could not read Gemini system prompt file."}]


class TestCoerceIndex:
    """Unit tests for BaseController.coerce_index."""

    @pytest.mark.parametrize("raw, expected", [
        ("3", 3),
        (" 2 ", 2),
        ("0", 0),
        ("-3", 0),
        ("abc", 0),
        ("", 0),
        (None, 0),
        ("1.5", 0),
    ])
    def test_coercion(self, raw, expected):
        assert InvoiceController.coerce_index(raw) == expected
