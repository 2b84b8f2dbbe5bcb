"""
Output Service Unit Tests
=========================

Tests for output file naming and persistence.

Running Tests:
--------------
    pytest tests/unit/test_output_service.py -v
"""
import json
from datetime import date
from unittest.mock import patch

import pytest

from core.errors import PersistenceError
from services.output_service import OutputPersister, build_output_filename


class TestBuildOutputFilename:
    """Unit tests for build_output_filename."""

    def test_all_components_present(self):
        parsed = {"supplier_name": "ACME Corp.", "invoice_date": "2024-01-15", "invoice_number": "INV/001"}

        assert build_output_filename(parsed) == "ACME_Corp__2024_01_15_INV_001.json"

    def test_slashed_date_cannot_create_directories(self):
        parsed = {"supplier_name": "ACME", "invoice_date": "15/01/2024", "invoice_number": "7"}

        assert build_output_filename(parsed) == "ACME_15_01_2024_7.json"

    def test_fallbacks(self):
        name = build_output_filename({}, today=date(2024, 3, 9))

        assert name == "UnknownSupplier_2024_03_09_NoInvoiceNumber.json"

    def test_non_string_components_use_fallbacks(self):
        parsed = {"supplier_name": None, "invoice_date": 20240115, "invoice_number": 42}

        name = build_output_filename(parsed, today=date(2024, 1, 5))

        assert name == "UnknownSupplier_2024_01_05_NoInvoiceNumber.json"

    def test_deterministic(self):
        parsed = {"supplier_name": "Beta", "invoice_date": "2023-12-31", "invoice_number": "7"}

        assert build_output_filename(parsed) == build_output_filename(dict(parsed))


class TestOutputPersister:
    """Unit tests for OutputPersister.save."""

    @pytest.mark.asyncio
    async def test_writes_indented_json_and_creates_directory(self, output_dir):
        persister = OutputPersister(output_dir)

        path = await persister.save("a.json", {"supplier_name": "ACME", "total": 1})

        assert path == output_dir / "a.json"
        text = path.read_text(encoding="utf-8")
        assert json.loads(text) == {"supplier_name": "ACME", "total": 1}
        assert '\n  "supplier_name"' in text

    @pytest.mark.asyncio
    async def test_overwrites_by_default(self, output_dir):
        persister = OutputPersister(output_dir)

        await persister.save("a.json", {"version": 1})
        path = await persister.save("a.json", {"version": 2})

        assert json.loads(path.read_text())["version"] == 2
        assert sorted(p.name for p in output_dir.iterdir()) == ["a.json"]

    @pytest.mark.asyncio
    async def test_suffix_when_overwrite_disabled(self, output_dir):
        persister = OutputPersister(output_dir, overwrite_existing=False)

        first = await persister.save("a.json", {"version": 1})
        second = await persister.save("a.json", {"version": 2})
        third = await persister.save("a.json", {"version": 3})

        assert [first.name, second.name, third.name] == ["a.json", "a_1.json", "a_2.json"]
        assert json.loads(first.read_text())["version"] == 1

    @pytest.mark.asyncio
    async def test_unserializable_data_leaves_no_file(self, output_dir):
        persister = OutputPersister(output_dir)

        with pytest.raises(PersistenceError, match="File save error"):
            await persister.save("a.json", {"bad": object()})

        assert list(output_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_os_error_becomes_persistence_error(self, output_dir):
        persister = OutputPersister(output_dir)

        with patch("services.output_service.write_json_atomic", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError) as exc_info:
                await persister.save("a.json", {})

        assert "disk full" in str(exc_info.value)
        assert exc_info.value.stream_fatal is False
