"""
Schema Service Unit Tests
=========================

Tests for invoice schema validation and the shared validator provider.

Test Classes:
-------------
    TestInvoiceSchemaValidator : Defaults, coercion and error reporting.
    TestLoadSchemaValidator : Schema file problems.
    TestSchemaValidatorProvider : One compilation per process.

Running Tests:
--------------
    pytest tests/unit/test_schema_service.py -v
"""
import asyncio
import json

import pytest

from conftest import SCHEMA_PATH
from core.errors import SchemaLoadError
from models.enums import ValidationStatusEnum
from services.schema_service import (
    InvoiceSchemaValidator,
    SchemaValidatorProvider,
    load_schema_validator,
    summarize_errors,
)


class TestInvoiceSchemaValidator:
    """Unit tests for InvoiceSchemaValidator.validate."""

    def test_valid_invoice_passes(self, validator, valid_invoice):
        outcome = validator.validate(valid_invoice)

        assert outcome.passed
        assert outcome.to_details() == {"status": "passed"}

    def test_missing_required_fields_fail(self, validator):
        outcome = validator.validate({"supplier_name": "ACME"})

        assert outcome.status is ValidationStatusEnum.FAILED
        messages = [e["message"] for e in outcome.errors_list]
        assert "'invoice_number' is a required property" in messages
        assert "'grand_total' is a required property" in messages
        details = outcome.to_details()
        assert details["status"] == "failed"
        assert details["errors_summary"] == outcome.errors_summary
        assert details["errors_list"] == outcome.errors_list

    def test_defaults_are_filled_in(self, validator, valid_invoice):
        """``line_items`` declares a default, so its absence is not an error."""
        del valid_invoice["line_items"]

        outcome = validator.validate(valid_invoice)

        assert outcome.passed
        assert valid_invoice["line_items"] == []

    def test_numeric_strings_are_coerced(self, validator, valid_invoice):
        valid_invoice["grand_total"] = "1234.50"
        valid_invoice["line_items"][0]["quantity"] = "2"

        outcome = validator.validate(valid_invoice)

        assert outcome.passed
        assert valid_invoice["grand_total"] == 1234.5
        assert valid_invoice["line_items"][0]["quantity"] == 2

    def test_numbers_are_coerced_to_strings(self, validator, valid_invoice):
        valid_invoice["invoice_number"] = 10045

        outcome = validator.validate(valid_invoice)

        assert outcome.passed
        assert valid_invoice["invoice_number"] == "10045"

    def test_uncoercible_value_is_reported_with_its_path(self, validator, valid_invoice):
        valid_invoice["grand_total"] = "ten euros"

        outcome = validator.validate(valid_invoice)

        assert not outcome.passed
        assert outcome.errors_list[0]["instancePath"] == "/grand_total"
        assert outcome.errors_list[0]["keyword"] == "type"
        assert outcome.errors_summary.startswith("data/grand_total ")

    def test_line_item_without_description(self, validator, valid_invoice):
        valid_invoice["line_items"].append({"quantity": 1})

        outcome = validator.validate(valid_invoice)

        assert not outcome.passed
        assert [e["instancePath"] for e in outcome.errors_list] == ["/line_items/1"]

    def test_all_errors_are_collected(self, validator):
        outcome = validator.validate({"grand_total": "n/a", "line_items": "none"})

        keywords = sorted(e["keyword"] for e in outcome.errors_list)
        assert keywords.count("required") == 3
        assert keywords.count("type") == 2

    def test_defaults_and_coercion_inside_all_of(self):
        schema = {
            "type": "object",
            "allOf": [
                {"properties": {"currency": {"type": "string", "default": "EUR"}}},
                {"$ref": "#/definitions/totals"},
            ],
            "definitions": {
                "totals": {
                    "properties": {"grand_total": {"type": "number"}},
                    "required": ["grand_total"],
                },
            },
        }
        data = {"grand_total": "12.50"}

        outcome = InvoiceSchemaValidator(schema).validate(data)

        assert outcome.passed
        assert data == {"grand_total": 12.5, "currency": "EUR"}

    def test_coercion_picks_an_any_of_branch(self):
        schema = {
            "type": "object",
            "properties": {"tax_amount": {"anyOf": [{"type": "number"}, {"type": "null"}]}},
        }
        data = {"tax_amount": "3"}

        outcome = InvoiceSchemaValidator(schema).validate(data)

        assert outcome.passed
        assert data["tax_amount"] == 3

    def test_coercion_through_a_referenced_property(self):
        schema = {
            "type": "object",
            "properties": {"total": {"$ref": "#/definitions/amount"}},
            "definitions": {"amount": {"type": "number"}},
        }
        data = {"total": "7.5"}

        assert InvoiceSchemaValidator(schema).validate(data).passed
        assert data["total"] == 7.5

    def test_schema_copy_is_detached(self, validator):
        schema = validator.schema
        schema["required"].append("anything")

        assert "anything" not in validator.schema["required"]


class TestSummarizeErrors:
    """Unit tests for summarize_errors."""

    def test_no_errors(self):
        assert summarize_errors([]) == "No errors"

    def test_joins_path_and_message(self):
        errors = [
            {"instancePath": "", "message": "'x' is a required property"},
            {"instancePath": "/grand_total", "message": "'a' is not of type 'number'"},
        ]

        assert summarize_errors(errors) == (
            "data 'x' is a required property, data/grand_total 'a' is not of type 'number'"
        )


class TestLoadSchemaValidator:
    """Unit tests for load_schema_validator."""

    def test_shipped_schema_compiles(self):
        assert isinstance(load_schema_validator(SCHEMA_PATH), InvoiceSchemaValidator)

    def test_missing_file(self, tmp_path):
        with pytest.raises(SchemaLoadError):
            load_schema_validator(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text("{not json")

        with pytest.raises(SchemaLoadError, match="not valid JSON"):
            load_schema_validator(path)

    def test_invalid_schema(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({"type": "not-a-type"}))

        with pytest.raises(SchemaLoadError, match="is invalid"):
            load_schema_validator(path)


class TestSchemaValidatorProvider:
    """Unit tests for SchemaValidatorProvider."""

    @pytest.mark.asyncio
    async def test_compiles_once(self):
        provider = SchemaValidatorProvider(SCHEMA_PATH)
        assert not provider.is_ready

        first = await provider.get()
        second = await provider.get()

        assert first is second
        assert provider.is_ready
        assert provider.compile_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_share_one_compilation(self):
        provider = SchemaValidatorProvider(SCHEMA_PATH)

        results = await asyncio.gather(*(provider.get() for _ in range(5)))

        assert all(result is results[0] for result in results)
        assert provider.compile_count == 1

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, tmp_path):
        path = tmp_path / "schema.json"
        provider = SchemaValidatorProvider(path)

        with pytest.raises(SchemaLoadError):
            await provider.get()

        path.write_text(SCHEMA_PATH.read_text())
        assert isinstance(await provider.get(), InvoiceSchemaValidator)
        assert provider.compile_count == 1
