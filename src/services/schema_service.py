"""
Schema Service ✅
=================

Validates extracted invoices against the JSON Schema shipped in
``config/invoice_output_schema.json``.

Validation is forgiving in the same ways a model's output usually needs:
- **Defaults**: missing properties that declare a ``default`` are filled in.
- **Type coercion**: ``"12.50"`` becomes ``12.5`` where a number is expected,
  ``7`` becomes ``"7"`` where a string is expected, and so on.
- **All errors**: every violation is collected, not just the first.

Defaults and coercion run as a first pass through a ``jsonschema`` validator
extended with normalizing ``properties`` and ``items`` keywords, so ``$ref``
and the ``allOf``/``anyOf``/``oneOf`` combinators are followed by the library.
A plain validator then reports what is still wrong.

A failed validation is a normal outcome (``ValidationOutcome``), never an
exception. Only an unreadable or invalid schema file raises.

The compiled validator is built once per process by ``SchemaValidatorProvider``
and handed to each request as an immutable handle.
"""

import asyncio
import copy
import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator, SchemaError, ValidationError
from jsonschema.validators import extend, validator_for

from core.errors import SchemaLoadError
from models.enums import ValidationStatusEnum
from schemas.invoice import ValidationOutcome

logger = logging.getLogger(__name__)

_MISSING = object()


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _coerce_scalar(value: Any, json_type: str) -> Any:
    """Convert ``value`` to ``json_type`` if a lossless conversion exists, else _MISSING."""
    if isinstance(value, (dict, list)):
        return _MISSING

    if json_type == "string":
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return _format_number(value)

    elif json_type in ("number", "integer"):
        if value is None:
            return 0
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, str) and value.strip():
            try:
                number = float(value.strip())
            except ValueError:
                return _MISSING
            if not math.isfinite(number):
                return _MISSING
            if number.is_integer():
                return int(number)
            return number if json_type == "number" else _MISSING

    elif json_type == "boolean":
        if value is None:
            return False
        if value in ("true", "false"):
            return value == "true"
        if isinstance(value, (int, float)) and value in (0, 1):
            return bool(value)

    elif json_type == "null":
        if value == "" or (not isinstance(value, str) and value in (0, False)):
            return None

    return _MISSING


def _type_candidates(errors: List[ValidationError], key: Any) -> List[str]:
    """Types the value at ``key`` was expected to have, read from its own type errors."""
    candidates: List[str] = []
    for error in errors:
        if list(error.relative_path) != [key]:
            continue
        if error.validator == "type":
            found = [error.validator_value]
        elif error.validator in ("anyOf", "oneOf"):
            found = [
                sub.validator_value for sub in error.context
                if sub.validator == "type" and not sub.relative_path
            ]
        else:
            continue
        for types in found:
            candidates.extend([types] if isinstance(types, str) else types)
    return candidates


def _coerce_in_place(validator, container: Any, key: Any, subschema: Any) -> None:
    # Descending also normalizes everything below container[key]
    errors = list(validator.descend(container[key], subschema, path=key))
    for json_type in _type_candidates(errors, key):
        coerced = _coerce_scalar(container[key], json_type)
        if coerced is not _MISSING:
            container[key] = coerced
            return


def _normalize_properties(validator, properties, instance, schema):
    if not validator.is_type(instance, "object"):
        return
    for name, subschema in properties.items():
        if name not in instance and isinstance(subschema, dict) and "default" in subschema:
            instance[name] = copy.deepcopy(subschema["default"])
        if name in instance:
            _coerce_in_place(validator, instance, name, subschema)


def _normalize_items(validator, items, instance, schema):
    if not validator.is_type(instance, "array"):
        return
    if isinstance(items, list):
        pairs = zip(range(len(instance)), items)
    else:
        pairs = ((index, items) for index in range(len(instance)))
    for index, subschema in pairs:
        _coerce_in_place(validator, instance, index, subschema)


def normalizing_validator(validator_cls):
    """
    Extend ``validator_cls`` so that validating fills defaults and coerces types.

    Only ``properties`` and ``items`` are replaced; ``$ref``, ``allOf``,
    ``anyOf`` and ``oneOf`` are left to the library, which descends through
    them into the hooks. The normalizer's own errors are meaningless and
    are discarded by the caller.
    """
    return extend(validator_cls, {
        "properties": _normalize_properties,
        "items": _normalize_items,
    })


def _error_entry(error: ValidationError) -> Dict[str, Any]:
    instance_path = "".join(f"/{part}" for part in error.absolute_path)
    return {
        "instancePath": instance_path,
        "schemaPath": "#" + "".join(f"/{part}" for part in error.absolute_schema_path),
        "keyword": error.validator,
        "message": error.message,
        "params": {error.validator: error.validator_value},
    }


def summarize_errors(errors: List[Dict[str, Any]]) -> str:
    """One-line, human-readable list of violations."""
    if not errors:
        return "No errors"
    return ", ".join(f"data{e['instancePath']} {e['message']}" for e in errors)


class InvoiceSchemaValidator:
    """Compiled schema; read-only once constructed."""

    def __init__(self, schema: Dict[str, Any]):
        validator_cls = validator_for(schema, default=Draft7Validator)
        validator_cls.check_schema(schema)
        self._schema = schema
        self._validator = validator_cls(schema)
        self._normalizer = normalizing_validator(validator_cls)(schema)

    @property
    def schema(self) -> Dict[str, Any]:
        return copy.deepcopy(self._schema)

    def validate(self, data: Dict[str, Any]) -> ValidationOutcome:
        """
        Normalize ``data`` in place and check it.

        Args:
            data: Parsed invoice object (mutated: defaults and coerced values)

        Returns:
            ValidationOutcome with every violation found
        """
        for _ in self._normalizer.iter_errors(data):
            pass
        errors = sorted(
            self._validator.iter_errors(data),
            key=lambda e: (list(map(str, e.absolute_path)), e.validator),
        )
        if not errors:
            return ValidationOutcome(status=ValidationStatusEnum.PASSED)

        errors_list = [_error_entry(e) for e in errors]
        return ValidationOutcome(
            status=ValidationStatusEnum.FAILED,
            errors_summary=summarize_errors(errors_list),
            errors_list=errors_list,
        )


def load_schema_validator(schema_path: Path) -> InvoiceSchemaValidator:
    """
    Read and compile the schema file.

    Raises:
        SchemaLoadError: If the file is missing, not JSON, or not a valid schema
    """
    try:
        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)
    except OSError as e:
        raise SchemaLoadError(f"Could not read invoice schema {schema_path}: {e}")
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Invoice schema {schema_path} is not valid JSON: {e}")

    if not isinstance(schema, dict):
        raise SchemaLoadError(f"Invoice schema {schema_path} must be a JSON object")
    try:
        return InvoiceSchemaValidator(schema)
    except SchemaError as e:
        raise SchemaLoadError(f"Invoice schema {schema_path} is invalid: {e.message}")


class SchemaValidatorProvider:
    """
    Lazily compiles the schema once and hands out the same validator afterwards.

    Concurrent first callers wait on a lock; the second check inside it keeps
    compilation to a single run.
    """

    def __init__(self, schema_path: Path):
        self.schema_path = Path(schema_path)
        self._validator: Optional[InvoiceSchemaValidator] = None
        self._lock: Optional[asyncio.Lock] = None
        self.compile_count = 0

    @property
    def is_ready(self) -> bool:
        return self._validator is not None

    async def get(self) -> InvoiceSchemaValidator:
        if self._validator is not None:
            return self._validator
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._validator is None:
                validator = await asyncio.to_thread(load_schema_validator, self.schema_path)
                self.compile_count += 1
                self._validator = validator
                logger.info(f"✅ Invoice schema compiled from {self.schema_path}")
        return self._validator
