"""Text utilities for model output: previews, sanitising, and the JSON boundary parser."""
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Union

_CODE_FENCE = re.compile(r"^```json\s*|```\s*$")
_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")


@dataclass(frozen=True)
class Parsed:
    """Model output that decoded to a JSON object."""
    data: Dict[str, Any]


@dataclass(frozen=True)
class Malformed:
    """Model output that could not be used; ``reason`` says why."""
    reason: str


ParseResult = Union[Parsed, Malformed]


def strip_code_fence(text: str) -> str:
    """Remove a leading ```json and a trailing ``` wrapper."""
    return _CODE_FENCE.sub("", text.strip()).strip()


def parse_model_json(text: str) -> ParseResult:
    """
    Decode the final extraction pass into a JSON object.

    Never raises: anything that is not a JSON object comes back as Malformed.
    """
    if not isinstance(text, str):
        return Malformed(f"expected text, got {type(text).__name__}")

    cleaned = strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except (json.JSONDecodeError, RecursionError) as e:
        return Malformed(str(e))

    if not isinstance(data, dict):
        return Malformed(f"expected a JSON object, got {type(data).__name__}")
    return Parsed(data)


def preview(text: str, limit: int, suffix: str = "...") -> str:
    """First ``limit`` characters of ``text`` followed by ``suffix``."""
    return text[:limit] + suffix


def sanitize_component(value: str) -> str:
    """Replace every character outside [A-Za-z0-9] with an underscore."""
    return _NON_ALPHANUMERIC.sub("_", value)
