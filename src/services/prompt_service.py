"""
Prompt Service 🧭
=================

Builds the three prompts sent for each invoice. Every pass after the first
carries the earlier passes' output as context, plus a short excerpt of it
inside the instruction itself.

Passes:
-------
1. **Structural analysis**: free-text description of the layout.
2. **Region identification**: where the key fields sit on the page.
3. **Field extraction**: the final JSON object, nothing else.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from core.errors import PromptLoadError

logger = logging.getLogger(__name__)

PASS1_SUMMARY_FOR_PASS2 = 300
PASS1_SUMMARY_FOR_PASS3 = 200
PASS2_SUMMARY_FOR_PASS3 = 300

# The nine regions pass 2 asks the model to locate
INVOICE_REGIONS = (
    "Supplier Name",
    "Invoice Number",
    "Invoice Date",
    "Due Date",
    "Customer Information/Billing Address",
    "Line Items table (or section detailing products/services)",
    "Subtotal",
    "Tax amounts/details",
    "Grand Total",
)

PASS1_PROMPT = (
    "Analyze the structure of the following invoice. Identify key sections and their "
    "general locations (e.g., header, footer, main content area). This is Pass 1."
)


@dataclass(frozen=True)
class PassPrompt:
    """Ordered text parts of one model call and whether a JSON-only answer is expected."""
    label: str
    parts: List[str]
    require_json: bool = False


def build_pass1_prompt() -> PassPrompt:
    return PassPrompt(label="Pass 1: Structural Analysis", parts=[PASS1_PROMPT])


def build_pass2_prompt(pass1_text: str) -> PassPrompt:
    summary = pass1_text[:PASS1_SUMMARY_FOR_PASS2]
    regions = ", ".join(INVOICE_REGIONS[:-1]) + f", and {INVOICE_REGIONS[-1]}"
    instruction = (
        f'Based on the structural analysis from Pass 1 (summary: "{summary}"), identify and '
        'describe the locations (e.g., "top-left", "middle-right", "area below customer '
        'address", or textual descriptions of surrounding elements) of the following key '
        f"information areas if present: {regions}. This is Pass 2."
    )
    return PassPrompt(
        label="Pass 2: Region Identification",
        parts=[f"Context from Pass 1: {pass1_text}", instruction],
    )


def build_pass3_prompt(pass1_text: str, pass2_text: str) -> PassPrompt:
    pass1_summary = pass1_text[:PASS1_SUMMARY_FOR_PASS3]
    pass2_summary = pass2_text[:PASS2_SUMMARY_FOR_PASS3]
    instruction = (
        f'Using the invoice image, the structural analysis from Pass 1 (summary: "{pass1_summary}"), '
        f'and the key region identifications from Pass 2 (summary: "{pass2_summary}"), meticulously '
        "extract all fields as defined in the JSON schema. Ensure accuracy, especially for line "
        "items, amounts, and tax details. This is Pass 3, the final extraction pass. "
        "Respond with ONLY the JSON object."
    )
    return PassPrompt(
        label="Pass 3: JSON Extraction",
        parts=[
            f"Context from Pass 1: {pass1_text}",
            f"Context from Pass 2: {pass2_text}",
            instruction,
        ],
        require_json=True,
    )


async def load_system_prompt(path: Path) -> str:
    """
    Read the system prompt shared by all three passes.

    Raises:
        PromptLoadError: If the file cannot be read
    """
    try:
        return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    except OSError as e:
        logger.error(f"Error reading system prompt {path}: {e}")
        raise PromptLoadError("Could not read Gemini system prompt file.")
