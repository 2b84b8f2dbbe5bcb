"""
Gemini Service (Vision Language Model) 👁️‍🗨️
============================================

Sends an invoice plus a prompt to a vision-capable model and returns the
model's text, or ``None`` when the model answered without any text (empty
candidate list, blocked prompt, missing text part).

Providers:
----------
- **gemini**: Google ``generateContent`` REST endpoint (default).
- **openai**: any OpenAI-compatible chat-completions server (Mistral, Groq,
  a local vLLM), using the same data-URL image format.

Transport failures and a missing API key raise ``ModelCallError``; the
pipeline treats both the same way as an empty answer, as a failure of the
current document only.
"""

import logging
import os
from typing import Any, Dict, List, Optional, Protocol

import httpx

from core.config import VLMSettings
from core.errors import ModelCallError

logger = logging.getLogger(__name__)

# Appended to requests that must come back as JSON
JSON_ONLY_INSTRUCTION = (
    "\nEnsure your entire response is a single, valid JSON object based on the provided schema. "
    "Do not include any text outside of the JSON structure."
)

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)

API_KEY_ENV_VAR = "GOOGLE_GEMINI_API_KEY"

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta"

CHAT_COMPLETIONS_PATH = "/chat/completions"

# Base URLs used when VLM__API_URL is left empty
OPENAI_COMPATIBLE_API_URLS = {
    "openai": "https://api.openai.com/v1",
    "mistral": "https://api.mistral.ai/v1",
    "groq": "https://api.groq.com/openai/v1",
    "local": "http://localhost:8000/v1",
}


class ModelClient(Protocol):
    """Anything that can answer a prompt about an encoded document."""

    async def generate(
        self,
        system_prompt: str,
        mime_type: str,
        data: str,
        parts: List[str],
        require_json: bool = False,
    ) -> Optional[str]: ...


def extract_candidate_text(body: Dict[str, Any]) -> Optional[str]:
    """
    Pull the answer text out of a ``generateContent`` response body.

    Returns None (after logging the diagnostics Gemini provides) when there
    is no usable text.
    """
    candidates = body.get("candidates") or []
    if not candidates:
        logger.error("Gemini API returned no candidates or an empty response.")
        if body.get("promptFeedback"):
            logger.error(f"Prompt Feedback: {body['promptFeedback']}")
        return None

    candidate = candidates[0]
    parts = (candidate.get("content") or {}).get("parts") or []
    texts = [part["text"] for part in parts if isinstance(part.get("text"), str)]
    if not texts:
        logger.error(
            f"Gemini API response did not contain a text part "
            f"(finishReason={candidate.get('finishReason')}, "
            f"safetyRatings={candidate.get('safetyRatings')})"
        )
        return None
    return "".join(texts)


class GeminiClient:
    """Async client for the Gemini ``generateContent`` endpoint."""

    def __init__(self, settings: VLMSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    @property
    def api_key(self) -> str:
        return self.settings.api_key or os.getenv(API_KEY_ENV_VAR, "")

    @property
    def endpoint(self) -> str:
        base_url = (self.settings.api_url or GEMINI_API_URL).rstrip("/")
        return f"{base_url}/models/{self.settings.model}:generateContent"

    def build_payload(
        self,
        system_prompt: str,
        mime_type: str,
        data: str,
        parts: List[str],
        require_json: bool = False,
    ) -> Dict[str, Any]:
        content_parts: List[Dict[str, Any]] = [
            {"text": system_prompt},
            {"inline_data": {"mime_type": mime_type, "data": data}},
        ]
        content_parts.extend({"text": part} for part in parts)
        if require_json:
            content_parts.append({"text": JSON_ONLY_INSTRUCTION})

        return {
            "contents": [{"role": "user", "parts": content_parts}],
            "generationConfig": {
                "temperature": self.settings.temperature,
                "topK": self.settings.top_k,
                "topP": self.settings.top_p,
                "maxOutputTokens": self.settings.max_output_tokens,
            },
            "safetySettings": [
                {"category": category, "threshold": self.settings.safety_threshold}
                for category in HARM_CATEGORIES
            ],
        }

    async def generate(
        self,
        system_prompt: str,
        mime_type: str,
        data: str,
        parts: List[str],
        require_json: bool = False,
    ) -> Optional[str]:
        api_key = self.api_key
        if not api_key:
            logger.error(f"{API_KEY_ENV_VAR} / VLM__API_KEY is not set.")
            raise ModelCallError("Missing Google Gemini API Key.")

        payload = self.build_payload(system_prompt, mime_type, data, parts, require_json)
        logger.info(f"Calling Gemini API for model: {self.settings.model}")

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.endpoint, json=payload, headers={"x-goog-api-key": api_key}
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            raise ModelCallError(
                f"Gemini API call failed: HTTP {e.response.status_code}: {e.response.text[:200]}"
            )
        except httpx.TimeoutException:
            raise ModelCallError(f"Gemini API call failed: timed out after {self.settings.timeout}s")
        except httpx.HTTPError as e:
            raise ModelCallError(f"Gemini API call failed: {e}")
        except ValueError as e:
            raise ModelCallError(f"Gemini API call failed: invalid response body ({e})")

        return extract_candidate_text(body)


class OpenAICompatibleClient:
    """
    Same contract, spoken to an OpenAI-style ``/chat/completions`` endpoint.

    ``api_url`` may be a base URL (``https://api.mistral.ai/v1``) or the full
    endpoint; the chat-completions path is appended only when missing.
    """

    def __init__(self, settings: VLMSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    @property
    def endpoint(self) -> str:
        url = self.settings.api_url or OPENAI_COMPATIBLE_API_URLS.get(
            self.settings.provider.lower(), OPENAI_COMPATIBLE_API_URLS["openai"]
        )
        url = url.rstrip("/")
        if url.endswith(CHAT_COMPLETIONS_PATH):
            return url
        return url + CHAT_COMPLETIONS_PATH

    def build_payload(
        self,
        system_prompt: str,
        mime_type: str,
        data: str,
        parts: List[str],
        require_json: bool = False,
    ) -> Dict[str, Any]:
        texts = list(parts)
        if require_json:
            texts.append(JSON_ONLY_INSTRUCTION)
        user_content: List[Dict[str, Any]] = [{"type": "text", "text": text} for text in texts]
        user_content.append(
            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{data}"}}
        )
        return {
            "model": self.settings.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_output_tokens,
        }

    async def generate(
        self,
        system_prompt: str,
        mime_type: str,
        data: str,
        parts: List[str],
        require_json: bool = False,
    ) -> Optional[str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"

        payload = self.build_payload(system_prompt, mime_type, data, parts, require_json)
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.endpoint, json=payload, headers=headers)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            raise ModelCallError(
                f"VLM API call failed: HTTP {e.response.status_code}: {e.response.text[:200]}"
            )
        except httpx.HTTPError as e:
            raise ModelCallError(f"VLM API call failed: {e}")
        except ValueError as e:
            raise ModelCallError(f"VLM API call failed: invalid response body ({e})")

        try:
            return body["choices"][0]["message"]["content"] or None
        except (KeyError, IndexError, TypeError):
            logger.error(f"VLM API response had no message content: {str(body)[:200]}")
            return None


def get_model_client(settings: VLMSettings) -> ModelClient:
    """Build the client for the configured provider."""
    provider = settings.provider.lower()
    if provider == "gemini":
        return GeminiClient(settings)
    if provider in ("openai", "mistral", "groq", "local"):
        return OpenAICompatibleClient(settings)
    raise ValueError(f"Unknown VLM provider: {settings.provider}. Supported: gemini, openai")
