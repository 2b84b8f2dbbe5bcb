"""
Centralized configuration using Pydantic Settings.

Organized into nested models for better structure and type safety.
"""
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class PathSettings(BaseModel):
    """Filesystem locations. Relative paths resolve against the working directory."""
    input_dir: str = "input-files"
    output_dir: str = "output-data"
    schema_path: str = "config/invoice_output_schema.json"
    system_prompt_path: str = "config/gemini_system_prompt.txt"

    @property
    def input_path(self) -> Path:
        return Path(self.input_dir).resolve()

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir).resolve()

    @property
    def schema_file(self) -> Path:
        return Path(self.schema_path).resolve()

    @property
    def system_prompt_file(self) -> Path:
        return Path(self.system_prompt_path).resolve()


class VLMSettings(BaseModel):
    provider: str = "gemini"  # "gemini" or "openai" (OpenAI-compatible: mistral, groq, local vLLM)
    model: str = "gemini-1.5-flash-latest"
    api_key: str = ""
    # Base URL or full endpoint; empty means the provider default
    api_url: str = ""
    timeout: int = 120
    temperature: float = 0.2
    top_k: int = 1
    top_p: float = 1.0
    max_output_tokens: int = 8192
    safety_threshold: str = "BLOCK_MEDIUM_AND_ABOVE"


class OutputSettings(BaseModel):
    # False appends _1, _2, ... instead of replacing a same-named file
    overwrite_existing: bool = True
    indent: int = 2


class FileSettings(BaseModel):
    allowed_types: str = "pdf,jpeg,jpg"

    @property
    def allowed_types_list(self) -> List[str]:
        return [ext.strip().lower() for ext in self.allowed_types.split(",") if ext.strip()]


class Settings(BaseSettings):
    """
    Main application settings.
    To override nested settings via env vars, use double underscores:
    e.g. VLM__API_KEY=... or PATHS__INPUT_DIR=...
    """
    app_name: str = "InvoiceStream"
    app_version: str = "0.1.0"

    # Nested configurations
    paths: PathSettings = PathSettings()
    vlm: VLMSettings = VLMSettings()
    output: OutputSettings = OutputSettings()
    file: FileSettings = FileSettings()

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_file: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
