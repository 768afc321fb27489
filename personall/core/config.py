import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

DEFAULT_GEMINI_MODELS = "gemini-2.5-flash,gemini-1.5-flash,gemini-2.5-flash-lite"


@dataclass(frozen=True)
class Settings:
    gemini_api_key: Optional[str]
    openai_api_key: Optional[str]
    gemini_models: tuple
    openai_model: str
    generation_timeout: float
    max_output_tokens: int
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    log_level: str
    cors_origins: tuple


def _split(value: str) -> tuple:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@lru_cache
def get_settings() -> Settings:
    """Read configuration from the environment (and a local .env file, if any)."""
    load_dotenv()

    return Settings(
        gemini_api_key=os.environ.get("GEMINI_API_KEY") or None,
        openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
        gemini_models=_split(os.environ.get("GEMINI_MODELS", DEFAULT_GEMINI_MODELS)),
        openai_model=os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
        generation_timeout=float(os.environ.get("GENERATION_TIMEOUT_SECONDS", "60")),
        max_output_tokens=int(os.environ.get("MAX_OUTPUT_TOKENS", "8192")),
        supabase_url=os.environ.get("SUPABASE_URL") or None,
        supabase_key=os.environ.get("SUPABASE_SERVICE_KEY") or None,
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        cors_origins=_split(os.environ.get("CORS_ORIGINS", "*")),
    )
