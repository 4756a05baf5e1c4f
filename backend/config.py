# config.py
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

DEFAULT_GROQ_MODEL = "llama-3.1-8b-instant"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
DEFAULT_CORS_ORIGINS = ["*"]


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _parse_cors_origins(raw: str) -> List[str]:
    origins = [value.strip() for value in raw.split(",") if value.strip()]
    return origins or list(DEFAULT_CORS_ORIGINS)


@dataclass(frozen=True)
class Settings:
    groq_api_key: Optional[str] = None
    groq_model: str = DEFAULT_GROQ_MODEL
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    pexels_api_key: Optional[str] = None
    search_timeout: float = 10.0
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @property
    def has_llm(self) -> bool:
        return bool(self.groq_api_key or self.gemini_api_key)


def load_settings() -> Settings:
    """Read .env (if any) and the process environment into a Settings value."""
    load_dotenv()

    try:
        timeout = float(_env("SEARCH_TIMEOUT", "10"))
    except ValueError:
        timeout = 10.0

    return Settings(
        groq_api_key=_env("GROQ_API_KEY") or None,
        groq_model=_env("GROQ_MODEL", DEFAULT_GROQ_MODEL),
        # GOOGLE_API_KEY is what the Gemini docs tell people to set
        gemini_api_key=(_env("GEMINI_API_KEY") or _env("GOOGLE_API_KEY")) or None,
        gemini_model=_env("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        pexels_api_key=_env("PEXELS_API_KEY") or None,
        search_timeout=timeout,
        cors_origins=_parse_cors_origins(_env("CORS_ORIGINS")),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
