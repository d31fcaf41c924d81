"""
Application configuration using Pydantic Settings.
All environment-specific values are centralized here.

Components receive a Settings instance at construction; get_settings()
is only the default when a caller does not pass one.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── App ──────────────────────────────────────────────
    app_name: str = "CKMS Requirements Assistant"

    # ── LLM ──────────────────────────────────────────────
    llm_provider: Literal["openai", "groq"] = "openai"
    openai_api_key: str = ""
    groq_api_key: str = ""
    planner_model: str = "gpt-4o-mini"
    answer_model: str = "gpt-4o-2024-08-06"
    llm_temperature: float = 0.0
    llm_max_tokens: Optional[int] = None  # None → provider default (no cap)
    llm_empty_response_retries: int = 1

    # ── Source document ──────────────────────────────────
    document_path: str = "./data/nist1.pdf"

    # ── Vector Store ─────────────────────────────────────
    vector_store_dir: str = "./vectorstore"
    collection_name: str = "ckms_requirements"
    embedding_model: str = "all-MiniLM-L6-v2"
    upsert_batch_size: int = 100

    # ── Query pipeline ───────────────────────────────────
    planner_output_mode: Literal["structured", "text"] = "structured"
    retrieval_top_k: int = 150
    answer_batch_size: int = 30

    # ── Retry policy for external calls ──────────────────
    max_attempts: int = 3
    retry_max_wait_seconds: float = 20.0

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
