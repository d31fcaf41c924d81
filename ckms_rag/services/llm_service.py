"""
LLM Service — centralized LangChain chat-model client.

All agents use this module to make LLM calls. Provides:
  - get_llm()         → returns a configured ChatModel (cached per model)
  - llm_json_call()   → structured output (parsed into Pydantic model)
  - llm_text_call()   → raw text response

Transport failures are retried under the shared backoff policy
(utils.retry); the last exception propagates to the caller.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence, Type, TypeVar, Union

from langchain_core.messages import BaseMessage
from pydantic import BaseModel

from ckms_rag.config import Settings, get_settings
from ckms_rag.utils.retry import call_with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

PromptInput = Union[str, Sequence[BaseMessage]]

_llm_instances: dict[tuple[str, str], Any] = {}


def get_llm(model: str | None = None, settings: Settings | None = None):
    """
    Return a configured chat model for the given model name.
    Uses ChatOpenAI or ChatGroq depending on settings.llm_provider.
    """
    settings = settings or get_settings()
    model = model or settings.answer_model
    cache_key = (settings.llm_provider, model)
    if cache_key in _llm_instances:
        return _llm_instances[cache_key]

    if settings.llm_provider == "groq":
        if not settings.groq_api_key:
            raise ValueError("GROQ_API_KEY is not set in environment / .env file")

        from langchain_groq import ChatGroq

        llm = ChatGroq(
            api_key=settings.groq_api_key,
            model=model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )
    else:
        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is not set in environment / .env file")

        from langchain_openai import ChatOpenAI

        llm = ChatOpenAI(
            api_key=settings.openai_api_key,
            model=model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )

    _llm_instances[cache_key] = llm
    logger.info(f"Initialized {settings.llm_provider} LLM: {model}")
    return llm


def _prompt_length(prompt: PromptInput) -> int:
    if isinstance(prompt, str):
        return len(prompt)
    return sum(len(str(m.content)) for m in prompt)


def _prompt_preview(prompt: PromptInput, limit: int = 500) -> str:
    text = prompt if isinstance(prompt, str) else "\n".join(
        f"[{m.type}] {m.content}" for m in prompt
    )
    return f"{text[:limit]}{'…' if len(text) > limit else ''}"


def llm_json_call(
    prompt: PromptInput,
    output_model: Type[T],
    *,
    model: str | None = None,
    settings: Settings | None = None,
) -> T:
    """
    Call the LLM and parse the response into a Pydantic model.
    Uses LangChain's with_structured_output() for reliable JSON parsing.
    """
    settings = settings or get_settings()

    logger.debug(
        f"[LLM-JSON] Prompt length: {_prompt_length(prompt)} chars | "
        f"Target model: {output_model.__name__}"
    )
    logger.debug(f"[LLM-JSON] Prompt preview:\n{_prompt_preview(prompt)}")

    llm = get_llm(model, settings)
    structured_llm = llm.with_structured_output(output_model)

    t0 = time.perf_counter()
    result = call_with_retry(
        structured_llm.invoke,
        prompt,
        settings=settings,
        description=f"structured call ({output_model.__name__})",
    )
    elapsed = time.perf_counter() - t0

    logger.info(f"[LLM-JSON] Response received in {elapsed:.2f}s | Model: {output_model.__name__}")
    logger.debug(f"[LLM-JSON] Parsed result: {result}")
    return result


def llm_text_call(
    prompt: PromptInput,
    *,
    model: str | None = None,
    settings: Settings | None = None,
    max_retries: int | None = None,
) -> str:
    """
    Call the LLM and return the raw text response.
    Retries up to *max_retries* times on empty responses.
    """
    settings = settings or get_settings()
    if max_retries is None:
        max_retries = settings.llm_empty_response_retries

    logger.debug(f"[LLM-TEXT] Prompt length: {_prompt_length(prompt)} chars")
    logger.debug(f"[LLM-TEXT] Prompt preview:\n{_prompt_preview(prompt)}")

    llm = get_llm(model, settings)
    attempts = max_retries + 1
    content = ""

    for attempt in range(1, attempts + 1):
        t0 = time.perf_counter()
        response = call_with_retry(
            llm.invoke, prompt, settings=settings, description="text call"
        )
        elapsed = time.perf_counter() - t0
        content = response.content or ""

        # Log response metadata (finish_reason, token usage)
        meta = getattr(response, "response_metadata", {}) or {}
        finish_reason = meta.get("finish_reason", "unknown")
        usage = meta.get("token_usage") or meta.get("usage", {})
        logger.info(
            f"[LLM-TEXT] Response received in {elapsed:.2f}s | "
            f"Response length: {len(content)} chars | "
            f"finish_reason={finish_reason} | "
            f"tokens={usage}"
        )
        logger.debug(f"[LLM-TEXT] Full response:\n{content}")

        if content.strip():
            return content

        logger.warning(
            f"[LLM-TEXT] Empty response on attempt {attempt}/{attempts} "
            f"(finish_reason={finish_reason}). "
            f"{'Retrying…' if attempt < attempts else 'No retries left.'}"
        )

    return content
