"""
Answering Agent
Responsibility: Split the retrieved records into fixed-size batches and ask
                the LLM to answer the user's question over each batch.

One LLM call per batch, in batch order. A batch that still fails after
the retry policy aborts the whole run.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence, TypeVar

from langchain_core.messages import HumanMessage, SystemMessage

from ckms_rag.agents.base_agent import BaseAgent
from ckms_rag.errors import AnsweringFailed
from ckms_rag.models.enums import AgentName, PipelineStatus
from ckms_rag.models.schemas import RequirementRecord
from ckms_rag.models.state import QueryGraphState
from ckms_rag.services.llm_service import llm_text_call

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PROMPT_PATH = (
    Path(__file__).resolve().parent.parent / "prompts" / "answer_prompt.txt"
)


def split_into_batches(items: Sequence[T], batch_size: int) -> list[list[T]]:
    """Contiguous batches of at most batch_size, input order preserved."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [
        list(items[start : start + batch_size])
        for start in range(0, len(items), batch_size)
    ]


def format_context(records: Sequence[RequirementRecord]) -> str:
    """Stuff the records' text into one context block."""
    return "\n\n".join(r.page_content for r in records)


class AnsweringAgent(BaseAgent):
    name = AgentName.ANSWERING

    def _real_process(self, state: QueryGraphState) -> QueryGraphState:
        logger.info(f"[ANSWER] Number of documents: {len(state.records)}")
        state.answers = self.answer(state.records, state.question)
        state.status = PipelineStatus.ANSWERED
        return state

    def answer(self, records: Sequence[RequirementRecord], question: str) -> list[str]:
        """Return one answer per batch of records, in batch order."""
        batches = split_into_batches(records, self.settings.answer_batch_size)
        if not batches:
            logger.warning("[ANSWER] No records retrieved — no answers produced")
            return []

        template = _PROMPT_PATH.read_text(encoding="utf-8")
        answers: list[str] = []
        for i, batch in enumerate(batches, start=1):
            logger.info(
                f"[ANSWER] Batch {i}/{len(batches)}: {len(batch)} records "
                f"({', '.join(r.identity_key for r in batch[:5])}"
                f"{', …' if len(batch) > 5 else ''})"
            )
            messages = [
                SystemMessage(content=template.format(context=format_context(batch))),
                HumanMessage(content=question),
            ]
            try:
                response = llm_text_call(
                    messages,
                    model=self.settings.answer_model,
                    settings=self.settings,
                )
            except Exception as exc:
                raise AnsweringFailed(
                    f"Answer call failed for batch {i}/{len(batches)}", detail=str(exc)
                ) from exc
            answers.append(response)

        return answers
