"""
Agglutination Agent
Responsibility: Merge several batch answers into one coherent document
                with a final LLM call.

Only reached when two or more answers exist; with fewer, merge() returns
the single answer (or "") unchanged and no call is made.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from ckms_rag.agents.base_agent import BaseAgent
from ckms_rag.errors import AnsweringFailed
from ckms_rag.models.enums import AgentName, PipelineStatus
from ckms_rag.models.state import QueryGraphState
from ckms_rag.services.llm_service import llm_text_call

logger = logging.getLogger(__name__)

_PROMPT_PATH = (
    Path(__file__).resolve().parent.parent / "prompts" / "agglutination_prompt.txt"
)


class AgglutinationAgent(BaseAgent):
    name = AgentName.AGGLUTINATION

    def _real_process(self, state: QueryGraphState) -> QueryGraphState:
        state.final_answer = self.merge(state.answers)
        state.status = PipelineStatus.COMPLETED
        return state

    def merge(self, answers: Sequence[str]) -> str:
        if len(answers) <= 1:
            return answers[0] if answers else ""

        text_pieces = "\n\n".join(answers)
        template = _PROMPT_PATH.read_text(encoding="utf-8")
        prompt = template.format(text_pieces=text_pieces)

        logger.info(
            f"[MERGE] Merging {len(answers)} answers ({len(text_pieces)} chars)"
        )
        try:
            return llm_text_call(
                prompt,
                model=self.settings.answer_model,
                settings=self.settings,
            )
        except Exception as exc:
            raise AnsweringFailed("Merge call failed", detail=str(exc)) from exc
