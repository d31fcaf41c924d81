"""
Query Planning Agent
Responsibility: Expand one user question into ordered sub-queries, each
                carrying the chapter / requirement-type filter the
                retriever applies.

Output modes (settings.planner_output_mode):
  structured — the LLM fills SubQueryPlan directly (filters as fields)
  text       — the LLM writes one query per line; filters are re-parsed
               from the "chapter N" / "type XX" wording of each line
"""

from __future__ import annotations

import logging
from pathlib import Path

from ckms_rag.agents.base_agent import BaseAgent
from ckms_rag.errors import QueryPlanningFailed
from ckms_rag.models.enums import AgentName, PipelineStatus
from ckms_rag.models.schemas import SubQuery, SubQueryPlan
from ckms_rag.models.state import QueryGraphState
from ckms_rag.services.llm_service import llm_json_call, llm_text_call

logger = logging.getLogger(__name__)

_PROMPT_PATH = (
    Path(__file__).resolve().parent.parent / "prompts" / "multi_query_prompt.txt"
)

_OUTPUT_INSTRUCTIONS = {
    "structured": (
        "Return the queries in order. For each query also fill in the chapter "
        "number and the requirement type it targets."
    ),
    "text": "Provide the resulting query or queries separated by newlines, nothing else.",
}


def parse_sub_queries(raw_response: str) -> list[SubQuery]:
    """
    Split a newline-separated planner response into sub-queries.

    Every line becomes a sub-query, blank ones included: a blank line has
    no chapter, so it searches the records of unmapped pages.
    """
    return [SubQuery.from_text(line) for line in raw_response.split("\n")]


class QueryPlanningAgent(BaseAgent):
    name = AgentName.QUERY_PLANNING

    def _real_process(self, state: QueryGraphState) -> QueryGraphState:
        question = state.question.strip()
        if not question:
            raise ValueError("No question provided")

        state.sub_queries = self.plan(question)
        state.status = PipelineStatus.PLANNED
        return state

    def plan(self, question: str) -> list[SubQuery]:
        """Return the ordered sub-queries for question."""
        mode = self.settings.planner_output_mode
        template = _PROMPT_PATH.read_text(encoding="utf-8")
        prompt = template.format(
            question=question,
            output_instructions=_OUTPUT_INSTRUCTIONS[mode],
        )

        logger.info(f"[PLAN] Generating sub-queries ({mode} mode) for: {question!r}")
        try:
            if mode == "structured":
                plan = llm_json_call(
                    prompt,
                    SubQueryPlan,
                    model=self.settings.planner_model,
                    settings=self.settings,
                )
                sub_queries = list(plan.queries)
            else:
                raw_response = llm_text_call(
                    prompt,
                    model=self.settings.planner_model,
                    settings=self.settings,
                )
                sub_queries = parse_sub_queries(raw_response)
        except Exception as exc:
            raise QueryPlanningFailed("Sub-query generation failed", detail=str(exc)) from exc

        logger.info(f"[PLAN] {len(sub_queries)} sub-queries")
        for sq in sub_queries:
            logger.info(
                f"[PLAN]   chapter={sq.chapter_filter} "
                f"type={sq.type_filter} | {sq.text}"
            )
            if sq.chapter_filter is None:
                # Filters on chapter == None; only unmapped pages can match
                logger.warning(f"[PLAN]   No chapter filter in sub-query: {sq.text!r}")
            if sq.has_unknown_type:
                logger.warning(
                    f"[PLAN]   Unknown requirement type {sq.type_filter!r} in sub-query: {sq.text!r}"
                )
        return sub_queries
