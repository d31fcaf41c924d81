"""
LangGraph state machines for the two one-shot runs.

  ingestion: ingest → END
  query:     plan → retrieve → answer → (agglutinate | finalize) → END

All agent nodes delegate to agent.process(state), which returns the
updated state dict.  Collaborators (settings, index) are passed in at
build time so one run never reads another run's configuration.
"""

from __future__ import annotations

import logging
from typing import Any

from langgraph.graph import END, StateGraph

from ckms_rag.agents import (
    AgglutinationAgent,
    AnsweringAgent,
    IngestionAgent,
    QueryPlanningAgent,
    RetrievalAgent,
)
from ckms_rag.config import Settings, get_settings
from ckms_rag.index import IndexService
from ckms_rag.models.enums import AgentName, PipelineStatus
from ckms_rag.models.state import QueryGraphState
from ckms_rag.orchestration.transitions import route_after_answering
from ckms_rag.services.chapter_service import ChapterMapper

logger = logging.getLogger(__name__)


# ── Terminal nodes ───────────────────────────────────────

def finalize_single_answer(state: dict[str, Any]) -> dict[str, Any]:
    """Zero or one batch answer — it is the final answer as-is."""
    graph_state = QueryGraphState(**state)
    answers = graph_state.answers
    graph_state.final_answer = answers[0] if answers else ""
    graph_state.status = PipelineStatus.COMPLETED
    graph_state.add_audit(
        agent=AgentName.FINALIZE.value,
        action="completed",
        details=f"{len(answers)} answer(s), merge skipped",
    )
    logger.info(f"[FINALIZE] {len(answers)} answer(s) — merge skipped")
    return graph_state.model_dump()


# ── Build the graphs ─────────────────────────────────────

def build_ingestion_graph(
    settings: Settings | None = None,
    index: IndexService | None = None,
    chapter_mapper: ChapterMapper | None = None,
    page_loader=None,
):
    """Single-node graph: load, split, tag, and persist the document."""
    settings = settings or get_settings()
    ingest = IngestionAgent(
        settings,
        index=index,
        chapter_mapper=chapter_mapper,
        page_loader=page_loader,
    )

    graph = StateGraph(dict)
    graph.add_node("ingest", ingest.process)
    graph.set_entry_point("ingest")
    graph.add_edge("ingest", END)
    return graph.compile()


def build_query_graph(
    settings: Settings | None = None,
    index: IndexService | None = None,
):
    """
    Construct and compile the question-answering state machine.
    Returns a compiled graph ready to invoke.
    """
    settings = settings or get_settings()
    planner = QueryPlanningAgent(settings)
    retriever = RetrievalAgent(settings, index=index)
    answerer = AnsweringAgent(settings)
    agglutinator = AgglutinationAgent(settings)

    graph = StateGraph(dict)

    # ── Add nodes ────────────────────────────────────────
    graph.add_node("plan", planner.process)
    graph.add_node("retrieve", retriever.process)
    graph.add_node("answer", answerer.process)
    graph.add_node("agglutinate", agglutinator.process)
    graph.add_node("finalize", finalize_single_answer)

    # ── Edges ────────────────────────────────────────────
    graph.set_entry_point("plan")
    graph.add_edge("plan", "retrieve")
    graph.add_edge("retrieve", "answer")
    graph.add_conditional_edges(
        "answer",
        route_after_answering,
        {
            "agglutinate": "agglutinate",
            "finalize": "finalize",
        },
    )
    graph.add_edge("agglutinate", END)
    graph.add_edge("finalize", END)

    return graph.compile()


# ── Convenience runners ──────────────────────────────────

def run_ingestion_pipeline(
    document_path: str = "",
    settings: Settings | None = None,
    **collaborators: Any,
) -> dict[str, Any]:
    """Build the ingestion graph and run it. Returns the final state dict."""
    settings = settings or get_settings()
    compiled = build_ingestion_graph(settings, **collaborators)

    state = {
        "document_path": document_path or settings.document_path,
        "status": PipelineStatus.RECEIVED.value,
    }

    logger.info("═" * 60)
    logger.info("  INGESTION STARTING")
    logger.info("═" * 60)

    final_state = compiled.invoke(state)

    logger.info("═" * 60)
    logger.info(f"  INGESTION FINISHED — status: {final_state.get('status')}")
    logger.info("═" * 60)
    return final_state


def run_query_pipeline(
    question: str,
    settings: Settings | None = None,
    index: IndexService | None = None,
) -> dict[str, Any]:
    """Build the query graph and run it end-to-end. Returns the final state dict."""
    settings = settings or get_settings()
    compiled = build_query_graph(settings, index=index)

    state = {
        "question": question,
        "status": PipelineStatus.RECEIVED.value,
    }

    logger.info("═" * 60)
    logger.info("  QUERY PIPELINE STARTING")
    logger.info("═" * 60)

    final_state = compiled.invoke(state)

    logger.info("═" * 60)
    logger.info(f"  QUERY PIPELINE FINISHED — status: {final_state.get('status')}")
    logger.info("═" * 60)
    return final_state
