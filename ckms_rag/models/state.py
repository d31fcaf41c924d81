"""
LangGraph shared state — the objects that flow through every node.

Design rules:
  1. Each field is "owned" by one agent (see comments).
  2. Agents may READ any field but should only WRITE to their owned fields.
  3. The state is versioned for audit purposes.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .enums import PipelineStatus
from .schemas import AuditEntry, RequirementRecord, SubQuery


class AuditedState(BaseModel):
    """Pipeline control fields and the append-only audit trail."""

    status: PipelineStatus = PipelineStatus.RECEIVED
    current_agent: str = ""
    error_message: str = ""
    state_version: int = 0
    audit_trail: list[AuditEntry] = Field(default_factory=list)

    def add_audit(self, agent: str, action: str, details: str = "") -> None:
        self.state_version += 1
        self.audit_trail.append(
            AuditEntry(
                agent=agent,
                action=action,
                details=details,
                state_version=self.state_version,
            )
        )


class IngestionGraphState(AuditedState):
    """State for the offline ingestion run."""

    # ── Input ────────────────────────────────────────────
    document_path: str = ""

    # ── Ingestion (owner: INGESTION) ─────────────────────
    document_hash: str = ""
    page_count: int = 0
    record_count: int = 0
    unmapped_record_count: int = 0
    chapter_counts: dict[str, int] = Field(default_factory=dict)


class QueryGraphState(AuditedState):
    """State for one question-answering run."""

    # ── Input ────────────────────────────────────────────
    question: str = ""

    # ── Query planning (owner: QUERY_PLANNING) ───────────
    sub_queries: list[SubQuery] = Field(default_factory=list)

    # ── Retrieval (owner: RETRIEVAL) ─────────────────────
    records: list[RequirementRecord] = Field(default_factory=list)
    retrieved_before_dedup: int = 0

    # ── Answering (owner: ANSWERING) ─────────────────────
    answers: list[str] = Field(default_factory=list)

    # ── Final answer (owner: AGGLUTINATION / FINALIZE) ───
    final_answer: str = ""
