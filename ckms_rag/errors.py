"""Exception hierarchy for the ingestion and query pipelines.

Every failure of an external collaborator (PDF loader, embedder, vector
index, LLM) is re-raised as one of these after the retry policy gives up,
so the CLI can report which stage failed while the original exception
stays available as ``__cause__``.
"""

from __future__ import annotations

__all__ = [
    "PipelineError",
    "IngestionFailed",
    "QueryPlanningFailed",
    "RetrievalFailed",
    "AnsweringFailed",
]


class PipelineError(RuntimeError):
    """Base exception for ingestion and query failures."""

    stage = "pipeline"

    def __init__(self, message: str, *, detail: str = "") -> None:
        super().__init__(message)
        self.detail = detail

    def __str__(self) -> str:
        base = super().__str__()
        if self.detail:
            return f"[{self.stage}] {base}: {self.detail}"
        return f"[{self.stage}] {base}"


class IngestionFailed(PipelineError):
    """Raised when loading, embedding, or persisting the document fails."""

    stage = "ingest"


class QueryPlanningFailed(PipelineError):
    """Raised when the sub-query generation call fails."""

    stage = "plan"


class RetrievalFailed(PipelineError):
    """Raised when a similarity search against the index fails."""

    stage = "retrieve"


class AnsweringFailed(PipelineError):
    """Raised when a batch answer or the final merge call fails."""

    stage = "answer"
