"""
Retrieval Agent
Responsibility: Run every sub-query against the vector index with its
                chapter (and type) filter, then deduplicate the combined
                hits by (prefix, number, chapter), first occurrence wins.

Sub-queries run sequentially, in plan order; that order decides which
copy of a duplicated requirement is kept.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ckms_rag.agents.base_agent import BaseAgent
from ckms_rag.config import Settings
from ckms_rag.errors import RetrievalFailed
from ckms_rag.index import IndexService
from ckms_rag.models.enums import AgentName, PipelineStatus
from ckms_rag.models.schemas import RequirementRecord, SubQuery
from ckms_rag.models.state import QueryGraphState
from ckms_rag.utils.retry import call_with_retry

logger = logging.getLogger(__name__)


def deduplicate_records(records: Iterable[RequirementRecord]) -> list[RequirementRecord]:
    """Keep the first record per identity key, preserving input order."""
    seen: set[str] = set()
    unique: list[RequirementRecord] = []
    for record in records:
        key = record.identity_key
        if key not in seen:
            seen.add(key)
            unique.append(record)
    return unique


class RetrievalAgent(BaseAgent):
    name = AgentName.RETRIEVAL

    def __init__(self, settings: Settings | None = None, index: IndexService | None = None):
        super().__init__(settings)
        self._index = index

    @property
    def index(self) -> IndexService:
        if self._index is None:
            self._index = IndexService(self.settings)
        return self._index

    def _real_process(self, state: QueryGraphState) -> QueryGraphState:
        if not state.sub_queries:
            logger.warning("[RETRIEVE] No sub-queries — nothing to retrieve")

        collected = self.collect(state.sub_queries)
        state.retrieved_before_dedup = len(collected)
        state.records = deduplicate_records(collected)
        state.status = PipelineStatus.RETRIEVED

        logger.info(
            f"[RETRIEVE] Deduplicated: {len(collected)} → {len(state.records)} records"
        )
        return state

    def retrieve(self, sub_queries: Sequence[SubQuery]) -> list[RequirementRecord]:
        """Search every sub-query and return the deduplicated records."""
        return deduplicate_records(self.collect(sub_queries))

    def collect(self, sub_queries: Sequence[SubQuery]) -> list[RequirementRecord]:
        """Search every sub-query and concatenate the hits in plan order."""
        collected: list[RequirementRecord] = []
        for i, sub_query in enumerate(sub_queries, start=1):
            if sub_query.chapter_filter is None:
                logger.warning(
                    f"[RETRIEVE] Sub-query {i} has no chapter; filtering on "
                    f"chapter == None: {sub_query.text!r}"
                )
            if sub_query.has_unknown_type:
                logger.warning(
                    f"[RETRIEVE] Sub-query {i} filters on unknown type "
                    f"{sub_query.type_filter!r}; no record can match"
                )
            try:
                hits = call_with_retry(
                    self.index.search,
                    sub_query.text,
                    chapter=sub_query.chapter_filter,
                    prefix=sub_query.type_filter,
                    top_k=self.settings.retrieval_top_k,
                    settings=self.settings,
                    description=f"similarity search {i}/{len(sub_queries)}",
                )
            except Exception as exc:
                raise RetrievalFailed(
                    f"Search failed for sub-query {i}", detail=str(exc)
                ) from exc

            logger.info(
                f"[RETRIEVE] Sub-query {i}/{len(sub_queries)} "
                f"(chapter={sub_query.chapter_filter}, "
                f"type={sub_query.type_filter}): "
                f"{len(hits)} hits"
            )
            collected.extend(hits)
        return collected
