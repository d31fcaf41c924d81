"""
IndexService — facade over the requirement vector store.

    index = IndexService(settings)
    index.rebuild(records)                               # ingestion
    hits = index.search("...", chapter=6, prefix=RequirementPrefix.PR)
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ckms_rag.config import Settings, get_settings
from ckms_rag.models.schemas import RequirementRecord

logger = logging.getLogger(__name__)


class IndexService:
    """
    Facade over the vector index.
    Agents depend on this single class.
    """

    def __init__(self, settings: Settings | None = None, store=None):
        self.settings = settings or get_settings()
        if store is None:
            from .vector_store.requirement_store import RequirementVectorStore

            store = RequirementVectorStore(self.settings)
        self.store = store

    def rebuild(self, records: Sequence[RequirementRecord]) -> int:
        """Embed records and replace the whole persisted index. Returns vector count."""
        logger.debug(f"[IndexService] rebuild: {len(records)} records")
        count = self.store.replace_all(list(records))
        logger.info(f"[IndexService] Index rebuilt with {count} vectors")
        return count

    def search(
        self,
        query: str,
        chapter: Optional[int],
        prefix: Optional[str] = None,
        top_k: int | None = None,
    ) -> list[RequirementRecord]:
        """Similarity search restricted to chapter (and prefix when given).

        prefix is a type code; RequirementPrefix members are accepted too.
        A code outside the four known types matches nothing.
        """
        top_k = top_k or self.settings.retrieval_top_k
        logger.debug(
            f"[IndexService] search: q={query[:60]!r}, chapter={chapter}, "
            f"prefix={getattr(prefix, 'value', prefix)}, top_k={top_k}"
        )
        results = self.store.search(query, top_k, chapter, prefix)
        logger.debug(f"[IndexService] search returned {len(results)} results")
        return results
