"""
Index — the single boundary agents use to reach the vector index.

Agents import ONLY from this package:
    from ckms_rag.index import IndexService

They never touch internal modules (embedding, Chroma).
"""

from .index_service import IndexService

__all__ = ["IndexService"]
