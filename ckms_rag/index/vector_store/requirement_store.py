"""
Requirement Vector Store — persists embedded requirement chunks in a local
Chroma collection and serves metadata-filtered similarity search.

A rebuild never touches the live collection until the new one is fully
written: records go into a staging collection that is renamed over the
live one at the end. A failed rebuild leaves the previous index intact.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from ckms_rag.config import Settings, get_settings
from ckms_rag.index.embeddings.embedding_model import EmbeddingModel
from ckms_rag.models.enums import RequirementPrefix
from ckms_rag.models.schemas import RequirementRecord
from ckms_rag.utils.hashing import sha256_hash

logger = logging.getLogger(__name__)

# Chroma metadata values cannot be null; an unknown chapter / page is
# stored as this sentinel and mapped back to None on the way out.
UNMAPPED = -1

_STAGING_SUFFIX = "__staging"


class RequirementVectorStore:
    """
    Chroma-backed store for requirement records.
    Embeddings are computed locally with EmbeddingModel.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        embedder: EmbeddingModel | None = None,
    ):
        self.settings = settings or get_settings()
        self._embedder = embedder or EmbeddingModel(self.settings)
        self._client = None
        self._collection = None

    def _get_client(self):
        """Lazy-init: open the persistent Chroma client."""
        if self._client is not None:
            return self._client

        import chromadb

        persist_dir = Path(self.settings.vector_store_dir)
        persist_dir.mkdir(parents=True, exist_ok=True)
        self._client = chromadb.PersistentClient(path=str(persist_dir))
        logger.info(f"Opened vector store at {persist_dir.resolve()}")
        return self._client

    def _get_collection(self):
        """Lazy-init: open the live collection (must already exist)."""
        if self._collection is not None:
            return self._collection

        client = self._get_client()
        name = self.settings.collection_name
        if name not in _collection_names(client):
            raise LookupError(
                f"Vector store collection '{name}' not found in "
                f"{self.settings.vector_store_dir} — run ingestion first"
            )
        self._collection = client.get_collection(name)
        return self._collection

    # ── Ingestion ────────────────────────────────────────

    def replace_all(self, records: Sequence[RequirementRecord]) -> int:
        """
        Embed records and atomically replace the live collection with them.
        Returns the number of vectors stored.
        """
        texts = [r.page_content for r in records]
        embeddings = self._embedder.embed(texts)

        client = self._get_client()
        name = self.settings.collection_name
        staging_name = name + _STAGING_SUFFIX

        _drop_collection(client, staging_name)
        staging = client.create_collection(
            name=staging_name, metadata={"hnsw:space": "cosine"}
        )

        try:
            batch_size = max(1, self.settings.upsert_batch_size)
            for batch_start in range(0, len(records), batch_size):
                batch = records[batch_start : batch_start + batch_size]
                batch_embeddings = embeddings[batch_start : batch_start + batch_size]
                staging.add(
                    ids=[
                        _vector_id(batch_start + i, r) for i, r in enumerate(batch)
                    ],
                    embeddings=batch_embeddings,
                    documents=[r.page_content for r in batch],
                    metadatas=[to_metadata(r) for r in batch],
                )
        except Exception:
            logger.error(f"Staging write failed — keeping previous '{name}' collection")
            _drop_collection(client, staging_name)
            raise

        _drop_collection(client, name)
        staging.modify(name=name)
        self._collection = staging

        logger.info(f"Stored {len(records)} requirement vectors in '{name}'")
        return len(records)

    # ── Query ────────────────────────────────────────────

    def search(
        self,
        query_text: str,
        top_k: int,
        chapter: Optional[int],
        prefix: Optional[str] = None,
    ) -> list[RequirementRecord]:
        """
        Nearest-neighbour search restricted to one chapter (and optionally
        one requirement type). Returns records ordered by similarity.
        """
        collection = self._get_collection()
        total = collection.count()
        if total == 0:
            return []

        query_embedding = self._embedder.embed_single(query_text)
        results = collection.query(
            query_embeddings=[query_embedding],
            n_results=min(top_k, total),
            where=build_where(chapter, prefix),
            include=["documents", "metadatas"],
        )

        documents = (results.get("documents") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0]
        return [
            from_metadata(doc, meta or {})
            for doc, meta in zip(documents, metadatas)
        ]


# ── Metadata translation ─────────────────────────────────


def to_metadata(record: RequirementRecord) -> dict[str, Any]:
    return {
        "prefix": record.prefix.value,
        "number": record.number,
        "chapter": UNMAPPED if record.chapter is None else record.chapter,
        "page_number": UNMAPPED if record.page_number is None else record.page_number,
        "source": record.source,
    }


def from_metadata(document: str, metadata: dict[str, Any]) -> RequirementRecord:
    chapter = metadata.get("chapter", UNMAPPED)
    page_number = metadata.get("page_number", UNMAPPED)
    return RequirementRecord(
        page_content=document,
        prefix=RequirementPrefix(metadata["prefix"]),
        number=str(metadata.get("number", "")),
        chapter=None if chapter == UNMAPPED else int(chapter),
        page_number=None if page_number == UNMAPPED else int(page_number),
        source=metadata.get("source", ""),
    )


def build_where(chapter: Optional[int], prefix: Optional[str] = None) -> dict[str, Any]:
    """
    Chroma filter: chapter must always match; prefix only when given.

    A None chapter becomes the UNMAPPED sentinel, i.e. the search only
    sees records from pages outside every chapter range. A prefix outside
    the four known codes is passed through and matches no record.
    """
    chapter_clause = {"chapter": {"$eq": UNMAPPED if chapter is None else chapter}}
    if prefix is None:
        return chapter_clause
    return {"$and": [chapter_clause, {"prefix": {"$eq": getattr(prefix, "value", prefix)}}]}


# ── Private helpers ──────────────────────────────────────


def _vector_id(position: int, record: RequirementRecord) -> str:
    return f"req_{position:05d}_{sha256_hash(record.page_content)[:12]}"


def _collection_names(client) -> list[str]:
    # Older Chroma releases return Collection objects, newer ones names
    return [getattr(c, "name", c) for c in client.list_collections()]


def _drop_collection(client, name: str) -> None:
    if name in _collection_names(client):
        client.delete_collection(name)
        logger.debug(f"Dropped collection '{name}'")
