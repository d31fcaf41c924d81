"""Shared fixtures: isolated settings and an in-memory vector index."""

from __future__ import annotations

from typing import Optional

import pytest

from ckms_rag.config import Settings
from ckms_rag.models.enums import RequirementPrefix
from ckms_rag.models.schemas import RequirementRecord


class FakeIndex:
    """In-memory stand-in for IndexService (no embeddings, no Chroma)."""

    def __init__(self, records: list[RequirementRecord] | None = None):
        self.records = list(records or [])
        self.searches: list[tuple[str, Optional[int], Optional[RequirementPrefix], int]] = []
        self.rebuilds = 0

    def rebuild(self, records):
        self.records = list(records)
        self.rebuilds += 1
        return len(self.records)

    def search(self, query, chapter, prefix=None, top_k=None):
        self.searches.append((query, chapter, prefix, top_k))
        hits = [
            r for r in self.records
            if r.chapter == chapter and (prefix is None or r.prefix == prefix)
        ]
        return hits[: top_k or len(hits)]


def make_record(
    prefix: str,
    number: str,
    chapter: Optional[int],
    text: str = "",
    page_number: Optional[int] = None,
) -> RequirementRecord:
    return RequirementRecord(
        page_content=text or f"{prefix}:{number} requirement text",
        prefix=RequirementPrefix(prefix),
        number=number,
        chapter=chapter,
        page_number=page_number,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        openai_api_key="test-key",
        vector_store_dir=str(tmp_path / "vectorstore"),
        max_attempts=2,
        retry_max_wait_seconds=0,
        llm_empty_response_retries=0,
    )


@pytest.fixture
def fake_index() -> FakeIndex:
    return FakeIndex()
