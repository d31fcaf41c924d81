"""
Ingestion Agent

Responsibility:
  Validate the source PDF, compute its SHA-256 hash, load its pages, cut
  every page into requirement records, tag them with the page's chapter,
  and replace the persisted vector index with the full record set.

Does NOT: call an LLM, keep narrative text, or update the index
          incrementally. Any failure aborts the run before the live index
          is touched.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Callable, Iterable, Optional

from ckms_rag.agents.base_agent import BaseAgent
from ckms_rag.config import Settings
from ckms_rag.errors import IngestionFailed
from ckms_rag.index import IndexService
from ckms_rag.models.enums import AgentName, PipelineStatus
from ckms_rag.models.schemas import PageText, RequirementRecord
from ckms_rag.models.state import IngestionGraphState
from ckms_rag.services.chapter_service import ChapterMapper
from ckms_rag.services.parsing_service import ParsingService
from ckms_rag.utils.hashing import sha256_file
from ckms_rag.utils.retry import call_with_retry

logger = logging.getLogger(__name__)

PageLoader = Callable[[str], list[PageText]]


def build_records(
    pages: Iterable[PageText], mapper: ChapterMapper
) -> list[RequirementRecord]:
    """Split every page and attach the page's chapter to each fragment."""
    records: list[RequirementRecord] = []
    for page in pages:
        chapter = mapper.get_chapter(page.page_number)
        page_records = [
            RequirementRecord.from_fragment(
                fragment,
                chapter=chapter,
                page_number=page.page_number,
                source=page.source,
            )
            for fragment in ParsingService.split_requirements(page.text)
        ]
        if page_records:
            logger.debug(
                f"[INGEST] Page {page.page_number} (chapter {chapter}): "
                f"{len(page_records)} requirements"
            )
        records.extend(page_records)
    return records


class IngestionAgent(BaseAgent):
    name = AgentName.INGESTION
    state_model = IngestionGraphState

    def __init__(
        self,
        settings: Settings | None = None,
        index: IndexService | None = None,
        chapter_mapper: ChapterMapper | None = None,
        page_loader: Optional[PageLoader] = None,
    ):
        super().__init__(settings)
        self._index = index
        self.chapter_mapper = chapter_mapper or ChapterMapper()
        self.page_loader = page_loader or ParsingService.load_pages

    @property
    def index(self) -> IndexService:
        if self._index is None:
            self._index = IndexService(self.settings)
        return self._index

    def _real_process(self, state: IngestionGraphState) -> IngestionGraphState:
        file_path = state.document_path or self.settings.document_path

        # ── 1. File validation ───────────────────────────
        if not file_path:
            raise ValueError("No document path provided")

        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Document not found: {file_path}")

        if path.suffix.lower() != ".pdf":
            raise ValueError(
                f"Unsupported file type: {path.suffix}. Only .pdf supported."
            )

        # ── 2. SHA-256 hash ──────────────────────────────
        file_hash = sha256_file(path)
        logger.info(f"[INGEST] File validated — {path.name}, SHA-256: {file_hash}")

        # ── 3. Load pages ────────────────────────────────
        try:
            pages = self.page_loader(str(path))
        except Exception as exc:
            raise IngestionFailed(f"Could not load {path.name}", detail=str(exc)) from exc

        # ── 4. Split + chapter-tag ───────────────────────
        records = build_records(pages, self.chapter_mapper)
        chapter_counts = Counter(str(r.chapter) for r in records)
        unmapped = chapter_counts.get("None", 0)
        logger.info(
            f"[INGEST] {len(records)} requirements from {len(pages)} pages "
            f"({unmapped} on pages outside every chapter range)"
        )
        logger.debug(f"[INGEST] Requirements per chapter: {dict(chapter_counts)}")

        # ── 5. Embed + persist (full replacement) ────────
        try:
            stored = call_with_retry(
                self.index.rebuild,
                records,
                settings=self.settings,
                description="index rebuild",
            )
        except Exception as exc:
            raise IngestionFailed("Could not build the vector index", detail=str(exc)) from exc

        # ── 6. Update state ──────────────────────────────
        state.document_path = str(path.resolve())
        state.document_hash = file_hash
        state.page_count = len(pages)
        state.record_count = stored
        state.unmapped_record_count = unmapped
        state.chapter_counts = dict(chapter_counts)
        state.status = PipelineStatus.INGESTED

        logger.info(
            f"[INGEST] Ingestion complete — {stored} vectors stored in "
            f"{self.settings.vector_store_dir}"
        )
        return state
