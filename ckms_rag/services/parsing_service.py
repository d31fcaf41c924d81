"""
Parsing Service — page loading and requirement splitting for the CKMS PDF.

Extracts:
  • Plain text per physical page (1-indexed page numbers)
  • Requirement fragments tagged FR / PR / PA / PF with their number

Does NOT:
  • Attach chapter metadata (see chapter_service.ChapterMapper)
  • Keep narrative text that is not part of a tagged requirement
  • Call any LLM or embedder
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

from ckms_rag.models.enums import RequirementPrefix
from ckms_rag.models.schemas import PageText, RequirementFragment

logger = logging.getLogger(__name__)

# ── Regex patterns for requirement splitting ─────────────

# A tag followed by "<n>.<m>" and whitespace opens a requirement; it runs
# until the next tag of any type or end of input.
_REQUIREMENT_RE = re.compile(
    r"(PR|PA|FR|PF):(\d+\.\d+)\s+.*?(?=(?:PR|PA|FR|PF):|\Z)",
    re.DOTALL,
)


class ParsingService:
    """
    Load document pages and cut them into requirement fragments.

    Primary interface for ingestion:
        pages     = ParsingService.load_pages(path)
        fragments = ParsingService.split_requirements(page.text)
    """

    # ── Page loading ─────────────────────────────────────

    @staticmethod
    def load_pages(file_path: str) -> list[PageText]:
        """Extract the text of every page using PyMuPDF."""
        import fitz  # PyMuPDF

        source = str(Path(file_path).resolve())
        pages: list[PageText] = []
        with fitz.open(file_path) as doc:
            for page_idx, page in enumerate(doc):
                pages.append(
                    PageText(
                        page_number=page_idx + 1,
                        text=page.get_text("text"),
                        source=source,
                    )
                )

        logger.info(f"Loaded {len(pages)} pages from {Path(file_path).name}")
        return pages

    # ── Requirement splitting ────────────────────────────

    @staticmethod
    def split_requirements(text: str) -> Iterator[RequirementFragment]:
        """
        Yield one fragment per well-formed requirement tag in text.

        A tag without a "<n>.<m>" number is skipped silently; a page with
        no tags yields nothing.
        """
        for match in _REQUIREMENT_RE.finditer(text):
            yield RequirementFragment(
                page_content=match.group(0).strip(),
                prefix=RequirementPrefix(match.group(1)),
                number=match.group(2),
            )
