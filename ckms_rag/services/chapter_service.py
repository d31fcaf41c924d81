"""
Chapter Service — maps physical page numbers of the CKMS profile to
logical chapter indices.

The table is ordered and first-match-wins; ranges are inclusive and are
not checked for overlap. Pages that fall in a gap (page 103) or outside
the table get no chapter.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ChapterRange(BaseModel):
    chapter: int
    start: int
    end: int

    def contains(self, page_number: int) -> bool:
        return self.start <= page_number <= self.end


# NIST SP 800-152 physical page layout
DEFAULT_CHAPTER_RANGES: tuple[ChapterRange, ...] = (
    ChapterRange(chapter=0, start=1, end=10),
    ChapterRange(chapter=1, start=11, end=15),
    ChapterRange(chapter=2, start=16, end=22),
    ChapterRange(chapter=3, start=23, end=27),
    ChapterRange(chapter=4, start=28, end=44),
    ChapterRange(chapter=5, start=45, end=46),
    ChapterRange(chapter=6, start=47, end=85),
    ChapterRange(chapter=7, start=86, end=90),
    ChapterRange(chapter=8, start=91, end=102),
    ChapterRange(chapter=9, start=104, end=112),
    ChapterRange(chapter=10, start=113, end=121),
    ChapterRange(chapter=11, start=122, end=128),
    ChapterRange(chapter=12, start=129, end=130),
    ChapterRange(chapter=13, start=131, end=134),
    ChapterRange(chapter=14, start=135, end=147),
)


class ChapterMapper:
    """Page number → chapter lookup over an ordered range table."""

    def __init__(self, ranges: Sequence[ChapterRange] | None = None):
        self.ranges = tuple(ranges) if ranges is not None else DEFAULT_CHAPTER_RANGES

    def get_chapter(self, page_number: int) -> Optional[int]:
        """Return the chapter of the first range containing page_number, else None."""
        for chapter_range in self.ranges:
            if chapter_range.contains(page_number):
                return chapter_range.chapter
        logger.debug(f"Page {page_number} is outside every chapter range")
        return None
