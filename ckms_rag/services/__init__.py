"""Services — ParsingService, ChapterMapper, LLM helpers."""

from ckms_rag.services.parsing_service import ParsingService
from ckms_rag.services.chapter_service import ChapterMapper, ChapterRange

__all__ = ["ParsingService", "ChapterMapper", "ChapterRange"]
