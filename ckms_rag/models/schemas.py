"""
Reusable data schemas shared by the ingestion and query pipelines.
Each schema represents a clearly-bounded data object produced by one stage.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import RequirementPrefix

# Legacy text channel between planner and retriever: the filter values are
# embedded in the sub-query prose as "chapter <N>" and "type <XX>".
_CHAPTER_RE = re.compile(r"chapter (\d+)")
_TYPE_RE = re.compile(r"type\s([A-Z]{2})")


# ── Ingestion ────────────────────────────────────────────


class PageText(BaseModel):
    """One page of the source document as produced by the loader."""
    page_number: int  # 1-indexed, physical page numbering
    text: str
    source: str = ""


class RequirementFragment(BaseModel):
    """A requirement cut from a page, before chapter metadata is attached."""
    model_config = ConfigDict(frozen=True)

    page_content: str
    prefix: RequirementPrefix
    number: str


class RequirementRecord(BaseModel):
    """A requirement chunk as stored in and returned from the vector index."""
    model_config = ConfigDict(frozen=True)

    page_content: str
    prefix: RequirementPrefix
    number: str
    chapter: Optional[int] = None  # None when the page is outside every range
    page_number: Optional[int] = None
    source: str = ""

    @property
    def identity_key(self) -> str:
        """Deduplication key; page_content is ignored."""
        return f"{self.prefix.value}:{self.number}-{self.chapter}"

    @classmethod
    def from_fragment(
        cls,
        fragment: RequirementFragment,
        chapter: Optional[int],
        page_number: Optional[int] = None,
        source: str = "",
    ) -> "RequirementRecord":
        return cls(
            page_content=fragment.page_content,
            prefix=fragment.prefix,
            number=fragment.number,
            chapter=chapter,
            page_number=page_number,
            source=source,
        )


# ── Query planning ───────────────────────────────────────


class SubQuery(BaseModel):
    """A single retrieval query with its metadata filters."""
    text: str = Field(description="Natural-language query sent to the similarity search")
    chapter_filter: Optional[int] = Field(
        default=None,
        description="Chapter number the query is restricted to",
    )
    # Kept as the raw code: an unknown code still filters, and matches nothing
    type_filter: Optional[str] = Field(
        default=None,
        description="Requirement type (FR, PR, PA or PF) the query is restricted to",
    )

    @field_validator("type_filter", mode="before")
    @classmethod
    def _unwrap_prefix(cls, value):
        if isinstance(value, RequirementPrefix):
            return value.value
        return value

    @property
    def has_unknown_type(self) -> bool:
        return (
            self.type_filter is not None
            and self.type_filter not in RequirementPrefix._value2member_map_
        )

    @classmethod
    def from_text(cls, text: str) -> "SubQuery":
        """Parse 'chapter N' / 'type XX' markers out of a free-form query line."""
        chapter_match = _CHAPTER_RE.search(text)
        type_match = _TYPE_RE.search(text)
        return cls(
            text=text,
            chapter_filter=int(chapter_match.group(1)) if chapter_match else None,
            type_filter=type_match.group(1) if type_match else None,
        )


class SubQueryPlan(BaseModel):
    """Structured planner output: the ordered list of sub-queries."""
    queries: list[SubQuery] = Field(default_factory=list)


# ── Audit ────────────────────────────────────────────────


class AuditEntry(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    agent: str
    action: str
    details: str = ""
    state_version: int = 0
