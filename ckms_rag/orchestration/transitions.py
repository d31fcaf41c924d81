"""
Routing functions for LangGraph conditional edges.

Each function inspects the current state dict and returns the name
of the next node to execute.
"""

from __future__ import annotations

from typing import Any


# ── After answering ──────────────────────────────────────

def route_after_answering(state: dict[str, Any]) -> str:
    """
    Two or more batch answers → merge them.
    Zero or one              → pass the answer through unchanged.
    """
    answers = state.get("answers", [])
    if len(answers) > 1:
        return "agglutinate"
    return "finalize"
