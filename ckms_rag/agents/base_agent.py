"""
Base agent class that every pipeline agent inherits.

Design:
  - `process()` is called by the LangGraph node.
  - `_real_process()` is the single abstract method — override in each agent.
  - `state_model` names the pydantic state the agent hydrates.
  - Failures are logged, recorded in the audit trail and re-raised.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Type

from ckms_rag.config import Settings, get_settings
from ckms_rag.models.enums import AgentName
from ckms_rag.models.state import QueryGraphState, AuditedState

logger = logging.getLogger(__name__)


class BaseAgent(ABC):
    """Abstract base for all pipeline agents."""

    name: AgentName  # set in each subclass
    state_model: ClassVar[Type[AuditedState]] = QueryGraphState

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    # ── Public entry point (called by LangGraph node) ────

    def process(self, state: dict[str, Any]) -> dict[str, Any]:
        """
        LangGraph calls this as the node function.
        Accepts and returns a dict so LangGraph can carry the state
        between nodes.
        """
        t0 = time.perf_counter()
        separator = "═" * 70
        logger.info(f"\n{separator}")
        logger.info(f"▶ [{self.name.value}] STARTING")
        logger.info(separator)

        _log_state_summary("INPUT STATE", state)

        graph_state = self.state_model(**state)
        graph_state.current_agent = self.name.value

        try:
            updated = self._real_process(graph_state)
        except Exception as exc:
            elapsed = time.perf_counter() - t0
            graph_state.error_message = f"[{self.name.value}] {exc}"
            graph_state.add_audit(
                agent=self.name.value,
                action="error",
                details=str(exc),
            )
            logger.exception(
                f"✘ [{self.name.value}] FAILED after {elapsed:.3f}s: {exc}"
            )
            logger.info(f"{separator}\n")
            raise

        updated.add_audit(
            agent=self.name.value,
            action="completed",
            details="",
        )
        elapsed = time.perf_counter() - t0
        logger.info(f"✔ [{self.name.value}] COMPLETED in {elapsed:.3f}s")

        out_dict = updated.model_dump()
        _log_state_summary("OUTPUT STATE", out_dict)
        _log_state_diff("STATE CHANGES", state, out_dict)
        logger.info(f"{separator}\n")

        return out_dict

    # ── Subclass hook ────────────────────────────────────

    @abstractmethod
    def _real_process(self, state: Any) -> Any:
        """
        Stage implementation.
        Must be overridden by each agent.
        """
        ...


# ── Debug helpers (module-level) ─────────────────────────

def _log_state_summary(label: str, state: dict[str, Any]) -> None:
    """Log key names, non-empty values, and approximate sizes."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    lines = [f"  ┌─ {label}"]
    for key in sorted(state.keys()):
        val = state[key]
        if val is None or val == "" or val == [] or val == {}:
            lines.append(f"  │  {key}: <empty>")
        elif isinstance(val, str):
            lines.append(f"  │  {key}: str({len(val)} chars)")
        elif isinstance(val, list):
            lines.append(f"  │  {key}: list({len(val)} items)")
        elif isinstance(val, dict):
            lines.append(f"  │  {key}: dict({len(val)} keys)")
        else:
            lines.append(f"  │  {key}: {type(val).__name__} = {_truncate(val)}")
    lines.append(f"  └─ ({len(state)} keys total)")
    logger.debug("\n".join(lines))


def _log_state_diff(label: str, before: dict[str, Any], after: dict[str, Any]) -> None:
    """Log which keys changed between input and output state."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    changes: list[str] = []
    for key in sorted(set(before.keys()) | set(after.keys())):
        old = before.get(key)
        new = after.get(key)
        if old != new:
            changes.append(f"  │  {key}: {_truncate(old)} → {_truncate(new)}")
    if changes:
        logger.debug(f"  ┌─ {label}\n" + "\n".join(changes) + f"\n  └─ ({len(changes)} fields changed)")
    else:
        logger.debug(f"  ── {label}: no changes")


def _truncate(val: Any, max_len: int = 120) -> str:
    """Produce a short repr for debug logging."""
    if val is None:
        return "<None>"
    if isinstance(val, str):
        if len(val) > max_len:
            return repr(val[:max_len]) + f"…({len(val)} chars)"
        return repr(val)
    if isinstance(val, list):
        return f"list({len(val)} items)"
    if isinstance(val, dict):
        try:
            s = json.dumps(val, default=str)
        except (TypeError, ValueError):
            return f"dict({len(val)} keys)"
        if len(s) > max_len:
            return s[:max_len] + f"…({len(s)} chars)"
        return s
    s = str(val)
    if len(s) > max_len:
        return s[:max_len] + "…"
    return s
