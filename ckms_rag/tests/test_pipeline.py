"""
Tests: query graph end-to-end with a fake index and stubbed LLM calls.

Run with:
    pytest ckms_rag/tests/test_pipeline.py -v
"""

import pytest

import ckms_rag.agents.agglutination_agent as agglutination_module
import ckms_rag.agents.answering_agent as answering_module
import ckms_rag.agents.query_planning_agent as planning_module
from ckms_rag.errors import QueryPlanningFailed
from ckms_rag.models.enums import AgentName, PipelineStatus, RequirementPrefix
from ckms_rag.models.schemas import SubQuery, SubQueryPlan
from ckms_rag.orchestration.graph import run_query_pipeline
from ckms_rag.orchestration.transitions import route_after_answering

from conftest import FakeIndex, make_record


@pytest.fixture
def llm_calls(monkeypatch):
    """Stub every LLM entry point; returns the call log."""
    calls = {"plan": [], "answer": [], "merge": []}

    def fake_plan(prompt, output_model, *, model=None, settings=None):
        calls["plan"].append(prompt)
        return SubQueryPlan(queries=[
            SubQuery(text="Extract requirements from chapter 6 type FR",
                     chapter_filter=6, type_filter=RequirementPrefix.FR),
            SubQuery(text="Extract requirements from chapter 6 type PR",
                     chapter_filter=6, type_filter=RequirementPrefix.PR),
        ])

    def fake_answer(messages, *, model=None, settings=None, max_retries=None):
        calls["answer"].append(messages)
        return f"answer {len(calls['answer'])}"

    def fake_merge(prompt, *, model=None, settings=None, max_retries=None):
        calls["merge"].append(prompt)
        return "merged answer"

    monkeypatch.setattr(planning_module, "llm_json_call", fake_plan)
    monkeypatch.setattr(answering_module, "llm_text_call", fake_answer)
    monkeypatch.setattr(agglutination_module, "llm_text_call", fake_merge)
    return calls


class TestRouting:
    @pytest.mark.parametrize(
        "answers, expected",
        [([], "finalize"), (["only"], "finalize"), (["a", "b"], "agglutinate")],
    )
    def test_route_after_answering(self, answers, expected):
        assert route_after_answering({"answers": answers}) == expected


class TestQueryPipeline:
    def test_single_batch_skips_merge(self, settings, llm_calls):
        index = FakeIndex([
            make_record("FR", "6.1", 6),
            make_record("PR", "6.2", 6),
            make_record("FR", "2.1", 2),
        ])

        final_state = run_query_pipeline(
            "Extract FR and PR requirements from chapter 6", settings=settings, index=index
        )

        assert [(q, c, p) for q, c, p, _ in index.searches] == [
            ("Extract requirements from chapter 6 type FR", 6, RequirementPrefix.FR),
            ("Extract requirements from chapter 6 type PR", 6, RequirementPrefix.PR),
        ]
        assert len(final_state["records"]) == 2
        assert final_state["answers"] == ["answer 1"]
        assert final_state["final_answer"] == "answer 1"
        assert final_state["status"] == PipelineStatus.COMPLETED.value
        assert llm_calls["merge"] == []

        agents = [e["agent"] for e in final_state["audit_trail"]]
        assert agents == [
            AgentName.QUERY_PLANNING.value,
            AgentName.RETRIEVAL.value,
            AgentName.ANSWERING.value,
            AgentName.FINALIZE.value,
        ]

    def test_many_batches_are_merged(self, settings, llm_calls):
        records = [make_record("FR", f"6.{i}", 6) for i in range(1, 46)]
        records += [make_record("PR", f"6.{i}", 6) for i in range(1, 21)]

        final_state = run_query_pipeline(
            "Extract FR and PR requirements from chapter 6",
            settings=settings,
            index=FakeIndex(records),
        )

        assert len(final_state["records"]) == 65
        assert final_state["answers"] == ["answer 1", "answer 2", "answer 3"]
        assert final_state["final_answer"] == "merged answer"
        assert len(llm_calls["merge"]) == 1
        assert "answer 1\n\nanswer 2\n\nanswer 3" in llm_calls["merge"][0]
        assert final_state["audit_trail"][-1]["agent"] == AgentName.AGGLUTINATION.value

    def test_no_hits_still_completes(self, settings, llm_calls):
        final_state = run_query_pipeline(
            "Extract requirements from chapter 6", settings=settings, index=FakeIndex()
        )

        assert final_state["answers"] == []
        assert final_state["final_answer"] == ""
        assert final_state["status"] == PipelineStatus.COMPLETED.value
        assert llm_calls["answer"] == []

    def test_text_planner_mode(self, settings, llm_calls, monkeypatch):
        settings.planner_output_mode = "text"

        def fake_plan_text(prompt, *, model=None, settings=None, max_retries=None):
            return (
                "Extract requirements from chapter 2 type FR\n"
                "\n"
                "Extract requirements from chapter 2\n"
            )

        monkeypatch.setattr(planning_module, "llm_text_call", fake_plan_text)
        index = FakeIndex([make_record("FR", "2.1", 2), make_record("PA", "2.2", 2)])

        final_state = run_query_pipeline(
            "Extract requirements from chapter 2.", settings=settings, index=index
        )

        assert [(c, p) for _, c, p, _ in index.searches] == [
            (2, "FR"),
            (None, None),
            (2, None),
            (None, None),
        ]
        assert [r["number"] for r in final_state["records"]] == ["2.1", "2.2"]
        assert llm_calls["plan"] == []

    def test_planner_failure_aborts(self, settings, monkeypatch):
        def broken(prompt, output_model, *, model=None, settings=None):
            raise TimeoutError("planner unreachable")

        monkeypatch.setattr(planning_module, "llm_json_call", broken)
        index = FakeIndex([make_record("FR", "6.1", 6)])

        with pytest.raises(QueryPlanningFailed, match="planner unreachable"):
            run_query_pipeline("chapter 6", settings=settings, index=index)
        assert index.searches == []

    def test_empty_question_is_rejected(self, settings, llm_calls):
        with pytest.raises(ValueError, match="No question"):
            run_query_pipeline("   ", settings=settings, index=FakeIndex())
