"""
Tests: LLM service retry behaviour with an in-process fake chat model.

Run with:
    pytest ckms_rag/tests/test_llm_service.py -v
"""

from types import SimpleNamespace

import pytest
from langchain_core.messages import HumanMessage, SystemMessage

import ckms_rag.services.llm_service as llm_service
from ckms_rag.models.schemas import SubQuery, SubQueryPlan


class FakeChatModel:
    """Replays scripted responses; an Exception in the script is raised."""

    def __init__(self, script):
        self.script = list(script)
        self.prompts = []
        self.schema = None

    def invoke(self, prompt):
        self.prompts.append(prompt)
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            return SimpleNamespace(content=item, response_metadata={"finish_reason": "stop"})
        return item

    def with_structured_output(self, schema):
        self.schema = schema
        return self


@pytest.fixture
def fake_llm(monkeypatch):
    def install(*script):
        llm = FakeChatModel(script)
        monkeypatch.setattr(llm_service, "get_llm", lambda model=None, settings=None: llm)
        return llm
    return install


class TestLlmTextCall:
    def test_returns_content(self, settings, fake_llm):
        llm = fake_llm("FR:6.1 applies")

        assert llm_service.llm_text_call("q", settings=settings) == "FR:6.1 applies"
        assert llm.prompts == ["q"]

    def test_transient_error_is_retried(self, settings, fake_llm):
        llm = fake_llm(ConnectionError("reset by peer"), "recovered")

        assert llm_service.llm_text_call("q", settings=settings) == "recovered"
        assert len(llm.prompts) == 2

    def test_persistent_error_propagates(self, settings, fake_llm):
        fake_llm(TimeoutError("t1"), TimeoutError("t2"))

        with pytest.raises(TimeoutError, match="t2"):
            llm_service.llm_text_call("q", settings=settings)

    def test_empty_response_retried_when_allowed(self, settings, fake_llm):
        llm = fake_llm("   ", "second try")

        result = llm_service.llm_text_call("q", settings=settings, max_retries=1)

        assert result == "second try"
        assert len(llm.prompts) == 2

    def test_empty_response_returned_when_no_retries_left(self, settings, fake_llm):
        fake_llm("")

        assert llm_service.llm_text_call("q", settings=settings) == ""

    def test_accepts_message_list(self, settings, fake_llm):
        llm = fake_llm("ok")
        messages = [SystemMessage(content="context"), HumanMessage(content="question")]

        llm_service.llm_text_call(messages, settings=settings)

        assert llm.prompts == [messages]


class TestLlmJsonCall:
    def test_parses_into_output_model(self, settings, fake_llm):
        plan = SubQueryPlan(queries=[SubQuery(text="chapter 2", chapter_filter=2)])
        llm = fake_llm(plan)

        result = llm_service.llm_json_call("plan this", SubQueryPlan, settings=settings)

        assert result is plan
        assert llm.schema is SubQueryPlan


class TestGetLlm:
    def test_missing_openai_key(self, settings, monkeypatch):
        monkeypatch.setattr(llm_service, "_llm_instances", {})
        settings.openai_api_key = ""

        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            llm_service.get_llm("gpt-4o-mini", settings)

    def test_missing_groq_key(self, settings, monkeypatch):
        monkeypatch.setattr(llm_service, "_llm_instances", {})
        settings.llm_provider = "groq"
        settings.groq_api_key = ""

        with pytest.raises(ValueError, match="GROQ_API_KEY"):
            llm_service.get_llm("llama-3.3-70b-versatile", settings)
