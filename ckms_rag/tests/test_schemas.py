"""
Tests: sub-query parsing and requirement identity.

Run with:
    pytest ckms_rag/tests/test_schemas.py -v
"""

from ckms_rag.agents.query_planning_agent import parse_sub_queries
from ckms_rag.models.enums import RequirementPrefix
from ckms_rag.models.schemas import SubQuery

from conftest import make_record


class TestSubQueryFromText:
    def test_chapter_and_type(self):
        sq = SubQuery.from_text("Extract every requirement of type PR from chapter 6")

        assert sq.chapter_filter == 6
        assert sq.type_filter == RequirementPrefix.PR
        assert sq.text == "Extract every requirement of type PR from chapter 6"

    def test_chapter_only(self):
        sq = SubQuery.from_text("Extract every requirement in chapter 12")

        assert sq.chapter_filter == 12
        assert sq.type_filter is None

    def test_first_chapter_number_wins(self):
        sq = SubQuery.from_text("Compare chapter 2 with chapter 4")

        assert sq.chapter_filter == 2

    def test_missing_markers_parse_as_none(self):
        sq = SubQuery.from_text("List all FR requirements in the document")

        assert sq.chapter_filter is None
        assert sq.type_filter is None

    def test_markers_are_case_sensitive(self):
        sq = SubQuery.from_text("Requirements of Type PR in Chapter 3")

        assert sq.chapter_filter is None
        assert sq.type_filter is None

    def test_unknown_type_code_is_kept_as_filter(self):
        sq = SubQuery.from_text("Requirements of type XY from chapter 3")

        assert sq.chapter_filter == 3
        assert sq.type_filter == "XY"
        assert sq.has_unknown_type

    def test_known_type_code(self):
        sq = SubQuery(text="q", chapter_filter=1, type_filter=RequirementPrefix.PA)

        assert sq.type_filter == "PA"
        assert not sq.has_unknown_type

    def test_type_needs_two_uppercase_letters(self):
        assert SubQuery.from_text("type F from chapter 3").type_filter is None
        assert SubQuery.from_text("type fr from chapter 3").type_filter is None


class TestParseSubQueries:
    def test_every_split_line_becomes_a_sub_query(self):
        raw = (
            "Extract every requirement of type FR from chapter 4\n"
            "\n"
            "Extract every requirement of type PR from chapter 4\n"
        )
        queries = parse_sub_queries(raw)

        assert len(queries) == 4
        assert [q.type_filter for q in queries] == ["FR", None, "PR", None]
        assert [q.chapter_filter for q in queries] == [4, None, 4, None]
        assert queries[1].text == ""

    def test_lines_are_not_validated(self):
        queries = parse_sub_queries("Here are your queries:\nExtract type PF from chapter 1")

        assert len(queries) == 2
        assert queries[0].chapter_filter is None


class TestIdentityKey:
    def test_key_format(self):
        assert make_record("FR", "1.1", 0).identity_key == "FR:1.1-0"

    def test_page_content_is_not_part_of_identity(self):
        a = make_record("PR", "2.1", 1, text="PR:2.1 first copy")
        b = make_record("PR", "2.1", 1, text="PR:2.1 second copy, reflowed")

        assert a.identity_key == b.identity_key

    def test_chapter_is_part_of_identity(self):
        assert make_record("FR", "1.1", 0).identity_key != make_record("FR", "1.1", 1).identity_key

    def test_unknown_chapter_key(self):
        assert make_record("PA", "9.9", None).identity_key == "PA:9.9-None"
