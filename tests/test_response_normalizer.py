"""
Unit tests for turning raw capability output into a PolicyAnalysis.
"""

import json
import logging

import pytest

from policyease.agent.response_normalizer import map_sources, normalize, normalize_priority
from policyease.agent.schemas.analysis import DesignPriority
from policyease.agent.schemas.generation import GroundingReference, SchemaVariant
from policyease.agent.schemas.requests import OutputLanguage
from policyease.core.errors import MalformedOutput


def _raw(payload) -> str:
    return json.dumps(payload, ensure_ascii=False)


class TestWellFormedOutput:

    def test_structured_output(self, structured_payload):
        analysis = normalize(_raw(structured_payload), SchemaVariant.BY_NAME)

        assert analysis.title == "中华人民共和国个人信息保护法"
        assert [a.article_number for a in analysis.articles] == ["Article 13", "Article 1"]
        assert analysis.articles[0].design_priority == DesignPriority.HIGH
        assert analysis.articles[0].has_design_implication is True
        assert analysis.articles[1].has_design_implication is False
        assert analysis.sources is None
        assert analysis.eli5_explanation is None

    def test_text_variant_gets_snapshot_and_no_articles(self, text_payload):
        analysis = normalize(_raw(text_payload), SchemaVariant.BY_TEXT, language=OutputLanguage.EN)

        assert analysis.articles == ()
        assert len(analysis.history) == 1
        assert analysis.history[0].version_name == "Current text"
        assert analysis.mnemonic_device.phrase == "PPG"
        assert analysis.action_items[0].deadline == "Ongoing"

    def test_missing_tone_defaults_to_empty(self, structured_payload):
        del structured_payload["toneAndIntent"]
        analysis = normalize(_raw(structured_payload), SchemaVariant.BY_DOCUMENT)
        assert analysis.tone_and_intent == ""

    def test_normalization_is_idempotent(self, structured_payload, citations):
        first = normalize(_raw(structured_payload), SchemaVariant.BY_NAME, citations)
        wire = first.to_wire()
        second = normalize(_raw(wire), SchemaVariant.BY_NAME, wire["sources"])

        assert second == first

    def test_text_variant_normalization_is_idempotent(self, text_payload):
        first = normalize(_raw(text_payload), SchemaVariant.BY_TEXT, language=OutputLanguage.EN)
        second = normalize(_raw(first.to_wire()), SchemaVariant.BY_TEXT, language=OutputLanguage.EN)

        assert second == first


class TestDesignPriority:

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("high", DesignPriority.HIGH),
            (" Medium ", DesignPriority.MEDIUM),
            ("LOW", DesignPriority.LOW),
            ("none", DesignPriority.NONE),
            ("critical", None),
            (3, None),
            (None, None),
        ],
    )
    def test_normalize_priority(self, value, expected):
        assert normalize_priority(value) == expected

    def test_out_of_range_priority_is_recovered(self, structured_payload, caplog):
        structured_payload["articles"][0]["designPriority"] = "critical"

        with caplog.at_level(logging.WARNING):
            analysis = normalize(_raw(structured_payload), SchemaVariant.BY_NAME)

        article = analysis.articles[0]
        assert article.design_priority == DesignPriority.NONE
        assert article.system_design_implication is None
        assert "critical" in caplog.text

    def test_missing_priority_becomes_none(self, structured_payload):
        del structured_payload["articles"][0]["designPriority"]
        analysis = normalize(_raw(structured_payload), SchemaVariant.BY_NAME)
        assert analysis.articles[0].design_priority == DesignPriority.NONE
        assert analysis.design_articles == ()


class TestSources:

    def test_duplicate_uris_collapse_first_wins(self, structured_payload, citations):
        analysis = normalize(_raw(structured_payload), SchemaVariant.BY_NAME, citations)

        assert [s.uri for s in analysis.sources] == [
            "https://www.npc.gov.cn/pipl",
            "https://www.cac.gov.cn/notice",
        ]
        assert analysis.sources[0].title == "NPC"
        assert analysis.sources[1].title == "www.cac.gov.cn"

    def test_unusable_links_are_dropped(self):
        refs = [
            GroundingReference(title="x", uri="javascript:alert(1)"),
            GroundingReference(title="y", uri=None),
            {"title": "z", "uri": "ftp://example.com/file"},
        ]
        assert map_sources(refs) is None

    @pytest.mark.parametrize("variant", [SchemaVariant.BY_DOCUMENT, SchemaVariant.BY_NAME])
    def test_sources_in_generated_text_are_ignored(self, structured_payload, variant):
        structured_payload["sources"] = [{"title": "made up", "uri": "https://fake.example/x"}]

        analysis = normalize(_raw(structured_payload), variant)

        assert analysis.sources is None

    def test_only_grounding_references_become_sources(self, structured_payload, citations):
        structured_payload["sources"] = [{"title": "made up", "uri": "https://fake.example/x"}]

        analysis = normalize(_raw(structured_payload), SchemaVariant.BY_NAME, citations)

        assert "https://fake.example/x" not in [s.uri for s in analysis.sources]
        assert len(analysis.sources) == 2

    def test_empty_references_leave_sources_unset(self, structured_payload):
        analysis = normalize(_raw(structured_payload), SchemaVariant.BY_NAME, [])
        assert analysis.sources is None
        assert "sources" not in analysis.to_wire()


class TestMalformedOutput:

    @pytest.mark.parametrize("raw", ["not json", "```json\n{}\n```", "[1, 2]", '"title"'])
    def test_unparseable_or_non_object(self, raw):
        with pytest.raises(MalformedOutput) as exc_info:
            normalize(raw, SchemaVariant.BY_NAME)
        assert exc_info.value.raw_text == raw

    @pytest.mark.parametrize("field", ["title", "summaryTldr", "coreConcepts", "flashcards"])
    def test_missing_required_field(self, structured_payload, field):
        del structured_payload[field]
        with pytest.raises(MalformedOutput, match=field):
            normalize(_raw(structured_payload), SchemaVariant.BY_NAME)

    def test_null_required_field_counts_as_missing(self, text_payload):
        text_payload["mnemonicDevice"] = None
        with pytest.raises(MalformedOutput, match="mnemonicDevice"):
            normalize(_raw(text_payload), SchemaVariant.BY_TEXT)

    def test_blank_title(self, structured_payload):
        structured_payload["title"] = "   "
        with pytest.raises(MalformedOutput):
            normalize(_raw(structured_payload), SchemaVariant.BY_NAME)

    def test_wrong_shape_is_malformed(self, structured_payload):
        structured_payload["coreConcepts"] = [{"term": "only a term"}]
        with pytest.raises(MalformedOutput):
            normalize(_raw(structured_payload), SchemaVariant.BY_NAME)
