"""Tests for prompt builders, SEO output parsing and static fallbacks."""

from app.orchestrator.fallback_data import learn_fallback, seo_fallback
from app.orchestrator.prompts import build_learn_prompt, build_seo_prompt
from app.orchestrator.schemas import LearnRequest, SeoRequest
from app.orchestrator.seo_parser import parse_seo_payload


class TestSeoPrompt:
    def test_defaults(self):
        prompt = build_seo_prompt(SeoRequest())
        assert "Language: English." in prompt
        assert "Video type: Long form." in prompt
        assert "Topic: General." in prompt
        assert prompt == prompt.strip()

    def test_language_labels(self):
        assert "Language: Hindi." in build_seo_prompt(SeoRequest(language="hi"))
        assert "Language: Hinglish." in build_seo_prompt(SeoRequest(language="hinglish"))
        assert "Language: English." in build_seo_prompt(SeoRequest(language="fr"))

    def test_shorts(self):
        assert "Video type: Shorts." in build_seo_prompt(SeoRequest(shorts=True))

    def test_script_truncated(self):
        prompt = build_seo_prompt(SeoRequest(script="a" * 1500 + "TAIL"))
        assert "a" * 1000 + "." in prompt
        assert "TAIL" not in prompt

    def test_braces_in_topic_are_literal(self):
        assert "Topic: {weird}." in build_seo_prompt(SeoRequest(topic="{weird}"))


class TestLearnPrompt:
    def test_fields(self):
        prompt = build_learn_prompt(LearnRequest(question="Why tags?", section="metadata"))
        assert "Section: metadata." in prompt
        assert "User question: Why tags?." in prompt
        assert "Return plain text (no JSON)." in prompt

    def test_hinglish_is_english_for_learn(self):
        assert "Language: English." in build_learn_prompt(LearnRequest(language="hinglish"))
        assert "Language: Hindi." in build_learn_prompt(LearnRequest(language="hi"))

    def test_question_truncated(self):
        prompt = build_learn_prompt(LearnRequest(question="q" * 900))
        assert "q" * 800 + "." in prompt
        assert "q" * 801 not in prompt


class TestParseSeoPayload:
    def test_fenced_json(self, seo_json_text):
        data = parse_seo_payload(seo_json_text)
        assert data.title == "Espresso at Home in 60s"
        assert data.tags == ["espresso", "coffee", "barista", "home cafe"]

    def test_comma_separated_tags(self):
        data = parse_seo_payload('{"title": "T", "description": "D", "tags": "a, b ,, c"}')
        assert data.tags == ["a", "b", "c"]

    def test_description_as_lines(self):
        data = parse_seo_payload('{"title": "T", "description": ["one", "two"]}')
        assert data.description == "one\ntwo"

    def test_plain_text_fallback(self):
        text = "x" * 600
        data = parse_seo_payload(text)
        assert data.title == "x" * 100
        assert data.description == "x" * 400
        assert data.tags == []

    def test_skips_leading_unrelated_object(self):
        text = 'Using {"model": "flash"} here you go: {"title": "Cold brew", "tags": ["coffee"]}'
        data = parse_seo_payload(text)
        assert data.title == "Cold brew"
        assert data.tags == ["coffee"]

    def test_irrelevant_json_falls_back(self):
        text = 'Result: {"status": "done"}'
        data = parse_seo_payload(text)
        assert data.title == text
        assert data.tags == []

    def test_empty_text(self):
        assert parse_seo_payload("").model_dump() == {"title": "", "description": "", "tags": []}


class TestFallbackData:
    def test_seo_uses_topic(self):
        data = seo_fallback(SeoRequest(topic="vlogs"))
        assert data.title == "Quick tips: vlogs"
        assert data.description.startswith("Quick guide for vlogs:")

    def test_seo_without_topic(self):
        data = seo_fallback(SeoRequest())
        assert data.title == "Quick tips: Grow on YouTube"
        assert data.description.startswith("Quick guide for YouTube:")

    def test_learn_not_empty(self):
        assert "Full AI unavailable" in learn_fallback().answer
