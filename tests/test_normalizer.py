import json

import pytest
from pydantic import ValidationError

from response_parser import ParseFailure, extract_json
from schemas import Flashcard, MindMapConnection, MindMapNode, OverviewSection, TimelineItem
from utils import (
    PLACEHOLDER_ANSWER,
    RAW_TEXT_LIMIT,
    UNPARSEABLE_ANSWER,
    has_substance,
    normalize_payload,
    resolve_text,
    split_sentences,
)


def dumped(content):
    return json.loads(content.model_dump_json(by_alias=True, exclude_none=True))


def run(raw):
    return normalize_payload(extract_json(raw), raw)


class TestRoundTrip:
    def test_well_formed_payload_survives_unchanged(self, full_payload, full_payload_text):
        assert dumped(run(full_payload_text)) == full_payload

    def test_whitespace_is_trimmed(self):
        payload = {
            "briefAnswer": "  Water boils at 100 degrees Celsius at sea level.  ",
            "keyPoints": ["  Boiling point depends on pressure.  "],
            "overview": [{"subtopic": " Physics ", "content": " Phase change. "}],
            "flashcards": [{"front": " Boiling point? ", "back": " 100 C "}],
        }
        content = run(json.dumps(payload))
        assert content.brief_answer == "Water boils at 100 degrees Celsius at sea level."
        assert content.key_points == ("Boiling point depends on pressure.",)
        assert content.overview == (OverviewSection(subtopic="Physics", content="Phase change."),)
        assert content.flashcards == (Flashcard(front="Boiling point?", back="100 C"),)

    def test_same_input_gives_identical_output(self, full_payload_text):
        assert run(full_payload_text) == run(full_payload_text)
        assert run("I think the answer is great.") == run("I think the answer is great.")

    def test_result_is_immutable(self, full_payload_text):
        content = run(full_payload_text)
        with pytest.raises(ValidationError):
            content.brief_answer = "changed"


class TestOptionalFields:
    def test_missing_optional_fields_are_absent(self, full_payload):
        for key in ("timeline", "didYouKnow", "mindMap"):
            full_payload.pop(key)
        out = dumped(run(json.dumps(full_payload)))
        assert "timeline" not in out
        assert "didYouKnow" not in out
        assert "mindMap" not in out

    def test_empty_optional_fields_are_absent(self, full_payload):
        full_payload.update(timeline=[], didYouKnow=["  "], mindMap={"nodes": [], "connections": []})
        content = run(json.dumps(full_payload))
        assert content.timeline is None
        assert content.did_you_know is None
        assert content.mind_map is None

    def test_timeline_keeps_entries_with_date_or_title(self, full_payload):
        full_payload["timeline"] = [
            {"date": "1905", "title": "Special relativity"},
            {"description": "no date and no title"},
            "junk",
            {"date": 1969, "title": ""},
        ]
        content = normalize_payload(full_payload)
        assert content.timeline == (
            TimelineItem(date="1905", title="Special relativity", description=""),
            TimelineItem(date="1969", title="", description=""),
        )

    def test_did_you_know_synonym(self, full_payload):
        del full_payload["didYouKnow"]
        full_payload["fun_facts"] = ["Octopuses have three hearts.", 7]
        assert normalize_payload(full_payload).did_you_know == ("Octopuses have three hearts.",)

    def test_mind_map_keeps_dangling_edges(self, full_payload):
        full_payload["mindMap"] = {
            "nodes": [{"id": "1", "label": "Cell"}, {"id": 2, "label": "Nucleus"}, {}],
            "connections": [
                {"from": "1", "to": "2"},
                {"from": "1", "to": "99"},
                {"from": "", "to": "2"},
                {"from": "1"},
            ],
        }
        mind_map = normalize_payload(full_payload).mind_map
        assert mind_map.nodes == (MindMapNode(id="1", label="Cell"), MindMapNode(id="2", label="Nucleus"))
        assert mind_map.connections == (
            MindMapConnection(from_="1", to="2"),
            MindMapConnection(from_="1", to="99"),
        )

    def test_mind_map_without_nodes_is_absent(self, full_payload):
        full_payload["mindMap"] = {"nodes": [], "connections": [{"from": "1", "to": "2"}]}
        assert normalize_payload(full_payload).mind_map is None

    def test_mind_map_of_wrong_type_is_absent(self, full_payload):
        full_payload["mindMap"] = ["not", "a", "mapping"]
        assert normalize_payload(full_payload).mind_map is None

    def test_mind_map_serializes_from_key(self, full_payload_text):
        out = dumped(run(full_payload_text))
        assert out["mindMap"]["connections"] == [{"from": "1", "to": "2"}]


class TestFieldRules:
    def test_overview_synonym_keys(self):
        parsed = {
            "briefAnswer": "Wars have many causes.",
            "overview": [{"title": "Causes", "description": "Nationalism and alliances."}],
        }
        assert normalize_payload(parsed).overview == (
            OverviewSection(subtopic="Causes", content="Nationalism and alliances."),
        )

    def test_overview_defaults(self):
        parsed = {
            "briefAnswer": "Short.",
            "overview": [{"content": "Body only."}, {"name": "Title only"}, {}, "text", {"subtopic": "  "}],
        }
        assert normalize_payload(parsed).overview == (
            OverviewSection(subtopic="Section", content="Body only."),
            OverviewSection(subtopic="Title only", content="Title only"),
        )

    def test_flashcard_synonyms_and_defaults(self):
        parsed = {
            "briefAnswer": "Cards.",
            "flashcards": [
                {"question": "Capital of France?", "answer": "Paris"},
                {"term": "Osmosis", "definition": "Diffusion of water."},
                {"front": "Only a front"},
                {"back": "Only a back"},
                {"front": "   ", "back": ""},
                {},
                ["not", "a", "card"],
            ],
        }
        assert normalize_payload(parsed).flashcards == (
            Flashcard(front="Capital of France?", back="Paris"),
            Flashcard(front="Osmosis", back="Diffusion of water."),
            Flashcard(front="Only a front", back="Only a front"),
            Flashcard(front="Only a back", back="Only a back"),
        )

    def test_key_points_accept_only_strings(self):
        parsed = {"briefAnswer": "Points.", "keyPoints": ["a", 3, "  ", None, " b ", {"x": 1}]}
        assert normalize_payload(parsed).key_points == ("a", "b")

    def test_brief_answer_synonyms(self):
        parsed = {"brief_answer": "From snake case.", "keyPoints": ["k"]}
        assert normalize_payload(parsed).brief_answer == "From snake case."

    def test_brief_answer_falls_back_to_raw_text(self):
        raw = "x" * (RAW_TEXT_LIMIT + 100)
        content = normalize_payload({"keyPoints": ["k"], "briefAnswer": 12}, raw)
        assert content.brief_answer == "x" * RAW_TEXT_LIMIT

    def test_brief_answer_placeholder(self):
        assert normalize_payload({"keyPoints": ["k"]}, "").brief_answer == PLACEHOLDER_ANSWER

    def test_empty_key_points_use_brief_answer(self):
        parsed = {"briefAnswer": "Only overview here.", "overview": [{"subtopic": "A", "content": "B"}]}
        content = normalize_payload(parsed)
        assert content.key_points == ("Only overview here.",)
        assert content.flashcards == ()

    def test_empty_overview_uses_brief_answer(self):
        parsed = {"briefAnswer": "Only points here.", "keyPoints": ["k"], "overview": "not a list"}
        content = normalize_payload(parsed)
        assert content.overview == (OverviewSection(subtopic="Overview", content="Only points here."),)
        assert content.key_points == ("k",)

    def test_malformed_field_does_not_spoil_the_rest(self, full_payload):
        full_payload["flashcards"] = "oops"
        full_payload["timeline"] = {"date": "1789"}
        content = normalize_payload(full_payload)
        assert content.flashcards == ()
        assert content.timeline is None
        assert len(content.key_points) == 2
        assert content.mind_map is not None


class TestDerivedContent:
    def test_all_collections_empty_are_derived_from_brief_answer(self):
        parsed = {
            "briefAnswer": "Photosynthesis converts light into chemical energy. "
                           "Plants use chlorophyll to capture sunlight! Why?",
            "keyPoints": [],
            "didYouKnow": ["dropped on this path"],
        }
        content = normalize_payload(parsed)
        assert content.key_points == (
            "Photosynthesis converts light into chemical energy",
            "Plants use chlorophyll to capture sunlight",
        )
        assert content.overview == (OverviewSection(subtopic="Summary", content=parsed["briefAnswer"]),)
        assert content.flashcards == (
            Flashcard(front="Key point 1", back="Photosynthesis converts light into chemical energy"),
            Flashcard(front="Key point 2", back="Plants use chlorophyll to capture sunlight"),
        )
        assert content.did_you_know is None

    def test_derived_lists_are_capped(self):
        brief = " ".join(f"This is sentence number {i} here." for i in range(8))
        content = normalize_payload({"briefAnswer": brief})
        assert len(content.key_points) == 5
        assert len(content.flashcards) == 4

    def test_non_object_payload_uses_raw_text(self):
        content = normalize_payload(["a", "list"], "A list came back from the model instead.")
        assert content.brief_answer == "A list came back from the model instead."
        assert content.key_points == ("A list came back from the model instead",)

    def test_malformed_payload_scenario(self):
        content = run("I think the answer is great.")
        assert content.brief_answer == "I think the answer is great."
        assert content.key_points == ("I think the answer is great",)
        assert content.overview == (OverviewSection(subtopic="Summary", content="I think the answer is great."),)
        assert content.flashcards == (Flashcard(front="Point 1", back="I think the answer is great"),)
        assert content.timeline is None and content.mind_map is None

    def test_parse_failure_with_short_text(self):
        content = normalize_payload(ParseFailure("Hi."), "Hi.")
        assert content.brief_answer == "Hi."
        assert content.key_points == ("Hi.",)

    def test_parse_failure_with_empty_text(self):
        content = normalize_payload(ParseFailure(""), "")
        assert content.brief_answer == UNPARSEABLE_ANSWER
        assert content.key_points == ("Could not parse AI response",)

    def test_parse_failure_truncates_raw_text(self):
        raw = "word " * 300
        content = normalize_payload(ParseFailure(raw), raw)
        assert len(content.brief_answer) <= RAW_TEXT_LIMIT

    @pytest.mark.parametrize("raw", [
        "", "   ", "{", "null", "[]", "{}", '{"briefAnswer": ""}', '{"keyPoints": 5}',
        "```json\n```", '{"overview": [null, 1, "x"]}', "ok", "I think the answer is great.",
    ])
    def test_every_input_yields_renderable_content(self, raw):
        content = run(raw)
        assert content.brief_answer.strip()
        assert content.key_points
        assert content.overview
        assert content.flashcards


class TestHelpers:
    def test_split_sentences_threshold(self):
        text = "Short one. This sentence is long enough! Tiny? Another long enough sentence"
        assert split_sentences(text) == ["This sentence is long enough", "Another long enough sentence"]

    def test_split_sentences_keeps_whole_text_when_nothing_survives(self):
        assert split_sentences("Too short.") == ["Too short."]
        assert split_sentences("   ") == []

    def test_resolve_text_priority(self):
        assert resolve_text({"title": "T", "subtopic": "S"}, "subtopic") == "S"
        assert resolve_text({"subtopic": "", "section": "Sec"}, "subtopic") == "Sec"
        assert resolve_text({"subtopic": True}, "subtopic") == ""

    def test_has_substance(self):
        assert has_substance("A real sentence of text.")
        assert not has_substance("short")
        assert not has_substance("Could not parse AI response")
        assert not has_substance(PLACEHOLDER_ANSWER)
