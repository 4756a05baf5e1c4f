"""
Pytest configuration and fixtures shared by the test modules.
"""

import json

import pytest

from schemas import ResourceOut


class FakeProvider:
    """Stands in for GroqProvider / GeminiProvider."""

    def __init__(self, name="fake", reply="", error=None, log=None):
        self.name = name
        self.reply = reply
        self.error = error
        self.log = log if log is not None else []
        self.prompts = []

    def complete(self, system_prompt, user_prompt):
        self.log.append(self.name)
        self.prompts.append(user_prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def full_payload():
    """A well-formed LLM payload covering every field."""
    return {
        "briefAnswer": "The French Revolution was a period of political upheaval in France. It ended the monarchy.",
        "keyPoints": [
            "It began in 1789 with the Estates-General.",
            "The monarchy was abolished in 1792.",
        ],
        "overview": [
            {"subtopic": "Causes", "content": "Fiscal crisis and Enlightenment ideas."},
            {"subtopic": "Outcome", "content": "Rise of Napoleon Bonaparte."},
        ],
        "flashcards": [
            {"front": "When did the Revolution start?", "back": "1789"},
        ],
        "timeline": [
            {"date": "1789", "title": "Storming of the Bastille", "description": "Parisians seize the fortress."},
            {"date": "1799", "title": "Coup of 18 Brumaire", "description": "Napoleon takes power."},
        ],
        "didYouKnow": ["The guillotine was used until 1977."],
        "mindMap": {
            "nodes": [{"id": "1", "label": "Revolution"}, {"id": "2", "label": "Monarchy"}],
            "connections": [{"from": "1", "to": "2"}],
        },
    }


@pytest.fixture
def full_payload_text(full_payload):
    return json.dumps(full_payload)


@pytest.fixture
def search_results():
    return [
        ResourceOut(title="Nebula - Wikipedia", url="https://en.wikipedia.org/wiki/Nebula",
                    snippet="A nebula is a giant cloud of dust and gas in space."),
        ResourceOut(title="What is a Nebula? | NASA", url="https://spaceplace.nasa.gov/nebula/",
                    snippet="Some nebulae come from the gas and dust thrown out by a dying star."),
    ]


@pytest.fixture
def search_context():
    return (
        "1. Nebula - Wikipedia\n"
        "   URL: https://en.wikipedia.org/wiki/Nebula\n"
        "   A nebula is a giant cloud of dust and gas in space.\n"
        "\n"
        "2. What is a Nebula? | NASA\n"
        "   URL: https://spaceplace.nasa.gov/nebula/\n"
        "   Some nebulae come from the gas and dust thrown out by a dying star."
    )


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider
