# fallback.py
import re
from typing import List, Set

from schemas import Flashcard, OverviewSection, StructuredContent
from utils import has_substance, split_sentences

MAX_SNIPPETS = 6
MAX_POINTS = 5
MAX_CARDS = 4
SEARCH_RESULTS_LABEL = "Search Results"
NO_RESULTS_TEXT = "No results found. Try a different search query."

ORDINAL_RE = re.compile(r"^\d+\.\s*")
ENTRY_SPLIT_RE = re.compile(r"\n\s*\n")
# fronts of cards derived by sentence splitting: "Key point N" or "Point N"
DERIVED_CARD_RE = re.compile(r"^(Key point|Point) \d+$")


def search_snippets(context_text: str, limit: int = MAX_SNIPPETS) -> List[str]:
    """First line of each blank-line separated entry, without its 'N.' prefix."""
    snippets = []
    for entry in ENTRY_SPLIT_RE.split(context_text or ""):
        for line in entry.splitlines():
            line = ORDINAL_RE.sub("", line.strip()).strip()
            if line:
                snippets.append(line)
                break
        if len(snippets) >= limit:
            break
    return snippets


def from_search_context(topic: str, context_text: str) -> StructuredContent:
    """Study content built from search results only, for when the AI gave us nothing."""
    snippets = search_snippets(context_text)

    brief_answer = (
        f'Here\'s what we found about "{topic}" from web search. '
        "For richer AI-generated responses, add a GROQ_API_KEY or GEMINI_API_KEY to your .env file."
    )

    return StructuredContent(
        brief_answer=brief_answer,
        key_points=tuple(snippets[:MAX_POINTS]),
        overview=(
            OverviewSection(
                subtopic=SEARCH_RESULTS_LABEL,
                content="\n\n".join(snippets) or NO_RESULTS_TEXT,
            ),
        ),
        flashcards=tuple(
            Flashcard(front=f"Key point {i + 1}", back=s)
            for i, s in enumerate(snippets[:MAX_CARDS])
        ),
    )


def _brief_echoes(brief_answer: str) -> Set[str]:
    """Texts the normalizer synthesizes from the brief answer alone."""
    brief_answer = brief_answer.strip()
    return {brief_answer, *split_sentences(brief_answer)}


def is_content_empty(content: StructuredContent) -> bool:
    """
    True when the brief answer is too short and the collections add nothing.

    Key points, overview contents and flashcards that merely restate the
    brief answer (as the normalizer synthesizes them) do not count.
    """
    if has_substance(content.brief_answer):
        return False

    echoes = _brief_echoes(content.brief_answer)
    if any(point.strip() not in echoes for point in content.key_points):
        return False
    if any(s.content.strip() and s.content.strip() not in echoes for s in content.overview):
        return False
    return all(
        DERIVED_CARD_RE.match(card.front) and card.back.strip() in echoes
        for card in content.flashcards
    )
