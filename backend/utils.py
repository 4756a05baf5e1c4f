# utils.py
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from response_parser import ParseFailure
from schemas import (
    Flashcard,
    MindMap,
    MindMapConnection,
    MindMapNode,
    OverviewSection,
    StructuredContent,
    TimelineItem,
)

RAW_TEXT_LIMIT = 600
MIN_SENTENCE_CHARS = 15
MAX_DERIVED_POINTS = 5
MAX_DERIVED_CARDS = 4

PLACEHOLDER_ANSWER = "Information retrieved."
UNPARSEABLE_ANSWER = "Could not parse AI response."
# compared without end punctuation, since sentence splitting drops it
PLACEHOLDER_STEMS = frozenset(p.rstrip(".") for p in (PLACEHOLDER_ANSWER, UNPARSEABLE_ANSWER))

DEFAULT_SUBTOPIC = "Section"
OVERVIEW_LABEL = "Overview"
SUMMARY_LABEL = "Summary"

# Candidate keys per field, highest priority first.
FIELD_KEYS: Dict[str, Tuple[str, ...]] = {
    "brief_answer": ("briefAnswer", "brief_answer", "brief", "summary"),
    "key_points": ("keyPoints", "key_points"),
    "overview": ("overview", "sections"),
    "flashcards": ("flashcards", "flash_cards", "cards"),
    "timeline": ("timeline",),
    "did_you_know": ("didYouKnow", "did_you_know", "funFacts", "fun_facts"),
    "mind_map": ("mindMap", "mind_map"),
    "subtopic": ("subtopic", "title", "section", "name"),
    "content": ("content", "description", "text", "body"),
    "front": ("front", "question", "term"),
    "back": ("back", "answer", "definition"),
    "date": ("date",),
    "title": ("title",),
    "description": ("description",),
    "nodes": ("nodes",),
    "connections": ("connections", "edges"),
    "node_id": ("id",),
    "label": ("label",),
    "from": ("from", "source"),
    "to": ("to", "target"),
}

SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


# -----------------------------------------------------------------------------
# Small coercion helpers
# -----------------------------------------------------------------------------
def as_text(value: Any) -> str:
    """Strings are trimmed, numbers stringified; everything else is empty."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def resolve_key(mapping: Mapping[str, Any], field: str) -> Any:
    """First value present (not None) under the field's candidate keys."""
    for key in FIELD_KEYS[field]:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


def resolve_text(mapping: Mapping[str, Any], field: str) -> str:
    """First non-empty text under the field's candidate keys."""
    for key in FIELD_KEYS[field]:
        text = as_text(mapping.get(key))
        if text:
            return text
    return ""


def _mappings(value: Any) -> List[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    out = []
    for item in value:
        if isinstance(item, str) and item.strip():
            out.append(item.strip())
    return out


def split_sentences(text: str, min_chars: int = MIN_SENTENCE_CHARS) -> List[str]:
    """
    Split on sentence punctuation and keep pieces longer than min_chars.

    If nothing survives, the whole trimmed text is returned as the only
    sentence so derived sections are never empty for non-empty text.
    """
    text = (text or "").strip()
    sentences = [s.strip() for s in SENTENCE_SPLIT_RE.split(text)]
    sentences = [s for s in sentences if len(s) > min_chars]
    if not sentences and text:
        return [text]
    return sentences


def has_substance(text: str) -> bool:
    text = (text or "").strip()
    return len(text) >= MIN_SENTENCE_CHARS and text.rstrip(".!? ") not in PLACEHOLDER_STEMS


# -----------------------------------------------------------------------------
# Per-field normalizers
# -----------------------------------------------------------------------------
def _brief_answer(parsed: Mapping[str, Any], raw_text: str) -> str:
    for key in FIELD_KEYS["brief_answer"]:
        value = parsed.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return raw_text.strip()[:RAW_TEXT_LIMIT].strip() or PLACEHOLDER_ANSWER


def _overview(value: Any) -> List[OverviewSection]:
    sections = []
    for item in _mappings(value):
        subtopic = resolve_text(item, "subtopic")
        content = resolve_text(item, "content")
        if not subtopic and not content:
            continue
        subtopic = subtopic or DEFAULT_SUBTOPIC
        sections.append(OverviewSection(subtopic=subtopic, content=content or subtopic))
    return sections


def _flashcards(value: Any) -> List[Flashcard]:
    cards = []
    for item in _mappings(value):
        front = resolve_text(item, "front")
        back = resolve_text(item, "back")
        front, back = front or back, back or front
        if front and back:
            cards.append(Flashcard(front=front, back=back))
    return cards


def _timeline(value: Any) -> Optional[Tuple[TimelineItem, ...]]:
    items = []
    for item in _mappings(value):
        entry = TimelineItem(
            date=resolve_text(item, "date"),
            title=resolve_text(item, "title"),
            description=resolve_text(item, "description"),
        )
        if entry.date or entry.title:
            items.append(entry)
    return tuple(items) or None


def _mind_map(value: Any) -> Optional[MindMap]:
    if not isinstance(value, Mapping):
        return None

    nodes = []
    for item in _mappings(resolve_key(value, "nodes")):
        node_id = resolve_text(item, "node_id")
        label = resolve_text(item, "label")
        if node_id or label:
            nodes.append(MindMapNode(id=node_id, label=label))
    if not nodes:
        return None

    # endpoints are not checked against node ids here
    connections = []
    for item in _mappings(resolve_key(value, "connections")):
        source = resolve_text(item, "from")
        target = resolve_text(item, "to")
        if source and target:
            connections.append(MindMapConnection(from_=source, to=target))

    return MindMap(nodes=tuple(nodes), connections=tuple(connections))


# -----------------------------------------------------------------------------
# Whole-payload normalization
# -----------------------------------------------------------------------------
def derive_from_text(text: str, card_stem: str = "Key point") -> StructuredContent:
    """Build the sentence-split shape used when the payload has no usable collections."""
    text = text.strip() or PLACEHOLDER_ANSWER
    sentences = split_sentences(text)
    return StructuredContent(
        brief_answer=text,
        key_points=tuple(sentences[:MAX_DERIVED_POINTS]),
        overview=(OverviewSection(subtopic=SUMMARY_LABEL, content=text),),
        flashcards=tuple(
            Flashcard(front=f"{card_stem} {i + 1}", back=s)
            for i, s in enumerate(sentences[:MAX_DERIVED_CARDS])
        ),
    )


def normalize_payload(parsed: Union[Mapping[str, Any], ParseFailure], raw_text: str = "") -> StructuredContent:
    """
    Coerce a decoded LLM payload into StructuredContent.

    Each field is normalized on its own, so one malformed field never spoils
    the others. A ParseFailure is answered from the raw text alone. This
    function always returns a complete value.
    """
    raw_text = raw_text if isinstance(raw_text, str) else ""

    if isinstance(parsed, ParseFailure):
        text = (parsed.raw_text or raw_text).strip()[:RAW_TEXT_LIMIT].strip()
        return derive_from_text(text or UNPARSEABLE_ANSWER, card_stem="Point")

    if not isinstance(parsed, Mapping):
        parsed = {}

    brief_answer = _brief_answer(parsed, raw_text)
    key_points = _strings(resolve_key(parsed, "key_points"))
    overview = _overview(resolve_key(parsed, "overview"))
    flashcards = _flashcards(resolve_key(parsed, "flashcards"))

    if not key_points and not overview and not flashcards:
        return derive_from_text(brief_answer)

    did_you_know = _strings(resolve_key(parsed, "did_you_know"))

    return StructuredContent(
        brief_answer=brief_answer,
        key_points=tuple(key_points) or (brief_answer,),
        overview=tuple(overview) or (OverviewSection(subtopic=OVERVIEW_LABEL, content=brief_answer),),
        flashcards=tuple(flashcards),
        timeline=_timeline(resolve_key(parsed, "timeline")),
        did_you_know=tuple(did_you_know) or None,
        mind_map=_mind_map(resolve_key(parsed, "mind_map")),
    )
