# schemas.py
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

Difficulty = Literal["simple", "medium", "advanced"]
DIFFICULTY_LEVELS = ("simple", "medium", "advanced")
DEFAULT_DIFFICULTY: Difficulty = "medium"


def coerce_difficulty(value: Any) -> Difficulty:
    """Unknown or missing difficulty values fall back to the middle tier."""
    if isinstance(value, str) and value.strip().lower() in DIFFICULTY_LEVELS:
        return value.strip().lower()  # type: ignore[return-value]
    return DEFAULT_DIFFICULTY


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# -----------------------------------------------------------------------------
# Study content
# -----------------------------------------------------------------------------
class OverviewSection(_Frozen):
    subtopic: str
    content: str


class Flashcard(_Frozen):
    front: str
    back: str


class TimelineItem(_Frozen):
    date: str = ""
    title: str = ""
    description: str = ""


class MindMapNode(_Frozen):
    id: str
    label: str


class MindMapConnection(_Frozen):
    from_: str = Field(alias="from")
    to: str


class MindMap(_Frozen):
    nodes: Tuple[MindMapNode, ...]
    connections: Tuple[MindMapConnection, ...] = ()


class StructuredContent(_Frozen):
    """Normalized study content. Optional sections are None, never empty."""

    brief_answer: str = Field(alias="briefAnswer", min_length=1)
    key_points: Tuple[str, ...] = Field(default=(), alias="keyPoints")
    overview: Tuple[OverviewSection, ...] = ()
    flashcards: Tuple[Flashcard, ...] = ()
    timeline: Optional[Tuple[TimelineItem, ...]] = None
    did_you_know: Optional[Tuple[str, ...]] = Field(default=None, alias="didYouKnow")
    mind_map: Optional[MindMap] = Field(default=None, alias="mindMap")


# -----------------------------------------------------------------------------
# Collaborator payloads
# -----------------------------------------------------------------------------
class ResourceOut(BaseModel):
    title: str
    url: str
    snippet: str = ""


class ImageOut(BaseModel):
    id: int
    url: str
    src: Dict[str, str] = Field(default_factory=dict)
    alt: str = ""
    photographer: str = ""
    photographer_url: str = ""


# -----------------------------------------------------------------------------
# HTTP
# -----------------------------------------------------------------------------
class QueryIn(BaseModel):
    query: Any = None
    difficulty: Difficulty = DEFAULT_DIFFICULTY

    @field_validator("difficulty", mode="before")
    @classmethod
    def _coerce_difficulty(cls, value: Any) -> Difficulty:
        return coerce_difficulty(value)


class SearchIn(BaseModel):
    query: str = Field(..., min_length=1)


class QueryOut(StructuredContent):
    query: str
    images: List[ImageOut] = Field(default_factory=list)
    resources: List[ResourceOut] = Field(default_factory=list)


class ExportIn(StructuredContent):
    query: str
    resources: List[ResourceOut] = Field(default_factory=list)
