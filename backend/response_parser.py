# response_parser.py
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Union

# ```json ... ``` or plain ``` ... ```; the language tag is optional
FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*\s*([\s\S]*?)```")
TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


@dataclass(frozen=True)
class ParseFailure:
    raw_text: str
    reason: str = ""


ParseResult = Union[Dict[str, Any], ParseFailure]


def strip_fences(text: str) -> str:
    match = FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text


def outer_braces(text: str) -> str:
    """Substring from the first '{' to the last '}' (or the text unchanged)."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return text
    return text[start:end + 1]


def repair_json(text: str) -> str:
    return TRAILING_COMMA_RE.sub(r"\1", text)


def _decode(candidate: str) -> Any:
    try:
        return json.loads(candidate)
    except ValueError:
        # well-formed text is never rewritten; repair only after a strict miss
        return json.loads(repair_json(candidate))


def extract_json(raw_text: str) -> ParseResult:
    """
    Pull a JSON object out of an LLM reply.

    Handles code fences, prose around the payload and trailing commas.
    Returns the decoded dict, or ParseFailure carrying the original text.
    Never raises.
    """
    raw_text = raw_text if isinstance(raw_text, str) else ""

    candidate = raw_text.strip()
    candidate = strip_fences(candidate)
    candidate = outer_braces(candidate)

    try:
        parsed = _decode(candidate)
    except (ValueError, RecursionError) as e:
        return ParseFailure(raw_text=raw_text, reason=str(e))

    if not isinstance(parsed, dict):
        return ParseFailure(raw_text=raw_text, reason=f"expected a JSON object, got {type(parsed).__name__}")
    return parsed
