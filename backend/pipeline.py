# pipeline.py
import logging

from fallback import from_search_context, is_content_empty
from llm import AllProvidersFailed, NoProviderConfigured, ProviderAdapter
from response_parser import ParseFailure, extract_json
from schemas import Difficulty, StructuredContent
from utils import normalize_payload

logger = logging.getLogger("infoquest.pipeline")


def build_study_content(
    topic: str,
    context_text: str,
    difficulty: Difficulty,
    adapter: ProviderAdapter,
) -> StructuredContent:
    """
    AI generation with its fallback chain:

    provider(s) -> JSON extraction -> field normalization -> emptiness check,
    dropping to search-context content when no AI text is usable.
    """
    raw = adapter.generate(topic, context_text, difficulty)

    if isinstance(raw, NoProviderConfigured):
        logger.info("No AI provider configured; using search context for %r", topic)
        return from_search_context(topic, context_text)
    if isinstance(raw, AllProvidersFailed):
        logger.warning("All AI providers failed (last: %s: %s); using search context", raw.provider, raw.cause)
        return from_search_context(topic, context_text)

    parsed = extract_json(raw)
    if isinstance(parsed, ParseFailure):
        logger.info("AI response was not valid JSON (%s); splitting raw text", parsed.reason)

    content = normalize_payload(parsed, raw)
    if is_content_empty(content):
        logger.info("AI response for %r had no usable content; using search context", topic)
        return from_search_context(topic, context_text)
    return content
