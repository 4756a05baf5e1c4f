# llm.py  (Groq first, Gemini via google-generativeai as the fallback hop)
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import google.generativeai as genai
from groq import Groq

from config import Settings
from schemas import Difficulty, coerce_difficulty

logger = logging.getLogger("infoquest.llm")

PROMPT_PATH = os.path.join(os.path.dirname(__file__), "prompts", "study_prompt.md")
with open(PROMPT_PATH, "r", encoding="utf-8") as f:
    SYSTEM_PROMPT = f.read().strip()

DIFFICULTY_HINTS: Dict[str, str] = {
    "simple": "Use very simple language. Explain like to a curious 10-year-old. Short sentences. Avoid jargon.",
    "medium": "Use clear, accessible language. Suitable for general adult audience.",
    "advanced": "Use precise terminology. Include technical details and nuances. Suitable for experts.",
}

MAX_TOKENS = 2048


class LLMError(Exception):
    pass


# --- Outcomes other than raw text
@dataclass(frozen=True)
class NoProviderConfigured:
    pass


@dataclass(frozen=True)
class AllProvidersFailed:
    cause: Exception
    provider: str = ""


AdapterFailure = Union[NoProviderConfigured, AllProvidersFailed]
GenerateResult = Union[str, AdapterFailure]


def build_user_prompt(topic: str, context_text: str, difficulty: Difficulty) -> str:
    hint = DIFFICULTY_HINTS[coerce_difficulty(difficulty)]
    context_block = f"Web context:\n{context_text}\n" if context_text else ""
    return f"""Topic: "{topic}"
{hint}

{context_block}
Return a JSON object with these exact keys:
- briefAnswer: 2-3 sentence summary (required)
- keyPoints: array of 4-6 strings
- overview: array of objects with "subtopic" and "content"
- flashcards: array of objects with "front" and "back"
- timeline: REQUIRED for historical topics, people, events, wars, revolutions, inventions, or anything with dates. Array of 4-8 objects: {{"date":"YYYY or YYYY-MM","title":"Event name","description":"Brief detail"}}. Include key milestones in chronological order. If not applicable, use [].
- didYouKnow: 3-5 fun facts (array of strings)
- mindMap: {{"nodes":[{{"id":"1","label":"Concept"}}],"connections":[{{"from":"1","to":"2"}}]}} - 5-8 nodes, 4-8 connections

Return ONLY valid JSON."""


# -----------------------------------------------------------------------------
# Providers
# -----------------------------------------------------------------------------
class GroqProvider:
    name = "groq"

    def __init__(self, api_key: str, model: str, client: Any = None):
        self.model = model
        self.client = client or Groq(api_key=api_key)

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=0.5,
                max_tokens=MAX_TOKENS,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            raise LLMError(f"Groq request failed: {e}") from e

        choices = getattr(completion, "choices", None) or []
        content = choices[0].message.content if choices else ""
        if not content or not content.strip():
            raise LLMError(f"Groq model {self.model} returned empty response.")
        return content


class GeminiProvider:
    name = "gemini"

    def __init__(self, api_key: str, model: str, client: Any = None):
        self.model = model
        if client is None:
            genai.configure(api_key=api_key)
        self._client = client

    def _model(self, system_prompt: str):
        if self._client is not None:
            return self._client
        return genai.GenerativeModel(self.model, system_instruction=system_prompt)

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        try:
            resp = self._model(system_prompt).generate_content(
                user_prompt,
                generation_config={"temperature": 0.5, "max_output_tokens": MAX_TOKENS},
            )
            # .text raises on blocked responses
            text = resp.text
        except Exception as e:
            raise LLMError(f"Gemini request failed: {e}") from e

        if not text or not text.strip():
            raise LLMError(f"Gemini model {self.model} returned empty response.")
        return text


# -----------------------------------------------------------------------------
# Adapter
# -----------------------------------------------------------------------------
class ProviderAdapter:
    """Tries the primary provider, then the secondary one. Never raises from generate()."""

    def __init__(self, primary=None, secondary=None):
        if primary is None and secondary is not None:
            primary, secondary = secondary, None
        self.primary = primary
        self.secondary = secondary

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderAdapter":
        providers = []
        if settings.groq_api_key:
            providers.append(GroqProvider(settings.groq_api_key, settings.groq_model))
        if settings.gemini_api_key:
            providers.append(GeminiProvider(settings.gemini_api_key, settings.gemini_model))
        return cls(*providers)

    @property
    def providers(self) -> List[Any]:
        return [p for p in (self.primary, self.secondary) if p is not None]

    def _run(self, system_prompt: str, user_prompt: str) -> Union[tuple, AdapterFailure]:
        providers = self.providers
        if not providers:
            return NoProviderConfigured()

        last_error: Optional[Exception] = None
        last_name = ""
        for provider in providers:
            try:
                logger.info("Trying provider: %s", provider.name)
                return provider.name, provider.complete(system_prompt, user_prompt)
            except Exception as e:
                logger.warning("Provider %s failed: %s", provider.name, e)
                last_error, last_name = e, provider.name
        return AllProvidersFailed(cause=last_error, provider=last_name)

    def generate(self, topic: str, context_text: str = "", difficulty: Difficulty = "medium") -> GenerateResult:
        user_prompt = build_user_prompt(topic, context_text or "", difficulty)
        outcome = self._run(SYSTEM_PROMPT, user_prompt)
        if isinstance(outcome, tuple):
            return outcome[1]
        return outcome

    # --- Simple ping for /api/llm-test
    def ping(self) -> dict:
        """
        Returns {"ok": True, "provider": <name>, "content": "..."} on success,
                or {"ok": False, "error": "..."} on failure.
        """
        outcome = self._run("Reply with a JSON object.", 'Reply with {"status": "OK"}')
        if isinstance(outcome, NoProviderConfigured):
            return {"ok": False, "error": "No AI provider configured (set GROQ_API_KEY or GEMINI_API_KEY)."}
        if isinstance(outcome, AllProvidersFailed):
            return {"ok": False, "error": f"{outcome.provider}: {outcome.cause}"}
        name, content = outcome
        return {"ok": True, "provider": name, "content": content.strip()[:200]}
