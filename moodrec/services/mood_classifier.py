"""
Mood classification of journal text via a hosted LLM (LiteLLM).

Only journal ingestion uses this; the recommendation pipeline reads stored
mood signals and never classifies text itself.

Usage:
    classifier = LLMMoodClassifier(model="gemini/gemini-2.5-flash")
    mood = await classifier.classify("Rough day, nothing went right.")
    mood.label, mood.score, mood.category   # "Sad", 0.82, "Negative"
"""

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Protocol

import litellm
from litellm import acompletion

from ..engine.models.mood import MoodClassification

logger = logging.getLogger(__name__)

litellm.suppress_debug_info = True
litellm.drop_params = True

MOOD_LABELS = ["Happy", "Sad", "Angry", "Calm", "Stressed", "Neutral"]
MOOD_CATEGORIES = ["Positive", "Negative", "Neutral"]

DEFAULT_MODEL = "gemini/gemini-2.5-flash"

# Provider prefix -> env var holding its key
API_KEY_ENV_VARS: Dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}

FALLBACK = MoodClassification(label="Neutral", score=0.5, category="Neutral")

PROMPT_TEMPLATE = """You are a mood analysis assistant.
Analyze the user's journal text and output a short JSON object like:
{{
  "moodLabel": "Happy",
  "moodScore": 0.87,
  "moodCategory": "Positive"
}}

Rules:
- moodLabel should be one of {labels}
- moodScore should be a number between 0 and 1.
- moodCategory should be one of {categories}.

Text: \"\"\"{text}\"\"\"
"""


class MoodClassifier(Protocol):
    async def classify(self, text: str) -> MoodClassification:
        ...


def provider_for_model(model: str) -> str:
    """LiteLLM provider prefix of a model id ("gemini/gemini-2.5-flash" -> "gemini")."""
    if "/" in model:
        return model.split("/", 1)[0]
    return "openai"


def parse_json_response(content: str) -> Dict[str, Any]:
    """
    Parse a JSON object from an LLM response: bare JSON, a fenced code block,
    or the first {...} span in surrounding text.

    Raises:
        ValueError: no JSON object found
    """
    content = (content or "").strip()
    try:
        data = json.loads(content)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass
    match = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", content)
    if match:
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            pass
    match = re.search(r"\{[\s\S]*\}", content)
    if match:
        try:
            return json.loads(match.group())
        except json.JSONDecodeError:
            pass
    raise ValueError(f"Could not parse JSON from response: {content[:200]}...")


def _normalize_label(value: Any) -> str:
    label = str(value or "").strip()
    for known in MOOD_LABELS:
        if label.lower() == known.lower():
            return known
    return label or "Neutral"


def classification_from_json(data: Dict[str, Any]) -> MoodClassification:
    """
    Map {moodLabel, moodScore, moodCategory} (snake_case or short keys also
    accepted) to a MoodClassification. A missing score defaults to 0.5; a
    missing category is Positive above 0.6, otherwise Negative.
    """
    label = data.get("moodLabel", data.get("mood_label", data.get("label")))
    score = data.get("moodScore", data.get("mood_score", data.get("score")))
    category = data.get("moodCategory", data.get("mood_category", data.get("category")))
    try:
        score = float(score) if score is not None else 0.5
    except (TypeError, ValueError):
        score = 0.5
    score = max(0.0, min(1.0, score))
    if not category:
        category = "Positive" if score > 0.6 else "Negative"
    return MoodClassification(label=_normalize_label(label), score=score, category=str(category))


class LLMMoodClassifier:
    """MoodClassifier calling any LiteLLM-supported chat model in JSON mode."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: Optional[str] = None,
        temperature: float = 0.0,
        timeout: float = 30.0,
    ):
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.timeout = timeout

    @property
    def provider(self) -> str:
        return provider_for_model(self.model)

    @property
    def is_available(self) -> bool:
        if self.api_key:
            return True
        env_var = API_KEY_ENV_VARS.get(self.provider)
        return bool(env_var and os.getenv(env_var))

    def build_messages(self, text: str) -> List[Dict[str, str]]:
        prompt = PROMPT_TEMPLATE.format(
            labels=json.dumps(MOOD_LABELS),
            categories=json.dumps(MOOD_CATEGORIES),
            text=text,
        )
        return [{"role": "user", "content": prompt}]

    async def classify(self, text: str) -> MoodClassification:
        """
        Classify journal text.

        Provider errors propagate; an unparseable response falls back to
        Neutral/0.5/Neutral.
        """
        if not text or not text.strip():
            raise ValueError("text must be non-empty")
        kwargs: Dict[str, Any] = {}
        if self.api_key:
            kwargs["api_key"] = self.api_key
        response = await acompletion(
            model=self.model,
            messages=self.build_messages(text),
            temperature=self.temperature,
            response_format={"type": "json_object"},
            timeout=self.timeout,
            **kwargs,
        )
        content = response.choices[0].message.content
        try:
            result = classification_from_json(parse_json_response(content))
        except ValueError as e:
            logger.warning("[mood] unparseable classifier response, using fallback: %s", e)
            return FALLBACK
        logger.info("[mood] classified label=%s score=%.2f category=%s", result.label, result.score, result.category)
        return result
