"""Content classifiers used by automatic moderation.

- ``OpenAIContentClassifier`` sends text to the OpenAI moderation endpoint and
  maps its categories onto ``FlagType``.
- ``KeywordContentClassifier`` is an offline word filter, used on its own when
  no API key is configured and as the fallback when the API call fails.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, List, Protocol

from openai import AsyncOpenAI

from modwatch.configuration.settings import ClassifierSettings
from modwatch.datatypes.flag_datatypes import ClassificationResult, FlagType, clamp_severity
from modwatch.util.logger import get_logger

logger = get_logger("classifier")

# Top-level OpenAI category (the part before "/") to flag category
OPENAI_CATEGORY_MAP: Dict[str, FlagType] = {
    "hate": FlagType.HATE_SPEECH,
    "harassment": FlagType.HARASSMENT,
    "self-harm": FlagType.SELF_HARM,
    "sexual": FlagType.NSFW,
    "violence": FlagType.VIOLENCE,
}


def map_openai_category(name: str) -> FlagType:
    return OPENAI_CATEGORY_MAP.get(name.split("/", 1)[0], FlagType.OTHER)


class ContentClassifier(Protocol):
    async def classify(self, text: str) -> ClassificationResult: ...


class KeywordContentClassifier:
    """Case-insensitive substring filter with one fixed severity."""

    def __init__(self, filters: Dict[FlagType, List[str]], severity: float = 0.8):
        self._filters = filters
        self._severity = clamp_severity(severity)

    async def classify(self, text: str) -> ClassificationResult:
        lowered = text.lower()
        for category, words in self._filters.items():
            for word in words:
                if word in lowered:
                    return ClassificationResult(
                        flagged=True,
                        category=category,
                        severity=self._severity,
                        raw={"fallback": True, "matched": word},
                    )
        return ClassificationResult.clean({"fallback": True})


class OpenAIContentClassifier:
    """Classify text with the OpenAI moderation endpoint.

    The primary category is the highest-scoring category the endpoint marked
    as flagged, and its score becomes the severity.
    """

    def __init__(self, client: Any, model: str, fallback: ContentClassifier):
        self._client = client
        self._model = model
        self._fallback = fallback

    @staticmethod
    def interpret(result: Dict[str, Any]) -> ClassificationResult:
        """Turn one entry of the endpoint's ``results`` list into a verdict."""
        if not result.get("flagged"):
            return ClassificationResult.clean(result)

        categories = result.get("categories") or {}
        scores = result.get("category_scores") or {}
        category = FlagType.OTHER
        best = 0.0
        for name, score in scores.items():
            if categories.get(name) and score is not None and score > best:
                best = float(score)
                category = map_openai_category(name)
        return ClassificationResult(flagged=True, category=category, severity=clamp_severity(best), raw=result)

    async def classify(self, text: str) -> ClassificationResult:
        try:
            response = await self._client.moderations.create(model=self._model, input=text)
            result = response.results[0].model_dump(by_alias=True, mode="json")
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("[CLASSIFIER] OpenAI moderation failed, using keyword fallback: %s", exc)
            return await self._fallback.classify(text)
        return self.interpret(result)


def build_classifier(settings: ClassifierSettings) -> ContentClassifier:
    """Create the classifier the configuration asks for.

    The OpenAI classifier needs ``OPENAI_API_KEY``; without it the keyword
    filter is used on its own.
    """
    keyword = KeywordContentClassifier(settings.keyword_filters, settings.fallback_severity)
    if settings.provider == "keyword":
        logger.info("[CLASSIFIER] Using keyword classifier")
        return keyword

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        logger.warning("[CLASSIFIER] OPENAI_API_KEY not set; falling back to keyword classifier")
        return keyword

    client = AsyncOpenAI(api_key=api_key, base_url=settings.get("base_url"))
    logger.info("[CLASSIFIER] Using OpenAI moderation model %s", settings.model)
    return OpenAIContentClassifier(client, settings.model, keyword)
