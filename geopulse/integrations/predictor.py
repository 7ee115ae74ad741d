"""
Prediction Collaborator

Estimates how likely an AI answer platform is to cite a page. The tracker
only depends on the Predictor interface:

    result = await predictor.predict(prompt)   # -> dict parsed from JSON

ClaudePredictor is the production implementation. Tests inject canned
responses instead.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import anthropic

from geopulse.utils.config import get_settings

logger = logging.getLogger(__name__)


class PredictionError(Exception):
    """Prediction call failed or returned unusable output."""

    def __init__(self, message: str, prompt: Optional[str] = None):
        super().__init__(message)
        self.prompt = prompt


class Predictor(ABC):
    """predict(prompt) -> structured result."""

    @abstractmethod
    async def predict(self, prompt: str) -> Dict[str, Any]:
        """Return the JSON object the model produced for the prompt."""


SYSTEM_PROMPT = (
    "You are an AI search visibility analyst. You estimate how AI answer engines "
    "(ChatGPT, Perplexity, Google AI Overviews) cite web pages. "
    "Always answer with a single JSON object and nothing else."
)


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Parse the first JSON object from model output.

    Accepts bare JSON or a ```json fenced block.

    Raises:
        PredictionError: No JSON object could be parsed
    """
    fenced = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", text)
    candidates = [fenced.group(1)] if fenced else []

    braces = re.search(r"\{[\s\S]*\}", text)
    if braces:
        candidates.append(braces.group())

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    raise PredictionError("Model output did not contain a JSON object")


class ClaudePredictor(Predictor):
    """
    Predictor backed by the Claude API.

    Usage:
        predictor = ClaudePredictor()
        data = await predictor.predict("... Return JSON: {...}")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        """
        Initialize Claude predictor.

        Args:
            api_key: Anthropic API key (defaults to settings)
            model: Model to use (defaults to settings)
            max_tokens: Maximum output tokens
            temperature: Sampling temperature
            client: Pre-built async client (tests)
        """
        settings = get_settings()
        self.api_key = api_key or settings.ANTHROPIC_API_KEY
        self.model = model or settings.PREDICTOR_MODEL
        self.max_tokens = max_tokens or settings.PREDICTOR_MAX_TOKENS
        self.temperature = settings.PREDICTOR_TEMPERATURE if temperature is None else temperature

        self._client = client
        if self._client is None and self.api_key:
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)

        self.call_count = 0

    async def predict(self, prompt: str) -> Dict[str, Any]:
        if self._client is None:
            raise PredictionError("ANTHROPIC_API_KEY not provided", prompt=prompt)

        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}")
            raise PredictionError(f"Claude API error: {e}", prompt=prompt) from e

        self.call_count += 1

        content = ""
        for block in response.content:
            if hasattr(block, "text"):
                content += block.text

        logger.debug(
            f"Claude prediction: {response.usage.input_tokens} in, "
            f"{response.usage.output_tokens} out"
        )

        try:
            return extract_json_object(content)
        except PredictionError as e:
            e.prompt = prompt
            raise

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
