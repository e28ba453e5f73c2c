"""
Gemini client and verdict extraction for the token health check
"""
from typing import Any, Dict, Iterator, Optional
import json
import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_MODEL = "gemini-2.5-flash"

REQUIRED_VERDICT_KEYS = ("health", "riskLevel")

class LLMError(Exception):
    """The model could not produce a reply"""

class GeminiClient:
    """Minimal generateContent client"""

    def __init__(self, http: httpx.AsyncClient, api_key: str, *,
                 model: str = DEFAULT_MODEL,
                 base_url: str = DEFAULT_BASE_URL,
                 timeout: float = 15.0):
        self._http = http
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def generate(self, prompt: str) -> str:
        """
        Send a single-turn prompt

        Args:
            prompt: The full prompt text

        Returns:
            Text of the first candidate

        Raises:
            LLMError: On timeouts, HTTP errors or an empty reply
        """
        url = f"{self._base_url}/v1beta/models/{self._model}:generateContent"
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            response = await self._http.post(
                url,
                json=body,
                headers={"x-goog-api-key": self._api_key},
                timeout=self._timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException:
            raise LLMError(f"LLM request timed out after {self._timeout}s")
        except (httpx.HTTPError, ValueError) as e:
            raise LLMError(f"LLM request failed: {e}")

        try:
            text = payload["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise LLMError("LLM reply contained no text candidate")
        if not text:
            raise LLMError("LLM reply was empty")
        return text

def iter_json_objects(text: str) -> Iterator[str]:
    """
    Yield each balanced top-level {...} span in free text

    Braces inside JSON strings do not count towards nesting.
    """
    depth = 0
    start = 0
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"' and depth > 0:
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start:i + 1]

def extract_verdict(text: str) -> Optional[Dict[str, Any]]:
    """
    Pull the verdict object out of a model reply

    Returns the first top-level JSON object that decodes and carries both
    ``health`` and ``riskLevel``; None if there is none.
    """
    for candidate in iter_json_objects(text):
        try:
            decoded = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(decoded, dict) and all(key in decoded for key in REQUIRED_VERDICT_KEYS):
            return decoded
    return None
