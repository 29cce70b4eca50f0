"""
HTTP transport for the generative-text endpoint used by the Mentor.

One POST per call; the JSON reply is decoded once into a ProviderResult.
"""

from typing import Any, Dict, Optional
import logging

import requests

from config import settings
from errors import ConfigurationError, TransportError
from models.provider import ProviderRequestOptions, ProviderResult

logger = logging.getLogger(__name__)

SAFETY_CATEGORIES = [
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
]
SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"

_PLACEHOLDER_KEYS = {"", "YOUR_GEMINI_API_KEY_HERE"}


class GeminiClient:
    """Thin wrapper around the generateContent REST call"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        self.api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.GEMINI_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.model}:generateContent"

    @property
    def is_configured(self) -> bool:
        return (self.api_key or "").strip() not in _PLACEHOLDER_KEYS

    def build_payload(self, prompt: str, options: ProviderRequestOptions) -> Dict[str, Any]:
        """Request body: prompt text, generation config and safety settings"""
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": options.temperature,
                "topP": options.top_p,
                "topK": options.top_k,
                "maxOutputTokens": options.max_tokens,
                "stopSequences": list(options.stop_sequences),
            },
            "safetySettings": [
                {"category": category, "threshold": SAFETY_THRESHOLD}
                for category in SAFETY_CATEGORIES
            ],
        }

    def generate(self, prompt: str, options: ProviderRequestOptions) -> ProviderResult:
        """POST the prompt and decode the reply

        Raises:
            ConfigurationError: no API key configured
            TransportError: network failure or non-2xx status
        """
        if not self.is_configured:
            raise ConfigurationError(
                "Gemini API key not configured. Set GEMINI_API_KEY in the environment or .env"
            )

        payload = self.build_payload(prompt, options)

        try:
            response = self.session.post(
                self.endpoint,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"API request failed: {e}") from e

        if not response.ok:
            raise TransportError(
                f"API request failed: {response.status_code} {response.reason}. "
                f"{self._error_message(response)}".strip(),
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            return ProviderResult.malformed(f"invalid JSON body: {e}")

        return self.decode_response(body)

    @staticmethod
    def decode_response(body: Any) -> ProviderResult:
        """Decode a generateContent body into a ProviderResult"""
        if not isinstance(body, dict):
            return ProviderResult.malformed("response body is not an object")

        candidates = body.get("candidates")
        if not candidates:
            return ProviderResult.empty("No response candidates received from API")
        if not isinstance(candidates, list) or not isinstance(candidates[0], dict):
            return ProviderResult.malformed("candidates is not a list of objects")

        candidate = candidates[0]
        finish_reason = candidate.get("finishReason")

        if finish_reason == "SAFETY":
            return ProviderResult.safety_blocked(finish_reason)

        content = candidate.get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        if not parts:
            return ProviderResult.empty("No content in API response")

        text = parts[0].get("text") if isinstance(parts[0], dict) else None
        if not isinstance(text, str):
            return ProviderResult.malformed("first content part has no text")
        if not text.strip():
            return ProviderResult.empty("Empty text in API response")

        return ProviderResult.ok(text.strip(), finish_reason=finish_reason)

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return ""
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            return str(data["error"].get("message") or "")
        return ""
