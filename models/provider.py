"""
Provider request options and the decoded provider reply.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

from errors import EmptyResponseError, SafetyBlockedError, TransportError


class ProviderRequestOptions(BaseModel):
    user_profile: Optional[Dict[str, Any]] = None
    current_topic: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 500
    top_p: float = 0.8
    top_k: int = 40
    stop_sequences: List[str] = Field(default_factory=list)


class ProviderResult(BaseModel):
    """Typed view of a generateContent reply.

    kind:
        ok             - first candidate carried text
        safety_blocked - candidate withheld with finish reason SAFETY
        empty          - no candidates, or no content parts
        malformed      - body was not the expected shape
    """
    kind: Literal["ok", "safety_blocked", "empty", "malformed"]
    text: str = ""
    finish_reason: Optional[str] = None
    detail: Optional[str] = None

    @classmethod
    def ok(cls, text: str, finish_reason: Optional[str] = None) -> "ProviderResult":
        return cls(kind="ok", text=text, finish_reason=finish_reason)

    @classmethod
    def safety_blocked(cls, finish_reason: str = "SAFETY") -> "ProviderResult":
        return cls(kind="safety_blocked", finish_reason=finish_reason)

    @classmethod
    def empty(cls, detail: str) -> "ProviderResult":
        return cls(kind="empty", detail=detail)

    @classmethod
    def malformed(cls, detail: str) -> "ProviderResult":
        return cls(kind="malformed", detail=detail)

    def unwrap(self) -> str:
        """Return the text, or raise the error matching this result."""
        if self.kind == "ok":
            return self.text
        if self.kind == "safety_blocked":
            raise SafetyBlockedError("Response was blocked due to safety filters")
        if self.kind == "empty":
            raise EmptyResponseError(self.detail or "No content in API response")
        raise TransportError(f"Malformed API response: {self.detail}")
