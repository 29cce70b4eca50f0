# Models module - Pydantic models for chat, provider, insight, user and feedback data
from models.chat import (
    ChatMessage,
    MessageRequest,
    MessageResponse,
    RelayChatRequest,
    RelayChatResponse,
    Sender,
)
from models.provider import ProviderRequestOptions, ProviderResult
from models.insight import InsightEntry
from models.user import DemoUser, LoginRequest, LoginResponse
from models.feedback import FeedbackEntry, FeedbackRequest

__all__ = [
    "ChatMessage",
    "MessageRequest",
    "MessageResponse",
    "RelayChatRequest",
    "RelayChatResponse",
    "Sender",
    "ProviderRequestOptions",
    "ProviderResult",
    "InsightEntry",
    "DemoUser",
    "LoginRequest",
    "LoginResponse",
    "FeedbackEntry",
    "FeedbackRequest",
]
