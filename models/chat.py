"""
Chat models for the Mentor conversational interface.
"""

from pydantic import BaseModel
from datetime import datetime
from enum import Enum
from typing import List, Optional


class Sender(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """Single chat message. Immutable once created."""
    sender: Sender
    text: str
    created_at: datetime

    class Config:
        frozen = True


class MessageRequest(BaseModel):
    """Message submitted to the mentor chat session."""
    message: str


class MessageResponse(BaseModel):
    """Reply from the mentor chat session."""
    reply: Optional[str] = None
    messages: List[ChatMessage]


class RelayChatRequest(BaseModel):
    """Request to the stateless /chat relay."""
    message: Optional[str] = None


class RelayChatResponse(BaseModel):
    """Reply from the /chat relay and where it came from ('anthropic' or 'fallback')."""
    response: str
    source: str
