from pydantic import BaseModel
from typing import Any, Optional


class FeedbackRequest(BaseModel):
    feedback: Optional[str] = None
    rating: Optional[Any] = None
    page: Optional[str] = None


class FeedbackEntry(BaseModel):
    id: str
    feedback: Optional[str] = None
    rating: Optional[Any] = None
    page: Optional[str] = None
    timestamp: str
