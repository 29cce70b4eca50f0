from pydantic import BaseModel
from typing import Dict, Any, Optional
from datetime import datetime


class InsightEntry(BaseModel):
    timestamp: datetime
    topic: Optional[str] = None
    insight: Dict[str, Any]  # parsed analysis returned by Mentor.analyze

    class Config:
        from_attributes = True
