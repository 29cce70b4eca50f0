from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime


class DemoUser(BaseModel):
    username: str
    user_type: str  # 'student' or 'educator'
    login_time: datetime
    skills: Dict[str, int]  # skill name -> score
    interests: List[str] = Field(default_factory=list)
    learning_style: str = "visual"


class LoginRequest(BaseModel):
    username: str
    password: str
    user_type: str = "student"


class LoginResponse(BaseModel):
    success: bool
    user: Optional[DemoUser] = None
