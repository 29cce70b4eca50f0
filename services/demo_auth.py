"""
Demo authentication stub.

There is no user management: a handful of fixed demo credentials, a session
user record with pseudo-random skills, and an opaque token marker, all kept
in the local store.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging
import random
import string

from models.user import DemoUser
from services.local_store import AUTH_KEY, INSIGHTS_KEY, USER_KEY, LocalStore

logger = logging.getLogger(__name__)

DEMO_CREDENTIALS = [
    {"username": "student", "password": "demo", "type": "student"},
    {"username": "educator", "password": "demo", "type": "educator"},
    {"username": "admin", "password": "demo", "type": "educator"},
]

ALL_INTERESTS = [
    "History", "Science", "Mathematics", "Literature", "Art",
    "Technology", "Philosophy", "Psychology", "Economics", "Politics",
]

# skill -> (minimum, span)
SKILL_RANGES = {
    "criticalThinking": (80, 20),
    "creativity": (60, 30),
    "analyticalReasoning": (85, 15),
    "communication": (65, 25),
    "research": (70, 20),
    "patternRecognition": (75, 20),
}


def generate_demo_skills(rng: Optional[random.Random] = None) -> Dict[str, int]:
    rng = rng or random.Random()
    return {skill: low + rng.randrange(span) for skill, (low, span) in SKILL_RANGES.items()}


def generate_demo_interests(rng: Optional[random.Random] = None, count: int = 3) -> List[str]:
    rng = rng or random.Random()
    return rng.sample(ALL_INTERESTS, count)


def generate_auth_token(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    alphabet = string.ascii_lowercase + string.digits
    return "token_" + "".join(rng.choice(alphabet) for _ in range(26))


class DemoAuthService:
    def __init__(self, store: LocalStore, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng or random.Random()
        self._guest_profile: Optional[Dict[str, Any]] = None

    def authenticate(self, username: str, password: str, user_type: str) -> Optional[DemoUser]:
        """Check demo credentials and open a session; None on mismatch"""
        valid = any(
            cred["username"] == username and cred["password"] == password and cred["type"] == user_type
            for cred in DEMO_CREDENTIALS
        )
        if not valid:
            logger.info(f"Demo login rejected for {username!r} ({user_type})")
            return None

        user = DemoUser(
            username=username,
            user_type=user_type,
            login_time=datetime.now(timezone.utc),
            skills=generate_demo_skills(self.rng),
            interests=generate_demo_interests(self.rng),
        )
        self.store.set(USER_KEY, user.model_dump(mode="json"))
        self.store.set(AUTH_KEY, generate_auth_token(self.rng))

        logger.info(f"User authenticated: {username}")
        return user

    @property
    def is_authenticated(self) -> bool:
        return bool(self.store.get(USER_KEY) and self.store.get(AUTH_KEY))

    def current_user(self) -> Optional[DemoUser]:
        if not self.is_authenticated:
            return None
        try:
            return DemoUser(**self.store.get(USER_KEY))
        except Exception as e:
            logger.warning(f"Stored user record unreadable: {e}")
            return None

    def logout(self) -> None:
        for key in (USER_KEY, AUTH_KEY, INSIGHTS_KEY):
            self.store.remove(key)
        logger.info("User logged out")

    def user_profile(self) -> Dict[str, Any]:
        """Profile attached to every provider request as context"""
        user = self.current_user()
        if user is not None:
            return {
                "name": user.username,
                "type": user.user_type,
                "skills": user.skills,
                "interests": user.interests,
                "learningStyle": user.learning_style,
            }

        # Guests get one generated profile for the life of this service
        if self._guest_profile is None:
            self._guest_profile = {
                "name": "Student",
                "type": "student",
                "skills": generate_demo_skills(self.rng),
                "interests": generate_demo_interests(self.rng),
                "learningStyle": "visual",
            }
        return self._guest_profile
