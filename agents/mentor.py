from contextlib import contextmanager
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Dict, List, Optional
import json
import logging
import random
import re

from config import settings
from errors import AnalysisParseError, ConcurrentRequestError
from models.chat import ChatMessage, Sender
from models.provider import ProviderRequestOptions
from prompts.prompt_manager import PromptManager
from services.gemini_client import GeminiClient
from utils.text_cleaner import TextCleaner

logger = logging.getLogger(__name__)

FALLBACK_RESPONSES = [
    "I'm having trouble connecting right now, but let me ask you this: What do you think is the most important aspect of what you just shared?",
    "While I process that, can you tell me what led you to that conclusion? What evidence supports your thinking?",
    "That's interesting! Even though I'm experiencing some technical difficulties, I'd love to hear more about your reasoning process.",
    "Let me think about that while my systems recover. In the meantime, what questions does this topic raise for you?",
    "I'm experiencing some connectivity issues, but your question is thought-provoking. What alternative perspectives might exist on this topic?",
]
HELP_FALLBACK = "I want to help you explore this topic! While I reconnect, think about: What specific aspect challenges you the most?"
WHY_HOW_FALLBACK = "Great question! While my systems restart, consider: What factors might influence the answer to your question?"
WHAT_FALLBACK = "That's a thoughtful inquiry. As I recover from technical issues, reflect on: What do you already know that might relate to this?"

DEFAULT_MENTOR_QUESTIONS = [
    "What patterns do you notice in this topic?",
    "How might this connect to something you already know?",
    "What would happen if we changed one key element here?",
]
OFFLINE_MENTOR_QUESTIONS = [
    "What interests you most about this topic?",
    "What questions does this raise for you?",
    "How would you explain this to someone else?",
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Mentor:
    """
    Model provider adapter for the AI mentor.

    Builds a prompt from the mentor persona, the student's profile and a
    sliding window of recent turns, sends it to the generative-text endpoint
    and returns the reply text. `send` never raises: any failure is logged,
    kept in `last_error`, and replaced by a locally chosen fallback.
    """

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        prompts: Optional[PromptManager] = None,
        history_window: Optional[int] = None,
        clock: Callable[[], datetime] = _now,
        rng: Optional[random.Random] = None
    ):
        self.client = client or GeminiClient()
        self.prompts = prompts or PromptManager()
        self.history_window = settings.HISTORY_WINDOW if history_window is None else history_window
        self.clock = clock
        self.rng = rng or random.Random()

        self.conversation_history: List[ChatMessage] = []
        self.last_error: Optional[str] = None
        self._in_flight = Lock()

    @property
    def is_processing(self) -> bool:
        return self._in_flight.locked()

    def send(self, user_message: str, options: Optional[ProviderRequestOptions] = None) -> str:
        """
        Send a student message and return the mentor's reply.

        Args:
            user_message: The student's message
            options: Profile, topic and generation parameters

        Returns:
            Reply text, or a fallback string if anything failed
        """
        options = options or ProviderRequestOptions()

        try:
            with self._single_flight():
                prompt = self.build_prompt(user_message, options)
                reply = self.client.generate(prompt, options).unwrap()

                self.conversation_history.append(
                    ChatMessage(sender=Sender.USER, text=user_message, created_at=self.clock())
                )
                self.conversation_history.append(
                    ChatMessage(sender=Sender.ASSISTANT, text=reply, created_at=self.clock())
                )

            self.last_error = None
            return reply

        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Mentor provider error ({type(e).__name__}): {e}")
            return self.fallback_response(user_message)

    def analyze(self, response_text: str, context: str) -> Optional[Dict[str, Any]]:
        """
        Ask the provider for a structured analysis of a student response.

        Does not touch the conversation history.

        Returns:
            Parsed JSON object, or None if the call or the parse failed
        """
        try:
            config = self.prompts.get_prompt_config("response_analysis")
            prompt = self.prompts.build_analysis_prompt(response_text, context)
            options = ProviderRequestOptions(temperature=config.get("temperature", 0.3))

            with self._single_flight():
                raw = self.client.generate(prompt, options).unwrap()

            return self._parse_analysis(raw)

        except AnalysisParseError as e:
            logger.warning(f"Analysis reply was not JSON: {e}")
            return None
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Error analyzing response: {e}")
            return None

    def generate_mentor_questions(
        self,
        skill_profile: Optional[Dict[str, Any]],
        topic: Optional[str]
    ) -> List[str]:
        """Generate up to three probing questions matched to the student's level"""
        try:
            config = self.prompts.get_prompt_config("mentor_questions")
            options = ProviderRequestOptions(
                user_profile=skill_profile,
                current_topic=topic,
                temperature=config.get("temperature", 0.8),
            )
            prompt = self.prompts.build_mentor_chat_prompt(
                message=self.prompts.build_question_prompt(),
                conversation_history=[],
                user_profile=skill_profile,
                current_topic=topic,
            )

            with self._single_flight():
                raw = self.client.generate(prompt, options).unwrap()

            questions = self._parse_questions(raw, config.get("max_questions", 3))
            return questions or list(DEFAULT_MENTOR_QUESTIONS)

        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Error generating mentor questions: {e}")
            return list(OFFLINE_MENTOR_QUESTIONS)

    def test_connection(self) -> bool:
        """Round-trip a short prompt; True if the provider answered with text"""
        try:
            with self._single_flight():
                result = self.client.generate(
                    "Hello, can you confirm the connection is working?",
                    ProviderRequestOptions(max_tokens=50),
                )
            return len(result.unwrap()) > 0
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Connection test failed: {e}")
            return False

    def build_prompt(self, user_message: str, options: ProviderRequestOptions) -> str:
        return self.prompts.build_mentor_chat_prompt(
            message=user_message,
            conversation_history=self.conversation_history,
            user_profile=options.user_profile,
            current_topic=options.current_topic,
            max_history=self.history_window,
        )

    def fallback_response(self, user_message: str) -> str:
        """Pick a fallback by keyword, else at random"""
        if TextCleaner.contains_any(user_message, ["help"]):
            return HELP_FALLBACK
        if TextCleaner.contains_any(user_message, ["why", "how"]):
            return WHY_HOW_FALLBACK
        if TextCleaner.contains_any(user_message, ["what"]):
            return WHAT_FALLBACK
        return self.rng.choice(FALLBACK_RESPONSES)

    def get_conversation_history(self) -> List[ChatMessage]:
        return list(self.conversation_history)

    def clear_history(self) -> None:
        self.conversation_history = []
        logger.info("Mentor conversation history cleared")

    @contextmanager
    def _single_flight(self):
        if not self._in_flight.acquire(blocking=False):
            raise ConcurrentRequestError("Another request is already being processed. Please wait.")
        try:
            yield
        finally:
            self._in_flight.release()

    def _parse_analysis(self, raw: str) -> Dict[str, Any]:
        content = TextCleaner.strip_code_fences(raw)
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise AnalysisParseError(str(e)) from e
        if not isinstance(data, dict):
            raise AnalysisParseError(f"expected a JSON object, got {type(data).__name__}")
        return data

    def _parse_questions(self, raw: str, limit: int) -> List[str]:
        questions = []
        for line in raw.split("\n"):
            line = line.strip()
            if not line or not ("?" in line or re.match(r"^\d", line)):
                continue
            questions.append(re.sub(r"^\d+\.?\s*", "", line).strip())
        return questions[:limit]
