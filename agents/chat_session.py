from enum import Enum
from threading import RLock
from typing import Any, Callable, Dict, List, Optional
import logging

from config import settings
from agents.insight_recorder import InsightRecorder
from agents.mentor import Mentor
from agents.question_scheduler import MentorQuestionScheduler
from models.chat import ChatMessage, Sender
from models.provider import ProviderRequestOptions
from schedulers.task_scheduler import ScheduledTask, TaskScheduler
from services.chat_renderer import ChatRenderer
from services.demo_auth import DemoAuthService
from services.gemini_client import GeminiClient
from services.local_store import MENTOR_MODE_KEY, LocalStore

logger = logging.getLogger(__name__)

GREETING = (
    "Hello! I'm your AI mentor. I'm here to help you explore topics through questions "
    "and critical thinking. What would you like to learn about today?"
)
CLEARED_GREETING = "Chat cleared. How can I help you learn something new?"
MENTOR_MODE_ON = "Mentor mode activated. I'll guide you with probing questions to deepen your understanding."
MENTOR_MODE_OFF = "Mentor mode deactivated. I'll respond to your questions directly."
APOLOGY = (
    "I apologize, but I'm having trouble processing your message right now. "
    "Could you try rephrasing your question?"
)


class WidgetState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


class ConversationState(str, Enum):
    IDLE = "idle"
    AWAITING_REPLY = "awaiting_reply"
    STREAMING_REPLY = "streaming_reply"


class ChatSession:
    """
    Chat session controller for the mentor widget.

    Owns the visible transcript and the widget/conversation state, reveals
    replies one character at a time through the renderer, and coordinates
    the Mentor adapter, the question scheduler and the insight recorder.
    All collaborators are passed in; one session lives per user session.
    """

    def __init__(
        self,
        mentor: Mentor,
        questions: MentorQuestionScheduler,
        insights: InsightRecorder,
        tasks: TaskScheduler,
        renderer: Optional[ChatRenderer] = None,
        profile_provider: Optional[Callable[[], Dict[str, Any]]] = None,
        store: Optional[LocalStore] = None,
        stream_delay_ms: Optional[int] = None,
        tick_interval: Optional[float] = None
    ):
        self.mentor = mentor
        self.questions = questions
        self.insights = insights
        self.tasks = tasks
        self.renderer = renderer or ChatRenderer()
        self.profile_provider = profile_provider
        self.store = store
        self.stream_delay_ms = settings.STREAM_CHAR_DELAY_MS if stream_delay_ms is None else stream_delay_ms
        self.tick_interval = tick_interval or settings.MENTOR_TICK_INTERVAL_SECONDS

        self.widget_state = WidgetState.CLOSED
        self.state = ConversationState.IDLE
        self.current_topic: Optional[str] = None

        self._lock = RLock()
        self._messages: List[ChatMessage] = [self._make(Sender.ASSISTANT, GREETING)]
        self._tick_task: Optional[ScheduledTask] = None
        # Bumped by clear(); a reveal started under an older value is abandoned
        self._generation = 0

    @property
    def messages(self) -> List[ChatMessage]:
        with self._lock:
            return list(self._messages)

    @property
    def is_open(self) -> bool:
        return self.widget_state == WidgetState.OPEN

    @property
    def mentor_mode(self) -> bool:
        return self.questions.mentor_mode

    def open(self) -> None:
        with self._lock:
            if self.is_open:
                return
            self.widget_state = WidgetState.OPEN

        self.renderer.on_open()
        self._tick_task = self.tasks.call_every(self.tick_interval, self._mentor_tick, name="mentor_tick")

        # Probe right away if the student has been sitting on a message
        self.questions.tick(self.messages, self.deliver_mentor_question)

    def close(self) -> None:
        with self._lock:
            if not self.is_open:
                return
            self.widget_state = WidgetState.CLOSED

        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None
        self.renderer.on_close()

    def toggle(self) -> None:
        if self.is_open:
            self.close()
        else:
            self.open()

    def submit(self, text: str) -> Optional[str]:
        """
        Send a student message and reveal the mentor's reply.

        Args:
            text: Raw input; empty or whitespace-only input is ignored

        Returns:
            The reply text, or None if nothing was sent or the reveal was
            cancelled by clear()
        """
        message = (text or "").strip()
        if not message:
            return None

        with self._lock:
            user_message = self._append(Sender.USER, message)
            self.state = ConversationState.AWAITING_REPLY
            generation = self._generation

        self.renderer.show_message(user_message)
        self.renderer.show_typing()

        try:
            options = ProviderRequestOptions(
                user_profile=self.profile_provider() if self.profile_provider else None,
                current_topic=self.current_topic,
                temperature=0.7,
            )
            reply = self.mentor.send(message, options)
        except Exception as e:
            logger.error(f"Chat error: {e}", exc_info=True)
            reply = APOLOGY
        finally:
            self.renderer.hide_typing()

        if self._reveal(reply, generation) is None:
            logger.info("Reply reveal cancelled by chat clear")
            return None

        self.tasks.call_later(
            0,
            self.insights.record_from_response,
            message,
            self.current_topic,
            name="insight_recording",
        )

        if self.mentor_mode:
            self.questions.enqueue_follow_up(message, reply)

        return reply

    def clear(self) -> None:
        """Reset to a single greeting and drop queued questions and provider history"""
        with self._lock:
            self._generation += 1
            self._messages = [self._make(Sender.ASSISTANT, CLEARED_GREETING)]
            self.state = ConversationState.IDLE

        self.mentor.clear_history()
        self.questions.clear()
        self.renderer.reset(self.messages)
        logger.info("Chat cleared")

    def deliver_mentor_question(self, question: str) -> ChatMessage:
        message = self._post_assistant(question)
        logger.info(f"Mentor question delivered: {question}")
        return message

    def set_current_topic(self, topic: Optional[str]) -> None:
        self.current_topic = topic
        if topic:
            welcome = f"I see you're exploring {topic}. What aspects of this topic interest you most?"
            self.tasks.call_later(
                self.questions.delivery_delay,
                self._post_assistant,
                welcome,
                name="topic_welcome",
            )

    def toggle_mentor_mode(self, enabled: bool) -> None:
        self.questions.mentor_mode = enabled
        if self.store is not None:
            self.store.set(MENTOR_MODE_KEY, enabled)
        self._post_assistant(MENTOR_MODE_ON if enabled else MENTOR_MODE_OFF)

    def export_chat_history(self) -> str:
        return "\n\n".join(
            f"{'You' if m.sender == Sender.USER else 'AI Mentor'}: {m.text}"
            for m in self.messages
        )

    def get_chat_stats(self) -> Dict[str, Any]:
        messages = self.messages
        user_messages = sum(1 for m in messages if m.sender == Sender.USER)
        return {
            "userMessages": user_messages,
            "aiMessages": len(messages) - user_messages,
            "totalMessages": len(messages),
            "mentorMode": self.mentor_mode,
        }

    def shutdown(self) -> None:
        self.close()
        self.questions.clear()

    def _mentor_tick(self) -> None:
        if not self.is_open:
            return
        self.questions.tick(self.messages, self.deliver_mentor_question)

    def _reveal(self, text: str, generation: int) -> Optional[ChatMessage]:
        with self._lock:
            if generation != self._generation:
                return None
            self.state = ConversationState.STREAMING_REPLY

        self.renderer.begin_stream()
        delay = self.stream_delay_ms / 1000.0

        for char in text:
            if generation != self._generation:
                self.renderer.end_stream(None)
                return None
            self.renderer.stream_chunk(char)
            if delay > 0:
                self.tasks.sleep(delay)

        with self._lock:
            if generation != self._generation:
                self.renderer.end_stream(None)
                return None
            reply_message = self._append(Sender.ASSISTANT, text)
            self.state = ConversationState.IDLE

        self.renderer.end_stream(reply_message)
        return reply_message

    def _post_assistant(self, text: str) -> ChatMessage:
        with self._lock:
            message = self._append(Sender.ASSISTANT, text)
        self.renderer.show_message(message)
        return message

    def _append(self, sender: Sender, text: str) -> ChatMessage:
        message = self._make(sender, text)
        self._messages.append(message)
        return message

    def _make(self, sender: Sender, text: str) -> ChatMessage:
        return ChatMessage(sender=sender, text=text, created_at=self.tasks.now())


def create_chat_session(
    tasks: TaskScheduler,
    store: LocalStore,
    renderer: Optional[ChatRenderer] = None,
    client: Optional[GeminiClient] = None,
    auth: Optional[DemoAuthService] = None,
    stream_delay_ms: Optional[int] = None
) -> ChatSession:
    """Wire a Mentor, question scheduler and insight recorder into a new session"""
    mentor = Mentor(client=client, clock=tasks.now)
    questions = MentorQuestionScheduler(
        tasks,
        mentor_mode=bool(store.get(MENTOR_MODE_KEY, settings.MENTOR_MODE_DEFAULT)),
    )
    insights = InsightRecorder(mentor, store, clock=tasks.now)
    auth = auth or DemoAuthService(store)

    return ChatSession(
        mentor=mentor,
        questions=questions,
        insights=insights,
        tasks=tasks,
        renderer=renderer,
        profile_provider=auth.user_profile,
        store=store,
        stream_delay_ms=stream_delay_ms,
    )
