from collections import deque
from datetime import datetime
from threading import Lock
from typing import Callable, Deque, List, Optional, Sequence
import logging
import random

from config import settings
from models.chat import ChatMessage, Sender
from schedulers.task_scheduler import ScheduledTask, TaskScheduler
from utils.text_cleaner import TextCleaner

logger = logging.getLogger(__name__)

FOLLOW_UP_QUESTIONS = [
    "What made you think about this topic in that way?",
    "Can you give me an example from your own experience?",
    "What would happen if we changed one key element here?",
    "How does this connect to something else you've learned?",
    "What questions does this raise for you?",
    "If you had to explain this to a friend, how would you do it?",
    "What evidence would support or challenge this idea?",
    "Can you think of an alternative perspective on this?",
]
CAUSAL_PROBE = "What other factors might also play a role here?"
EVIDENCE_PROBE = "What experiences or evidence led you to that conclusion?"


class MentorQuestionScheduler:
    """
    Queues Socratic follow-up questions and decides when to surface them.

    A follow-up is chosen after every exchange but only enters the queue
    after a settling delay. The periodic tick delivers at most one queued
    question, and only while the student's message is the last thing in the
    transcript and has gone unanswered for long enough.
    """

    def __init__(
        self,
        tasks: TaskScheduler,
        mentor_mode: bool = True,
        idle_threshold: Optional[float] = None,
        follow_up_delay: Optional[float] = None,
        delivery_delay: Optional[float] = None,
        rng: Optional[random.Random] = None
    ):
        self.tasks = tasks
        self.mentor_mode = mentor_mode
        self.idle_threshold = settings.MENTOR_IDLE_THRESHOLD_SECONDS if idle_threshold is None else idle_threshold
        self.follow_up_delay = settings.MENTOR_FOLLOW_UP_DELAY_SECONDS if follow_up_delay is None else follow_up_delay
        self.delivery_delay = settings.MENTOR_DELIVERY_DELAY_SECONDS if delivery_delay is None else delivery_delay
        self.rng = rng or random.Random()

        self.queue: Deque[str] = deque()
        self.last_check: Optional[datetime] = None
        self.delivering = False
        self._pending_enqueues: List[ScheduledTask] = []
        self._delivery_task: Optional[ScheduledTask] = None
        # Bumped by clear(); deliveries scheduled under an older value are dropped
        self._generation = 0
        self._lock = Lock()

    def should_ask_question(self, transcript: Sequence[ChatMessage]) -> bool:
        """True when mentor mode is on and the student's last turn has gone unanswered long enough"""
        if not self.mentor_mode:
            return False
        if len(transcript) < 2:
            return False

        last = transcript[-1]
        if last.sender != Sender.USER:
            return False

        elapsed = (self.tasks.now() - last.created_at).total_seconds()
        return elapsed >= self.idle_threshold

    def select_follow_up(self, user_message: str) -> str:
        if TextCleaner.contains_any(user_message, ["because", "reason"]):
            return CAUSAL_PROBE
        if TextCleaner.contains_any(user_message, ["think", "believe"]):
            return EVIDENCE_PROBE
        return self.rng.choice(FOLLOW_UP_QUESTIONS)

    def enqueue_follow_up(self, user_message: str, ai_reply: str) -> ScheduledTask:
        """Pick a follow-up for this exchange and queue it after the settling delay"""
        question = self.select_follow_up(user_message)
        logger.info(f"Follow-up selected, queueing in {self.follow_up_delay}s: {question}")

        task = self.tasks.call_later(
            self.follow_up_delay,
            self._push,
            question,
            name="mentor_follow_up_enqueue",
        )
        with self._lock:
            self._pending_enqueues.append(task)
        return task

    def tick(
        self,
        transcript: Sequence[ChatMessage],
        deliver: Callable[[str], None]
    ) -> Optional[str]:
        """
        Deliver one queued question if the conditions hold.

        Safe to call from the request thread and the scheduler worker at once.

        Args:
            transcript: Current visible transcript
            deliver: Called with the question after the delivery delay

        Returns:
            The dequeued question, or None if nothing was scheduled
        """
        self.last_check = self.tasks.now()

        with self._lock:
            if self.delivering or not self.queue:
                return None
            if not self.should_ask_question(transcript):
                return None

            question = self.queue.popleft()
            self.delivering = True
            self._delivery_task = self.tasks.call_later(
                self.delivery_delay,
                self._deliver,
                question,
                deliver,
                self._generation,
                name="mentor_question_delivery",
            )

        logger.info(f"Mentor question scheduled for delivery: {question}")
        return question

    def clear(self) -> None:
        """Empty the queue and cancel follow-ups and deliveries that have not happened yet"""
        with self._lock:
            self._generation += 1
            for task in self._pending_enqueues:
                task.cancel()
            self._pending_enqueues = []
            if self._delivery_task is not None:
                self._delivery_task.cancel()
                self._delivery_task = None
            self.delivering = False
            self.queue.clear()

    def _push(self, question: str) -> None:
        with self._lock:
            self._pending_enqueues = [t for t in self._pending_enqueues if t.pending]
            self.queue.append(question)
            logger.debug(f"Follow-up queued ({len(self.queue)} pending)")

    def _deliver(self, question: str, deliver: Callable[[str], None], generation: int) -> None:
        with self._lock:
            # Already started when clear() ran
            if generation != self._generation:
                return
            self._delivery_task = None

        try:
            deliver(question)
        finally:
            with self._lock:
                if generation == self._generation:
                    self.delivering = False
