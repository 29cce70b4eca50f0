from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import logging

from config import settings
from agents.mentor import Mentor
from models.insight import InsightEntry
from services.local_store import INSIGHTS_KEY, LocalStore

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT = "general discussion"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InsightRecorder:
    """
    Best-effort learning insights.

    Asks the Mentor to analyze what the student just said and keeps the
    results as a rolling log in the local store. Nothing here is ever
    user-visible, so failures are logged and dropped.
    """

    def __init__(
        self,
        mentor: Mentor,
        store: LocalStore,
        limit: Optional[int] = None,
        clock: Callable[[], datetime] = _now
    ):
        self.mentor = mentor
        self.store = store
        self.limit = settings.INSIGHT_LOG_LIMIT if limit is None else limit
        self.clock = clock

    def record_from_response(self, user_message: str, topic: Optional[str] = None) -> Optional[InsightEntry]:
        """Analyze a student message and store the result, if there is one"""
        try:
            analysis = self.mentor.analyze(user_message, topic or DEFAULT_CONTEXT)
            if analysis is None:
                logger.info("No insight this turn")
                return None
            return self.store_insight(analysis, topic)
        except Exception as e:
            logger.error(f"Error recording learning insight: {e}", exc_info=True)
            return None

    def store_insight(self, insight: Dict[str, Any], topic: Optional[str] = None) -> InsightEntry:
        entry = InsightEntry(timestamp=self.clock(), topic=topic, insight=insight)

        log = self.store.get(INSIGHTS_KEY) or []
        log.append(entry.model_dump(mode="json"))

        # Keep only the most recent entries
        if len(log) > self.limit:
            del log[: len(log) - self.limit]

        self.store.set(INSIGHTS_KEY, log)
        logger.info(f"Learning insight stored ({len(log)}/{self.limit})")
        return entry

    def get_insights(self) -> List[InsightEntry]:
        entries = []
        for raw in self.store.get(INSIGHTS_KEY) or []:
            try:
                entries.append(InsightEntry(**raw))
            except Exception as e:
                logger.warning(f"Skipping unreadable insight entry: {e}")
        return entries

    def clear(self) -> None:
        self.store.remove(INSIGHTS_KEY)
