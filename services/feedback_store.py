from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, List, Optional
import json
import logging
import time

from config import settings
from models.feedback import FeedbackEntry

logger = logging.getLogger(__name__)


class FeedbackStore:
    """Appends feedback records to a flat JSON array file"""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.FEEDBACK_PATH)
        self._lock = Lock()

    def append(self, feedback: Optional[str], rating: Any = None, page: Optional[str] = None) -> FeedbackEntry:
        entry = FeedbackEntry(
            id=str(int(time.time() * 1000)),
            feedback=feedback,
            rating=rating,
            page=page,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            entries = self.read_all()
            entries.append(entry.model_dump())
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(entries, f, indent=2)

        logger.info(f"Feedback stored: {entry.id}")
        return entry

    def read_all(self) -> List[dict]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            # Missing or invalid file starts a fresh array
            return []
        return data if isinstance(data, list) else []
