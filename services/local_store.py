"""
JSON-file key-value store.

Plays the role browser local storage played for the demo front end: values
are whole JSON blobs, read and written in one piece, with no schema versioning.
"""

from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional
import json
import logging
import os
import tempfile

from config import settings

logger = logging.getLogger(__name__)

USER_KEY = "eduReformUser"
AUTH_KEY = "eduReformAuth"
INSIGHTS_KEY = "eduReformInsights"
MENTOR_MODE_KEY = "eduReformMentorMode"


class LocalStore:
    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = RLock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._read().keys())

    def clear(self) -> None:
        with self._lock:
            self._write({})

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Local store at {self.path} unreadable, starting empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".store-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


def open_store(path: Optional[str] = None) -> LocalStore:
    return LocalStore(path or settings.LOCAL_STORE_PATH)
