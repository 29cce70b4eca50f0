"""
Unit tests for the JSON-file LocalStore and FeedbackStore

Run with:
    pytest tests/test_local_store.py -v
"""

import pytest
import json

from services.feedback_store import FeedbackStore
from services.local_store import LocalStore, MENTOR_MODE_KEY, USER_KEY


@pytest.fixture
def path(tmp_path):
    return tmp_path / "nested" / "store.json"


class TestLocalStore:
    """Test the key-value store"""

    def test_missing_file_reads_empty(self, path):
        store = LocalStore(str(path))
        assert store.get(USER_KEY) is None
        assert store.get(USER_KEY, "fallback") == "fallback"
        assert store.keys() == []

    def test_set_and_get(self, path):
        store = LocalStore(str(path))
        store.set(MENTOR_MODE_KEY, False)
        store.set(USER_KEY, {"username": "student"})

        assert store.get(MENTOR_MODE_KEY) is False
        assert store.get(USER_KEY) == {"username": "student"}

    def test_values_persist_across_instances(self, path):
        LocalStore(str(path)).set(MENTOR_MODE_KEY, True)
        assert LocalStore(str(path)).get(MENTOR_MODE_KEY) is True

    def test_remove(self, path):
        store = LocalStore(str(path))
        store.set(USER_KEY, {"username": "student"})
        store.remove(USER_KEY)
        store.remove("never-set")
        assert store.get(USER_KEY) is None

    def test_clear(self, path):
        store = LocalStore(str(path))
        store.set(USER_KEY, {"username": "student"})
        store.clear()
        assert store.keys() == []

    def test_corrupt_file_reads_empty(self, path):
        path.parent.mkdir(parents=True)
        path.write_text("{not json")

        store = LocalStore(str(path))
        assert store.get(USER_KEY) is None

        store.set(USER_KEY, "ok")
        assert json.loads(path.read_text()) == {USER_KEY: "ok"}

    def test_no_temp_files_left_behind(self, path):
        store = LocalStore(str(path))
        store.set(USER_KEY, "ok")
        assert [p.name for p in path.parent.iterdir()] == ["store.json"]


class TestFeedbackStore:
    """Test the flat feedback file"""

    def test_append_creates_file_and_directory(self, tmp_path):
        feedback_path = tmp_path / "data" / "feedback.json"
        store = FeedbackStore(str(feedback_path))

        entry = store.append("Great platform", 5, "/problem1.html")

        records = json.loads(feedback_path.read_text())
        assert len(records) == 1
        assert records[0]["feedback"] == "Great platform"
        assert records[0]["rating"] == 5
        assert records[0]["page"] == "/problem1.html"
        assert records[0]["id"] == entry.id
        assert entry.id.isdigit()

    def test_append_keeps_existing_records(self, tmp_path):
        store = FeedbackStore(str(tmp_path / "feedback.json"))
        store.append("one", 4, "/")
        store.append("two", 3, "/")
        assert [r["feedback"] for r in store.read_all()] == ["one", "two"]

    def test_invalid_file_starts_fresh(self, tmp_path):
        feedback_path = tmp_path / "feedback.json"
        feedback_path.write_text("oops")

        store = FeedbackStore(str(feedback_path))
        store.append("one", None, None)

        assert [r["feedback"] for r in store.read_all()] == ["one"]
