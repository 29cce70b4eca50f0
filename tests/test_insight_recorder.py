"""
Unit tests for the InsightRecorder

Run with:
    pytest tests/test_insight_recorder.py -v
"""

import pytest
from unittest.mock import Mock
from datetime import datetime, timedelta, timezone

from agents.insight_recorder import InsightRecorder, DEFAULT_CONTEXT
from models.insight import InsightEntry
from services.local_store import INSIGHTS_KEY, LocalStore
from tests.fixtures.mentor_fixtures import sample_analysis


@pytest.fixture
def store(tmp_path):
    return LocalStore(str(tmp_path / "store.json"))


@pytest.fixture
def mentor():
    mock = Mock()
    mock.analyze.return_value = sample_analysis()
    return mock


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture
def recorder(mentor, store):
    return InsightRecorder(mentor, store, limit=20, clock=FakeClock())


class TestRecordFromResponse:
    """Test recording an insight for a student message"""

    def test_stores_analysis_with_topic(self, recorder, mentor, store):
        entry = recorder.record_from_response("Plants eat sunlight", "Biology")

        assert isinstance(entry, InsightEntry)
        assert entry.topic == "Biology"
        mentor.analyze.assert_called_once_with("Plants eat sunlight", "Biology")

        stored = store.get(INSIGHTS_KEY)
        assert len(stored) == 1
        assert stored[0]["insight"] == sample_analysis()
        assert stored[0]["topic"] == "Biology"

    def test_default_context_without_topic(self, recorder, mentor):
        entry = recorder.record_from_response("Plants eat sunlight")

        mentor.analyze.assert_called_once_with("Plants eat sunlight", DEFAULT_CONTEXT)
        assert entry.topic is None

    def test_nothing_stored_when_analysis_unavailable(self, recorder, mentor, store):
        mentor.analyze.return_value = None

        assert recorder.record_from_response("Plants eat sunlight") is None
        assert store.get(INSIGHTS_KEY) is None

    def test_errors_are_swallowed(self, recorder, mentor, store):
        mentor.analyze.side_effect = RuntimeError("boom")

        assert recorder.record_from_response("Plants eat sunlight") is None
        assert store.get(INSIGHTS_KEY) is None


class TestInsightLog:
    """Test the bounded insight log"""

    def test_log_capped_at_limit(self, recorder):
        for i in range(20):
            recorder.store_insight({"n": i})
        assert len(recorder.get_insights()) == 20

    def test_twenty_first_entry_evicts_oldest(self, recorder):
        for i in range(21):
            recorder.store_insight({"n": i})

        insights = recorder.get_insights()
        assert len(insights) == 20
        assert insights[0].insight == {"n": 1}
        assert insights[-1].insight == {"n": 20}

    def test_entries_in_insertion_order(self, recorder):
        for i in range(3):
            recorder.store_insight({"n": i})

        timestamps = [entry.timestamp for entry in recorder.get_insights()]
        assert timestamps == sorted(timestamps)

    def test_unreadable_entries_skipped(self, recorder, store):
        store.set(INSIGHTS_KEY, [{"garbage": True}])
        recorder.store_insight({"n": 1})

        insights = recorder.get_insights()
        assert [entry.insight for entry in insights] == [{"n": 1}]

    def test_zero_limit_keeps_nothing(self, mentor, store):
        recorder = InsightRecorder(mentor, store, limit=0, clock=FakeClock())
        recorder.store_insight({"n": 1})
        assert recorder.get_insights() == []

    def test_clear(self, recorder, store):
        recorder.store_insight({"n": 1})
        recorder.clear()
        assert recorder.get_insights() == []
        assert INSIGHTS_KEY not in store.keys()
