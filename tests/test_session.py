"""Tests for wiring a classroom session from settings."""

import json

import pytest
import yaml

from taika.classroom import PROGRESS_KEY, MemoryStore, NextLesson, SqliteStore
from taika.config import EngineSettings
from taika.schemas import LessonStatus
from taika.session import open_classroom

from conftest import SAMPLE_CATALOG


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "courses.yaml"
    path.write_text(yaml.safe_dump(SAMPLE_CATALOG), encoding="utf-8")
    return path


class TestOpenClassroom:

    def test_full_session(self, tmp_path, catalog_file):
        settings = EngineSettings(store_path=tmp_path / "progress.db", catalog_path=catalog_file)
        session = open_classroom(settings)

        assert isinstance(session.store, SqliteStore)
        assert session.progress.advance("c1", "c1_l1") == NextLesson("c1", "c1_l2")

        session.bus.publish_payload(
            "content.progressChanged",
            {"courseId": "c1", "lessonId": "c1_l1", "learnedCount": 3, "totalCount": 3},
        )
        session.close()

        saved = json.loads(session.store.get(PROGRESS_KEY))
        assert saved["c1"]["c1_l1"]["status"] == "completed"

    def test_memory_session_without_catalog(self):
        session = open_classroom(EngineSettings(store_path=None))
        assert isinstance(session.store, MemoryStore)
        assert session.navigator is None
        with pytest.raises(RuntimeError):
            session.progress.first_lesson("c1")

    def test_lesson_limit_reaches_navigator(self, loader):
        session = open_classroom(EngineSettings(store_path=None, lesson_probe_limit=1), loader=loader)
        assert session.navigator.ordered_lessons("street_food") == ["street_food_l1"]

    def test_settings_reach_aggregator(self):
        session = open_classroom(EngineSettings(store_path=None, save_delay=1.0))
        session.progress.mark_lesson_started("c2", "c2_l1")
        session.scheduler.advance(0.5)
        assert session.store.get(PROGRESS_KEY) is None
        session.scheduler.advance(0.6)
        assert session.progress.course_status("c2") == LessonStatus.IN_PROGRESS
        assert session.store.get(PROGRESS_KEY) is not None
