"""
CourseLoader - Load the course catalog from a YAML or JSON file.

Provides read-only access to:
- Courses in catalog order
- Declared lesson lists per course
- Lesson content summaries (card counts, lifehack positions, titles)
"""

from pathlib import Path
from typing import Any, Optional

import yaml

from taika.schemas import Catalog, CourseData, LessonData


class CourseLoader:
    """
    Load course catalog data.

    The catalog is parsed once; every lookup afterwards is in-memory.
    """

    def __init__(self, catalog_path: str | Path):
        """
        Initialize loader with path to a catalog file.

        Args:
            catalog_path: Path to a .yaml/.yml/.json catalog (JSON is valid YAML)

        Raises:
            FileNotFoundError: If the catalog doesn't exist
            yaml.YAMLError: If the file can't be parsed
            pydantic.ValidationError: If the catalog structure is invalid
        """
        self.catalog_path = Path(catalog_path)
        if not self.catalog_path.exists():
            raise FileNotFoundError(f"Course catalog not found: {catalog_path}")

        with open(self.catalog_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        self._index(self._parse(raw))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CourseLoader":
        """Build a loader from an already-parsed catalog dictionary."""
        loader = cls.__new__(cls)
        loader.catalog_path = None
        loader._index(cls._parse(data))
        return loader

    @staticmethod
    def _parse(raw: dict[str, Any]) -> Catalog:
        # Top-level lessons may be keyed by id without repeating it
        lessons = {
            lesson_id: {"id": lesson_id, **(body or {})}
            for lesson_id, body in (raw.get("lessons") or {}).items()
        }
        return Catalog.model_validate({**raw, "lessons": lessons})

    def _index(self, catalog: Catalog):
        self._courses: dict[str, CourseData] = {}
        self._course_order: list[str] = []
        self._lessons: dict[str, LessonData] = dict(catalog.lessons)

        for course in catalog.courses:
            if course.id in self._courses:
                continue
            self._courses[course.id] = course
            self._course_order.append(course.id)
            for lesson in course.lessons or []:
                self._lessons[lesson.id] = lesson

    # -------------------------------------------------------------------------
    # Courses
    # -------------------------------------------------------------------------

    def get_course_ids(self) -> list[str]:
        """Course IDs in catalog order."""
        return list(self._course_order)

    def get_course(self, course_id: str) -> Optional[CourseData]:
        return self._courses.get(course_id)

    def get_course_title(self, course_id: str) -> Optional[str]:
        course = self._courses.get(course_id)
        return course.title if course else None

    # -------------------------------------------------------------------------
    # Lessons
    # -------------------------------------------------------------------------

    def get_lesson_ids(self, course_id: str) -> Optional[list[str]]:
        """
        Declared lesson order for a course.

        Returns None when the course doesn't declare its lessons, so callers
        can fall back to the naming convention.
        """
        course = self._courses.get(course_id)
        if course is None or course.lessons is None:
            return None
        return [lesson.id for lesson in course.lessons]

    def get_lesson(self, lesson_id: str) -> Optional[LessonData]:
        return self._lessons.get(lesson_id)

    def has_lesson_content(self, lesson_id: str) -> bool:
        """True if the lesson is known and has at least one card."""
        lesson = self._lessons.get(lesson_id)
        return lesson is not None and lesson.cards > 0

    def get_lesson_title(self, lesson_id: str) -> Optional[str]:
        lesson = self._lessons.get(lesson_id)
        return lesson.title if lesson else None

    def get_lesson_card_total(self, lesson_id: str) -> int:
        """Cards that count toward completion (lifehacks excluded), 0 if unknown."""
        lesson = self._lessons.get(lesson_id)
        return lesson.effective_cards if lesson else 0

    def get_lesson_count(self) -> int:
        return len(self._lessons)
