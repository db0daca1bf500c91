"""
Navigator - Course/lesson ordering and "what's next" traversal.

Provides:
- Course order (from course metadata)
- Lesson order per course (declared list, or probing <course>_l<n>)
- Next/previous lesson and course-to-course advance
- Safe title resolution with identifier fallback
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from taika.schemas import lesson_id_for


logger = logging.getLogger(__name__)

DEFAULT_PROBE_LIMIT = 99


class CourseMetadata(Protocol):
    def get_course_ids(self) -> list[str]: ...

    def get_course_title(self, course_id: str) -> Optional[str]: ...


class ContentLookup(Protocol):
    def get_lesson_ids(self, course_id: str) -> Optional[list[str]]: ...

    def has_lesson_content(self, lesson_id: str) -> bool: ...

    def get_lesson_title(self, lesson_id: str) -> Optional[str]: ...

    def get_lesson_card_total(self, lesson_id: str) -> int: ...


@dataclass(frozen=True)
class NextLesson:
    """Successor inside the same course."""
    course_id: str
    lesson_id: str


@dataclass(frozen=True)
class NextCourse:
    """First lesson of the following course."""
    course_id: str
    lesson_id: str


@dataclass(frozen=True)
class End:
    """Traversal is over."""


Advance = Union[NextLesson, NextCourse, End]


def humanize_identifier(identifier: str) -> str:
    """
    Readable fallback title: separators become spaces, whitespace trimmed.

    Returns the identifier itself if nothing readable is left.
    """
    pretty = re.sub(r"[_\-]+", " ", identifier)
    pretty = " ".join(pretty.split())
    return pretty or identifier


class Navigator:
    """
    Stateless traversal over courses and lessons.

    Reads course order from course metadata and lesson existence from the
    content lookup; holds no progress state of its own.
    """

    def __init__(
        self,
        courses: CourseMetadata,
        content: ContentLookup,
        probe_limit: int = DEFAULT_PROBE_LIMIT,
    ):
        """
        Initialize navigator.

        Args:
            courses: Source of course order and titles
            content: Source of lesson lists, lesson existence and titles
            probe_limit: Highest n probed for <course>_l<n> lesson ids
        """
        if probe_limit < 1:
            raise ValueError(f"probe_limit must be >= 1 (got {probe_limit})")
        self.courses = courses
        self.content = content
        self.probe_limit = probe_limit

    # -------------------------------------------------------------------------
    # Ordering
    # -------------------------------------------------------------------------

    def ordered_courses(self) -> list[str]:
        """Course IDs in the catalog's natural order."""
        return list(self.courses.get_course_ids())

    def ordered_lessons(self, course_id: str) -> list[str]:
        """
        Lesson IDs of a course in teaching order.

        A declared lesson list is authoritative. Without one, probes
        <course>_l1, <course>_l2, ... and stops at the first gap, so a
        course without <course>_l1 yields no lessons at all.
        """
        declared = self.content.get_lesson_ids(course_id)
        if declared is not None:
            return list(declared)
        return self._probe_lessons(course_id)

    def _probe_lessons(self, course_id: str) -> list[str]:
        result = []
        for n in range(1, self.probe_limit + 1):
            lesson_id = lesson_id_for(course_id, n)
            if not self.content.has_lesson_content(lesson_id):
                break
            result.append(lesson_id)
        if not result:
            # A missing _l1 hides the whole course; declare its lessons instead
            logger.warning(f"No lessons found for course {course_id!r} (probed {lesson_id_for(course_id, 1)!r})")
        return result

    def first_lesson(self, course_id: str) -> Optional[str]:
        lessons = self.ordered_lessons(course_id)
        return lessons[0] if lessons else None

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def advance(self, course_id: str, lesson_id: str) -> Advance:
        """
        Where to go after finishing a lesson.

        Returns:
            NextLesson within the course, NextCourse at the first lesson of
            the following course, or End. A lesson that isn't part of its
            course, or a following course with no lessons, ends traversal.
        """
        lessons = self.ordered_lessons(course_id)
        if lesson_id not in lessons:
            return End()

        index = lessons.index(lesson_id)
        if index + 1 < len(lessons):
            return NextLesson(course_id, lessons[index + 1])

        courses = self.ordered_courses()
        if course_id in courses:
            course_index = courses.index(course_id)
            if course_index + 1 < len(courses):
                next_course = courses[course_index + 1]
                first = self.first_lesson(next_course)
                if first:
                    return NextCourse(next_course, first)
        return End()

    def previous_lesson(self, course_id: str, lesson_id: str) -> Optional[str]:
        """Get the ID of the previous lesson in the same course."""
        lessons = self.ordered_lessons(course_id)
        if lesson_id not in lessons:
            return None
        index = lessons.index(lesson_id)
        return lessons[index - 1] if index > 0 else None

    def lesson_position(self, course_id: str, lesson_id: str) -> tuple[int, int]:
        """
        Get lesson position as (current, total), 1-based.

        Returns (0, total) if lesson not found.
        """
        lessons = self.ordered_lessons(course_id)
        if lesson_id not in lessons:
            return (0, len(lessons))
        return (lessons.index(lesson_id) + 1, len(lessons))

    def lesson_card_total(self, lesson_id: str) -> int:
        """Cards of a lesson that count toward completion, 0 if unknown."""
        return max(0, self.content.get_lesson_card_total(lesson_id))

    # -------------------------------------------------------------------------
    # Titles
    # -------------------------------------------------------------------------

    def lesson_title(self, lesson_id: str) -> str:
        title = (self.content.get_lesson_title(lesson_id) or "").strip()
        return title or humanize_identifier(lesson_id)

    def course_title(self, course_id: str) -> str:
        title = (self.courses.get_course_title(course_id) or "").strip()
        return title or humanize_identifier(course_id)
