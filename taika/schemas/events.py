"""
Event schemas for Taika.

Every bus topic has its own frozen Pydantic model. Python code uses
snake_case field names; the camelCase aliases are the wire names used by
collaborators that still publish plain dictionaries.

Inbound (consumed by the progress aggregator):
- content.progressChanged, content.progressReset
- lesson.sessionStarted, favorites.changed

Outbound (published by the progress aggregator):
- progress.changed, lesson.progressReset
- course.progressReset, allProgress.reset
"""

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


ALL_LESSONS = "__all__"


class Event(BaseModel):
    """Base class for bus events."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    topic: ClassVar[str] = ""


# -----------------------------------------------------------------------------
# Inbound
# -----------------------------------------------------------------------------

class ContentProgressChanged(Event):
    """
    Card runtime reports lesson progress.

    Carries either index sets (learned/all/lifehack) or plain counts.
    Only course and lesson are required; the aggregator decides which
    group is usable.
    """
    topic: ClassVar[str] = "content.progressChanged"

    course_id: str = Field(..., alias="courseId", min_length=1)
    lesson_id: str = Field(..., alias="lessonId", min_length=1)

    learned_content_indices: Optional[frozenset[int]] = Field(None, alias="learnedContentIndices")
    all_content_indices: Optional[frozenset[int]] = Field(None, alias="allContentIndices")
    lifehack_indices: Optional[frozenset[int]] = Field(None, alias="lifehackIndices")

    learned_count: Optional[int] = Field(None, alias="learnedCount")
    total_count: Optional[int] = Field(None, alias="totalCount")
    lifehack_count: Optional[int] = Field(None, alias="lifehackCount")

    @property
    def has_index_sets(self) -> bool:
        return self.learned_content_indices is not None and self.all_content_indices is not None

    @property
    def has_counts(self) -> bool:
        return self.learned_count is not None and self.total_count is not None


class ContentProgressReset(Event):
    """Card runtime dropped its state for a lesson (or ALL_LESSONS)."""
    topic: ClassVar[str] = "content.progressReset"

    course_id: str = Field(..., alias="courseId")
    lesson_id: str = Field(ALL_LESSONS, alias="lessonId")

    @property
    def all_lessons(self) -> bool:
        return self.lesson_id == ALL_LESSONS


class LessonSessionStarted(Event):
    """The learner opened a lesson."""
    topic: ClassVar[str] = "lesson.sessionStarted"

    course_id: str = Field(..., alias="courseId", min_length=1)
    lesson_id: str = Field(..., alias="lessonId", min_length=1)
    total_count: Optional[int] = Field(None, alias="totalCount")


class FavoritesChanged(Event):
    topic: ClassVar[str] = "favorites.changed"


# -----------------------------------------------------------------------------
# Outbound
# -----------------------------------------------------------------------------

class ProgressChanged(Event):
    """Coalesced "please re-read" signal. Deliberately carries nothing."""
    topic: ClassVar[str] = "progress.changed"


class LessonProgressReset(Event):
    topic: ClassVar[str] = "lesson.progressReset"

    course_id: str = Field(..., alias="courseId")
    lesson_id: str = Field(..., alias="lessonId")
    changed: bool = False  # a record existed before the reset


class CourseProgressReset(Event):
    topic: ClassVar[str] = "course.progressReset"

    course_id: str = Field(..., alias="courseId")


class AllProgressReset(Event):
    topic: ClassVar[str] = "allProgress.reset"


# -----------------------------------------------------------------------------
# Infrastructure
# -----------------------------------------------------------------------------

class MalformedPayload(Event):
    """A dictionary payload that could not be parsed into its topic's event."""
    topic: ClassVar[str] = "bus.malformedPayload"

    source_topic: str = Field(..., alias="sourceTopic")
    payload: dict[str, Any] = {}
    reason: str = ""

    @field_validator('payload', mode='before')
    @classmethod
    def payload_as_dict(cls, v):
        return v if isinstance(v, dict) else {"value": v}


EVENT_TYPES: dict[str, type[Event]] = {
    cls.topic: cls
    for cls in (
        ContentProgressChanged,
        ContentProgressReset,
        LessonSessionStarted,
        FavoritesChanged,
        ProgressChanged,
        LessonProgressReset,
        CourseProgressReset,
        AllProgressReset,
        MalformedPayload,
    )
}

INBOUND_TOPICS = frozenset({
    ContentProgressChanged.topic,
    ContentProgressReset.topic,
    LessonSessionStarted.topic,
    FavoritesChanged.topic,
})
