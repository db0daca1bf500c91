"""
Progress schemas for Taika.

Defines Pydantic models for lesson progress:
- Lesson status (derived, never transitioned)
- Per-lesson learned/total counters
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class LessonStatus(str, Enum):
    LOCKED = "locked"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def derive_status(learned: int, total: int) -> LessonStatus:
    """
    Status as a pure function of the counters.

    completed   -> total > 0 and learned >= total
    in_progress -> learned > 0 and not completed (also when total == 0)
    locked      -> everything else
    """
    if total > 0 and learned >= total:
        return LessonStatus.COMPLETED
    if learned > 0:
        return LessonStatus.IN_PROGRESS
    return LessonStatus.LOCKED


class LessonProgress(BaseModel):
    """Progress of one lesson. `total` already excludes lifehack cards."""
    model_config = ConfigDict(frozen=True)

    learned: int = Field(0, ge=0)
    total: int = Field(0, ge=0)
    status: LessonStatus = LessonStatus.LOCKED

    @computed_field
    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(self.learned, self.total) / self.total

    @classmethod
    def from_counts(cls, learned: int, total: int) -> "LessonProgress":
        learned = max(0, learned)
        total = max(0, total)
        return cls(learned=learned, total=total, status=derive_status(learned, total))


ProgressTable = dict[str, dict[str, LessonProgress]]
StartedSet = dict[str, set[str]]
