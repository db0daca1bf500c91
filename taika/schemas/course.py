"""
Course catalog schemas for Taika.

Defines Pydantic models for the content catalog:
- Courses in their natural (catalog) order
- Lessons with card counts and lifehack positions
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


LESSON_ID_SEPARATOR = "_l"


def lesson_id_for(course_id: str, number: int) -> str:
    """Conventional lesson identifier: <course_id>_l<n>, 1-based."""
    if number < 1:
        raise ValueError(f"Lesson numbers are 1-based (got {number})")
    return f"{course_id}{LESSON_ID_SEPARATOR}{number}"


class LessonData(BaseModel):
    """Lesson content summary as listed in the catalog."""
    id: str = Field(..., min_length=1)
    title: Optional[str] = None
    cards: int = Field(0, ge=0)          # all cards, lifehacks included
    lifehacks: list[int] = []            # card indices that don't count

    @field_validator('lifehacks')
    @classmethod
    def lifehacks_in_range(cls, v):
        if any(i < 0 for i in v):
            raise ValueError('Lifehack indices must be non-negative')
        return sorted(set(v))

    @property
    def effective_cards(self) -> int:
        """Cards that count toward completion."""
        return max(0, self.cards - len(self.lifehacks))


class CourseData(BaseModel):
    id: str = Field(..., min_length=1)
    title: Optional[str] = None
    lessons: Optional[list[LessonData]] = None  # None = not declared, probe by convention


class Catalog(BaseModel):
    courses: list[CourseData] = []
    lessons: dict[str, LessonData] = {}  # content for courses without an explicit list
