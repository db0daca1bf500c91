"""
Course overview - the read model course headers and carousels redraw from.

Rebuilt from scratch after every ProgressChanged; holds no state.
"""

from typing import Optional

import pandas as pd
from pydantic import BaseModel, Field

from taika.schemas import LessonStatus

from .navigator import Navigator
from .progress import ProgressAggregator


class CourseOverview(BaseModel):
    course_id: str
    title: str
    status: LessonStatus
    percent: float = Field(..., ge=0.0, le=1.0)
    completed_lessons: int
    total_lessons: int
    slots: list[float] = []                # per-lesson percent, in lesson order
    next_lesson_id: Optional[str] = None   # first lesson not yet completed


def build_course_overview(
    aggregator: ProgressAggregator,
    navigator: Navigator,
    course_id: str,
) -> CourseOverview:
    """
    Query the aggregator for one course.

    Lesson order and the lesson total come from the navigator, since the
    aggregator only knows lessons it has progress for.
    """
    lessons = navigator.ordered_lessons(course_id)

    # Records for lessons outside the current lesson list don't count
    completed = 0
    next_lesson_id = None
    for lesson_id in lessons:
        progress = aggregator.lesson_progress(course_id, lesson_id)
        if progress is not None and progress.status == LessonStatus.COMPLETED:
            completed += 1
        elif next_lesson_id is None:
            next_lesson_id = lesson_id

    return CourseOverview(
        course_id=course_id,
        title=navigator.course_title(course_id),
        status=aggregator.course_status(course_id),
        percent=aggregator.course_percent(course_id),
        completed_lessons=completed,
        total_lessons=len(lessons),
        slots=aggregator.progress_slots(course_id, lessons),
        next_lesson_id=next_lesson_id,
    )


def build_overviews(aggregator: ProgressAggregator, navigator: Navigator) -> list[CourseOverview]:
    """Overviews for every course, in course order."""
    return [
        build_course_overview(aggregator, navigator, course_id)
        for course_id in navigator.ordered_courses()
    ]


OVERVIEW_COLUMNS = [
    "course_id", "title", "status", "percent",
    "completed_lessons", "total_lessons", "next_lesson_id",
]


def overviews_to_frame(overviews: list[CourseOverview]) -> pd.DataFrame:
    """One row per course; slots are left out, percent is rounded to 0-100."""
    rows = [
        {
            **o.model_dump(exclude={"slots"}),
            "status": o.status.value,
            "percent": round(o.percent * 100, 1),
        }
        for o in overviews
    ]
    return pd.DataFrame(rows, columns=OVERVIEW_COLUMNS)
