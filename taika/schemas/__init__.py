"""
Taika Schemas - Pydantic models for the lesson progress engine.

This module exports all schema classes for:
- Progress: lesson status and per-lesson counters
- Course: content catalog (courses, lessons, lifehack cards)
- Events: typed bus events, one model per topic
"""

# Progress schemas
from .progress import (
    LessonStatus,
    LessonProgress,
    ProgressTable,
    StartedSet,
    derive_status,
)

# Course schemas
from .course import (
    LessonData,
    CourseData,
    Catalog,
    lesson_id_for,
)

# Event schemas
from .events import (
    ALL_LESSONS,
    EVENT_TYPES,
    INBOUND_TOPICS,
    Event,
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

__all__ = [
    # Progress
    'LessonStatus',
    'LessonProgress',
    'ProgressTable',
    'StartedSet',
    'derive_status',
    # Course
    'LessonData',
    'CourseData',
    'Catalog',
    'lesson_id_for',
    # Events
    'ALL_LESSONS',
    'EVENT_TYPES',
    'INBOUND_TOPICS',
    'Event',
    'ContentProgressChanged',
    'ContentProgressReset',
    'LessonSessionStarted',
    'FavoritesChanged',
    'ProgressChanged',
    'LessonProgressReset',
    'CourseProgressReset',
    'AllProgressReset',
    'MalformedPayload',
]
