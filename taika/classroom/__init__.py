"""
Taika Classroom - Runtime components for lesson progress and navigation.

This module provides:
- ProgressAggregator: lesson/course progress, persistence, change signals
- Navigator: course and lesson ordering, advance
- CourseLoader: course catalog
- EventBus: typed pub/sub with collaborators
- SqliteStore / MemoryStore: durable key-value state
- ManualScheduler: deterministic execution context
"""

from .scheduler import (
    Handle,
    Scheduler,
    ManualScheduler,
    ScheduledCall,
)

from .bus import (
    EventBus,
    UnknownTopicError,
    parse_event,
)

from .store import (
    KeyValueStore,
    SqliteStore,
    MemoryStore,
    StoreError,
    DEFAULT_STORE_DIR,
    DEFAULT_STORE_DB,
)

from .loader import CourseLoader

from .navigator import (
    Navigator,
    CourseMetadata,
    ContentLookup,
    Advance,
    NextLesson,
    NextCourse,
    End,
    humanize_identifier,
)

from .progress import (
    ProgressAggregator,
    PROGRESS_KEY,
    STARTED_KEY,
    VERSION_KEY,
    MAX_VERSION,
)

from .overview import (
    OVERVIEW_COLUMNS,
    CourseOverview,
    build_course_overview,
    build_overviews,
    overviews_to_frame,
)

__all__ = [
    # Scheduler
    "Handle",
    "Scheduler",
    "ManualScheduler",
    "ScheduledCall",
    # Bus
    "EventBus",
    "UnknownTopicError",
    "parse_event",
    # Store
    "KeyValueStore",
    "SqliteStore",
    "MemoryStore",
    "StoreError",
    "DEFAULT_STORE_DIR",
    "DEFAULT_STORE_DB",
    # Loader
    "CourseLoader",
    # Navigator
    "Navigator",
    "CourseMetadata",
    "ContentLookup",
    "Advance",
    "NextLesson",
    "NextCourse",
    "End",
    "humanize_identifier",
    # Progress
    "ProgressAggregator",
    "PROGRESS_KEY",
    "STARTED_KEY",
    "VERSION_KEY",
    "MAX_VERSION",
    # Overview
    "OVERVIEW_COLUMNS",
    "CourseOverview",
    "build_course_overview",
    "build_overviews",
    "overviews_to_frame",
]
