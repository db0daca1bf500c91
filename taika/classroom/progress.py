"""
ProgressAggregator - Single source of truth for lesson and course progress.

Owns:
- The progress table: course -> lesson -> LessonProgress
- The started set: lessons the learner entered, learned or not
- A version counter bumped on every coalesced change notification

Mutations update memory immediately. Disk writes are coalesced: the first
mutation schedules one write `save_delay` seconds later, and mutations
before it fires ride along with it. Change notifications are coalesced to
at most one ProgressChanged per scheduler turn. Persistence is optimistic:
a failed write is logged, memory stays authoritative, and the next mutation
writes the latest snapshot again.
"""

import copy
import json
import logging
from typing import Iterable, Optional

from pydantic import TypeAdapter, ValidationError

from taika.schemas import (
    INBOUND_TOPICS,
    AllProgressReset,
    ContentProgressChanged,
    ContentProgressReset,
    CourseProgressReset,
    FavoritesChanged,
    LessonProgress,
    LessonProgressReset,
    LessonSessionStarted,
    LessonStatus,
    MalformedPayload,
    ProgressChanged,
    ProgressTable,
    StartedSet,
)

from .bus import EventBus
from .navigator import Advance, Navigator
from .scheduler import Handle, Scheduler
from .store import KeyValueStore, StoreError


logger = logging.getLogger(__name__)

PROGRESS_KEY = "lessons.progress.v1"
STARTED_KEY = "lessons.started.v1"
VERSION_KEY = PROGRESS_KEY + ".version"

DEFAULT_SAVE_DELAY = 0.25
DEFAULT_FAVORITES_DEBOUNCE = 0.2
MAX_VERSION = 2**63 - 1

_table_adapter = TypeAdapter(dict[str, dict[str, LessonProgress]])
_started_adapter = TypeAdapter(dict[str, list[str]])


class ProgressAggregator:
    """
    Track how much of each lesson has been learned and derive course status.

    Construct once per process and hand the instance to every consumer.
    All calls must happen on the scheduler's execution context.
    """

    def __init__(
        self,
        store: KeyValueStore,
        bus: EventBus,
        scheduler: Scheduler,
        navigator: Optional[Navigator] = None,
        save_delay: float = DEFAULT_SAVE_DELAY,
        favorites_debounce: float = DEFAULT_FAVORITES_DEBOUNCE,
    ):
        """
        Initialize aggregator, load persisted state and subscribe to the bus.

        Args:
            store: Durable key-value store
            bus: Event bus shared with collaborators
            scheduler: The single execution context (asyncio loop or ManualScheduler)
            navigator: Optional navigator for advance/title forwarding
            save_delay: Debounce window for disk writes, in seconds
            favorites_debounce: Debounce window for favorites-driven refreshes
        """
        if save_delay < 0 or favorites_debounce < 0:
            raise ValueError("Debounce delays must be >= 0")

        self.store = store
        self.bus = bus
        self.scheduler = scheduler
        self.navigator = navigator
        self.save_delay = save_delay
        self.favorites_debounce = favorites_debounce

        self._progress: ProgressTable = {}
        self._started: StartedSet = {}
        self._version = 0

        self._pending_emit = False
        self._save_handle: Optional[Handle] = None
        self._favorites_handle: Optional[Handle] = None

        self._load()
        self._unsubscribers = [
            bus.subscribe(ContentProgressChanged, self._on_content_progress_changed),
            bus.subscribe(ContentProgressReset, self._on_content_progress_reset),
            bus.subscribe(LessonSessionStarted, self._on_lesson_session_started),
            bus.subscribe(FavoritesChanged, self._on_favorites_changed),
            bus.subscribe(MalformedPayload, self._on_malformed_payload),
        ]

    def close(self):
        """Unsubscribe from the bus, cancel timers and write the latest state."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        if self._favorites_handle is not None:
            self._favorites_handle.cancel()
            self._favorites_handle = None
        self.flush()

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    @property
    def version(self) -> int:
        """Change token. Only compare for inequality."""
        return self._version

    def lesson_progress(self, course_id: str, lesson_id: str) -> Optional[LessonProgress]:
        return self._progress.get(course_id, {}).get(lesson_id)

    def lesson_percent(self, course_id: str, lesson_id: str) -> float:
        progress = self.lesson_progress(course_id, lesson_id)
        return progress.percent if progress else 0.0

    def lesson_status_with_progress(self, course_id: str, lesson_id: str) -> tuple[LessonStatus, float]:
        """Status and percent; (locked, 0.0) for unknown or empty lessons."""
        progress = self.lesson_progress(course_id, lesson_id)
        if progress is None or progress.total <= 0:
            return LessonStatus.LOCKED, 0.0
        return progress.status, progress.percent

    def lesson_ids(self, course_id: str) -> list[str]:
        """Lessons with a progress record, sorted for stability."""
        return sorted(self._progress.get(course_id, {}))

    def started_lessons(self, course_id: str) -> set[str]:
        return set(self._started.get(course_id, ()))

    def course_status(self, course_id: str) -> LessonStatus:
        """
        Aggregate status of a course.

        Only recorded lessons count: a course whose recorded lessons are
        all completed is completed even if other lessons were never opened.
        """
        statuses = [p.status for p in self._progress.get(course_id, {}).values()]
        started = self._started.get(course_id)

        if statuses and all(s == LessonStatus.COMPLETED for s in statuses):
            return LessonStatus.COMPLETED
        if LessonStatus.IN_PROGRESS in statuses or started:
            return LessonStatus.IN_PROGRESS
        return LessonStatus.LOCKED

    def course_percent(self, course_id: str) -> float:
        """Learned cards over total cards across lessons with content."""
        counted = [p for p in self._progress.get(course_id, {}).values() if p.total > 0]
        total = sum(p.total for p in counted)
        if total <= 0:
            return 0.0
        learned = sum(min(p.learned, p.total) for p in counted)
        return min(max(learned / total, 0.0), 1.0)

    def header_counts(self, course_id: str, lessons_total: int) -> tuple[int, int]:
        """(completed lessons, lessons_total) for course headers."""
        completed = sum(
            1 for p in self._progress.get(course_id, {}).values()
            if p.status == LessonStatus.COMPLETED
        )
        return completed, lessons_total

    def progress_slots(self, course_id: str, lesson_ids: Iterable[str]) -> list[float]:
        """Per-lesson percent in the given order, 0.0 for unrecorded lessons."""
        by_lesson = self._progress.get(course_id, {})
        return [
            by_lesson[lesson_id].percent if lesson_id in by_lesson else 0.0
            for lesson_id in lesson_ids
        ]

    def snapshot(self) -> tuple[ProgressTable, StartedSet]:
        """Deep copy of the progress table and started set."""
        return copy.deepcopy(self._progress), copy.deepcopy(self._started)

    # -------------------------------------------------------------------------
    # Write
    # -------------------------------------------------------------------------

    def update_lesson_progress(
        self,
        course_id: str,
        lesson_id: str,
        learned_count: int,
        total: int,
        lifehack_count: int = 0,
    ) -> bool:
        """
        Record lesson progress from counts.

        Args:
            learned_count: Learned content cards (lifehacks not included)
            total: All cards of the lesson, lifehacks included
            lifehack_count: How many of `total` are lifehacks

        Returns:
            True if the stored value changed
        """
        effective_total = max(0, max(0, total) - max(0, lifehack_count))
        new = LessonProgress.from_counts(learned_count, effective_total)

        logger.debug(
            f"Update {course_id}/{lesson_id}: learned={new.learned} total={total} "
            f"lifehacks={lifehack_count} effective={effective_total} status={new.status.value}"
        )
        if self.lesson_progress(course_id, lesson_id) == new:
            return False

        self._progress.setdefault(course_id, {})[lesson_id] = new
        self._schedule_save()
        self._schedule_emit()
        return True

    def update_lesson_progress_from_indices(
        self,
        course_id: str,
        lesson_id: str,
        learned_content: Iterable[int],
        all_content: Iterable[int],
        lifehacks: Iterable[int] = frozenset(),
    ) -> bool:
        """
        Record lesson progress from card index sets.

        Learned indices outside all_content, or pointing at lifehacks, are
        ignored.
        """
        all_set = set(all_content)
        lifehack_set = set(lifehacks)
        learned = set(learned_content) & (all_set - lifehack_set)
        return self.update_lesson_progress(
            course_id,
            lesson_id,
            learned_count=len(learned),
            total=len(all_set),
            lifehack_count=len(lifehack_set),
        )

    def mark_lesson_started(self, course_id: str, lesson_id: str, hint_total: int = 0) -> bool:
        """
        Mark a lesson as entered, even with nothing learned yet.

        On first entry without a progress record, a record is created as
        in_progress with learned=0 so the course reads as started at once.

        Returns:
            True on first entry, False if the lesson was already started
        """
        started = self._started.setdefault(course_id, set())
        if lesson_id in started:
            return False

        started.add(lesson_id)
        by_lesson = self._progress.setdefault(course_id, {})
        if lesson_id not in by_lesson:
            by_lesson[lesson_id] = LessonProgress(
                learned=0,
                total=max(0, hint_total),
                status=LessonStatus.IN_PROGRESS,
            )
        logger.debug(f"Started {course_id}/{lesson_id} (hint_total={hint_total})")
        self._schedule_save()
        self._schedule_emit()
        return True

    def reset_lesson_progress(self, course_id: str, lesson_id: str):
        """
        Forget one lesson. Always persists and notifies, even if nothing
        was recorded, so a stuck view gets redrawn.
        """
        had_value = self._progress.get(course_id, {}).pop(lesson_id, None) is not None
        self._started.get(course_id, set()).discard(lesson_id)
        self._prune(course_id)

        self._schedule_emit()
        self._schedule_save(immediate=True)
        self.bus.publish(LessonProgressReset(course_id=course_id, lesson_id=lesson_id, changed=had_value))
        logger.info(f"Reset progress for {course_id}/{lesson_id} (changed={had_value})")

    def reset_course_progress(self, course_id: str):
        """Forget a course and tell collaborators to drop their course state."""
        self._progress.pop(course_id, None)
        self._started.pop(course_id, None)

        self._schedule_emit()
        self._schedule_save(immediate=True)
        self.bus.publish(CourseProgressReset(course_id=course_id))
        logger.info(f"Reset progress for course {course_id}")

    def reset_all_progress(self):
        """Forget everything and tell collaborators to do the same."""
        self._progress.clear()
        self._started.clear()

        self._schedule_emit()
        self._schedule_save(immediate=True)
        self.bus.publish(AllProgressReset())
        logger.info("Reset progress for all courses")

    def force_refresh(self):
        """Ask consumers to re-read without changing anything."""
        self._schedule_emit()

    def flush(self):
        """Cancel any pending debounced write and persist now."""
        if self._save_handle is not None:
            self._save_handle.cancel()
            self._save_handle = None
        self._save()

    def _prune(self, course_id: str):
        if course_id in self._progress and not self._progress[course_id]:
            del self._progress[course_id]
        if course_id in self._started and not self._started[course_id]:
            del self._started[course_id]

    # -------------------------------------------------------------------------
    # Navigation (forwarded)
    # -------------------------------------------------------------------------

    def _require_navigator(self) -> Navigator:
        if self.navigator is None:
            raise RuntimeError("ProgressAggregator was created without a navigator")
        return self.navigator

    def advance(self, course_id: str, lesson_id: str) -> Advance:
        return self._require_navigator().advance(course_id, lesson_id)

    def first_lesson(self, course_id: str) -> Optional[str]:
        return self._require_navigator().first_lesson(course_id)

    def lesson_title(self, lesson_id: str) -> str:
        return self._require_navigator().lesson_title(lesson_id)

    def course_title(self, course_id: str) -> str:
        return self._require_navigator().course_title(course_id)

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def _on_content_progress_changed(self, event: ContentProgressChanged):
        if event.has_index_sets:
            self.update_lesson_progress_from_indices(
                event.course_id,
                event.lesson_id,
                learned_content=event.learned_content_indices,
                all_content=event.all_content_indices,
                lifehacks=event.lifehack_indices or frozenset(),
            )
        elif event.has_counts:
            self.update_lesson_progress(
                event.course_id,
                event.lesson_id,
                learned_count=event.learned_count,
                total=event.total_count,
                lifehack_count=event.lifehack_count or 0,
            )
        else:
            logger.warning(
                f"Progress event for {event.course_id}/{event.lesson_id} has no usable fields, "
                "forcing refresh"
            )
            self.force_refresh()

    def _on_content_progress_reset(self, event: ContentProgressReset):
        self.force_refresh()

    def _on_lesson_session_started(self, event: LessonSessionStarted):
        hint_total = event.total_count
        if hint_total is None and self.navigator is not None:
            hint_total = self.navigator.lesson_card_total(event.lesson_id)
        self.mark_lesson_started(event.course_id, event.lesson_id, hint_total=hint_total or 0)

    def _on_favorites_changed(self, event: FavoritesChanged):
        if self._favorites_handle is not None:
            self._favorites_handle.cancel()
        self._favorites_handle = self.scheduler.call_later(self.favorites_debounce, self._favorites_refresh)

    def _favorites_refresh(self):
        self._favorites_handle = None
        self.force_refresh()

    def _on_malformed_payload(self, event: MalformedPayload):
        if event.source_topic in INBOUND_TOPICS:
            self.force_refresh()

    # -------------------------------------------------------------------------
    # Coalesced notification
    # -------------------------------------------------------------------------

    def _schedule_emit(self):
        if self._pending_emit:
            return
        self._pending_emit = True
        self.scheduler.call_soon(self._emit)

    def _emit(self):
        self._pending_emit = False
        self._tick()
        self.bus.publish(ProgressChanged())

    def _tick(self):
        self._version = 0 if self._version >= MAX_VERSION else self._version + 1

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _schedule_save(self, immediate: bool = False):
        # One pending write at a time; it persists whatever is current when it fires
        if immediate:
            if self._save_handle is not None:
                self._save_handle.cancel()
            self._save_handle = self.scheduler.call_soon(self._save)
        elif self._save_handle is None:
            self._save_handle = self.scheduler.call_later(self.save_delay, self._save)

    def _save(self):
        self._save_handle = None
        table = {
            course: {
                lesson: progress.model_dump(mode="json", exclude={"percent"})
                for lesson, progress in by_lesson.items()
            }
            for course, by_lesson in self._progress.items()
        }
        started = {course: sorted(lessons) for course, lessons in self._started.items()}
        try:
            self.store.set(PROGRESS_KEY, json.dumps(table, ensure_ascii=False).encode("utf-8"))
            self.store.set(STARTED_KEY, json.dumps(started, ensure_ascii=False).encode("utf-8"))
            self.store.set(VERSION_KEY, str(self._version).encode("utf-8"))
        except StoreError as e:
            logger.warning(f"Failed to persist progress: {e}")

    def _load(self):
        try:
            raw_progress = self.store.get(PROGRESS_KEY)
            raw_started = self.store.get(STARTED_KEY)
            raw_version = self.store.get(VERSION_KEY)
        except StoreError as e:
            logger.warning(f"Failed to read persisted progress, starting empty: {e}")
            return

        if raw_progress is not None:
            try:
                self._progress = _table_adapter.validate_json(raw_progress)
            except ValidationError as e:
                logger.warning(f"Discarding malformed progress table: {e.error_count()} error(s)")
                self._progress = {}

        if raw_started is not None:
            try:
                decoded = _started_adapter.validate_json(raw_started)
                self._started = {course: set(lessons) for course, lessons in decoded.items()}
            except ValidationError as e:
                logger.warning(f"Discarding malformed started set: {e.error_count()} error(s)")
                self._started = {}

        if raw_version is not None:
            try:
                self._version = max(0, int(raw_version.decode("utf-8")))
            except (UnicodeDecodeError, ValueError):
                logger.warning(f"Ignoring malformed version counter {raw_version!r}")
                self._version = 0

        logger.info(
            f"Loaded progress for {len(self._progress)} course(s), "
            f"{sum(len(s) for s in self._started.values())} started lesson(s)"
        )
