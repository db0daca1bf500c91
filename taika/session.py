"""
Classroom session - wires the engine's service objects together.

Build one session at process start and pass it (or its members) to every
consumer instead of reaching for module-level singletons.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from taika.classroom import (
    CourseLoader,
    EventBus,
    ManualScheduler,
    MemoryStore,
    Navigator,
    ProgressAggregator,
    Scheduler,
    SqliteStore,
)
from taika.config import EngineSettings


logger = logging.getLogger(__name__)


@dataclass
class ClassroomSession:
    settings: EngineSettings
    scheduler: Scheduler
    bus: EventBus
    store: SqliteStore | MemoryStore
    loader: Optional[CourseLoader]
    navigator: Optional[Navigator]
    progress: ProgressAggregator

    def close(self):
        """Flush progress and detach from the bus."""
        self.progress.close()


def open_classroom(
    settings: EngineSettings,
    scheduler: Optional[Scheduler] = None,
    bus: Optional[EventBus] = None,
    loader: Optional[CourseLoader] = None,
) -> ClassroomSession:
    """
    Create the store, catalog, navigator and aggregator for a process.

    Args:
        settings: Engine settings
        scheduler: Execution context (default: a ManualScheduler; pass the
            running asyncio loop in async hosts)
        bus: Shared event bus (default: a new one)
        loader: Pre-built catalog (default: loaded from settings.catalog_path)

    Raises:
        FileNotFoundError: If settings.catalog_path doesn't exist
        StoreError: If the store database can't be created
    """
    scheduler = scheduler if scheduler is not None else ManualScheduler()
    bus = bus if bus is not None else EventBus()
    store = SqliteStore(settings.store_path) if settings.store_path else MemoryStore()

    if loader is None and settings.catalog_path is not None:
        loader = CourseLoader(settings.catalog_path)

    navigator = None
    if loader is not None:
        navigator = Navigator(loader, loader, probe_limit=settings.lesson_probe_limit)
    else:
        logger.info("No course catalog configured; navigation is unavailable")

    progress = ProgressAggregator(
        store,
        bus,
        scheduler,
        navigator=navigator,
        save_delay=settings.save_delay,
        favorites_debounce=settings.favorites_debounce,
    )
    return ClassroomSession(
        settings=settings,
        scheduler=scheduler,
        bus=bus,
        store=store,
        loader=loader,
        navigator=navigator,
        progress=progress,
    )
