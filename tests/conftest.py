"""Shared fixtures for the progress engine tests."""

import os
from collections import Counter

import pytest

from taika.classroom import (
    CourseLoader,
    EventBus,
    ManualScheduler,
    MemoryStore,
    Navigator,
    ProgressAggregator,
    StoreError,
)
from taika.schemas import Event


class RecordingStore(MemoryStore):
    """MemoryStore that counts writes per key."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = Counter()

    def set(self, key, value):
        self.writes[key] += 1
        super().set(key, value)


class FailingStore(MemoryStore):
    """Store whose writes always fail."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.attempts = 0

    def set(self, key, value):
        self.attempts += 1
        raise StoreError("disk full")


class EventRecorder:
    """Subscribes to event types and keeps what it receives."""

    def __init__(self, bus: EventBus):
        self.bus = bus
        self.events: list[Event] = []

    def watch(self, *event_types):
        for event_type in event_types:
            self.bus.subscribe(event_type, self.events.append)
        return self

    def of(self, event_type):
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self):
        self.events.clear()


SAMPLE_CATALOG = {
    "courses": [
        {
            "id": "c1",
            "title": "Thai basics",
            "lessons": [
                {"id": "c1_l1", "title": "Greetings", "cards": 4, "lifehacks": [3]},
                {"id": "c1_l2", "title": "Numbers", "cards": 10},
            ],
        },
        {
            "id": "c2",
            "title": "  ",
            "lessons": [
                {"id": "c2_l1", "title": "At the market", "cards": 6},
            ],
        },
        {"id": "street_food"},
    ],
    "lessons": {
        "street_food_l1": {"title": "Noodles", "cards": 5},
        "street_food_l2": {"cards": 3},
        "street_food_l4": {"cards": 3},
    },
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the host's TAIKA_* variables out of engine settings."""
    for name in list(os.environ):
        if name.upper().startswith("TAIKA_"):
            monkeypatch.delenv(name)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def loader():
    return CourseLoader.from_dict(SAMPLE_CATALOG)


@pytest.fixture
def navigator(loader):
    return Navigator(loader, loader)


@pytest.fixture
def recorder(bus):
    return EventRecorder(bus)


@pytest.fixture
def aggregator(store, bus, scheduler, navigator):
    return ProgressAggregator(store, bus, scheduler, navigator=navigator)
