"""
EventBus - typed publish/subscribe between the engine and its collaborators.

Handlers are keyed by event class, not by topic string. Delivery is
synchronous on the caller's context, which is the engine's single
execution context; anything that must happen "later" is deferred by the
subscriber through its scheduler.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Optional, TypeVar

from pydantic import ValidationError

from taika.schemas import EVENT_TYPES, Event, MalformedPayload


logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Event)
Handler = Callable[[Any], None]


class UnknownTopicError(KeyError):
    """No event type is registered for a topic."""


def parse_event(topic: str, payload: Optional[dict[str, Any]] = None) -> Event:
    """
    Build the typed event for a dictionary payload.

    Raises:
        UnknownTopicError: topic has no registered event type
        pydantic.ValidationError: payload doesn't fit the event type
    """
    try:
        event_type = EVENT_TYPES[topic]
    except KeyError:
        raise UnknownTopicError(topic) from None
    return event_type.model_validate(payload or {})


class EventBus:
    """Process-wide typed event bus."""

    def __init__(self):
        self._handlers: dict[type[Event], list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """
        Register a handler for one event type.

        Returns:
            Callable that removes the subscription
        """
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(event_type, handler)

        return unsubscribe

    def unsubscribe(self, event_type: type[Event], handler: Handler) -> None:
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, event_type: type[Event]) -> int:
        return len(self._handlers.get(event_type, ()))

    def publish(self, event: Event) -> int:
        """
        Deliver an event to its subscribers in subscription order.

        Subscriptions added or removed by a handler take effect from the
        next publish. A handler that raises is logged and skipped; the
        remaining handlers still receive the event.

        Returns:
            Number of handlers called
        """
        handlers = list(self._handlers.get(type(event), ()))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Handler {handler!r} failed on {event.topic!r}")
        return len(handlers)

    def publish_payload(self, topic: str, payload: Optional[dict[str, Any]] = None) -> Optional[Event]:
        """
        Publish a dictionary payload from a collaborator that isn't typed yet.

        A payload that fails validation is published as MalformedPayload so
        subscribers can fall back to a full refresh. Unknown topics are
        dropped.

        Returns:
            The event that was published, or None for unknown topics
        """
        try:
            event = parse_event(topic, payload)
        except UnknownTopicError:
            logger.warning(f"Dropping payload for unknown topic {topic!r}")
            return None
        except ValidationError as e:
            logger.warning(f"Malformed payload on {topic!r}: {e.error_count()} error(s)")
            event = MalformedPayload(
                source_topic=topic,
                payload=payload or {},
                reason=str(e),
            )
        self.publish(event)
        return event
