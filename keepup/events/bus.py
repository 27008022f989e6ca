"""Event Bus — the supervisor's diagnostic channel.

Every launch, load failure, probe failure and watch state change is
emitted here alongside the log line. Supports topic wildcards:
"process.*" matches "process.launched", "process.launch_failed".
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Awaitable

from pydantic import BaseModel, Field

EventHandler = Callable[["Event"], Awaitable[None]]

_logger = logging.getLogger(__name__)


class Event(BaseModel):
    """A diagnostic event."""

    topic: str
    data: dict[str, Any] = Field(default_factory=dict)
    source: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventBus:
    """Async pub/sub event bus with wildcard topic matching.

    Subscribe to "watch.*" to receive all watcher events.
    Subscribe to "*" to receive everything.
    """

    def __init__(self, history_limit: int = 500) -> None:
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)
        self._history: list[Event] = []
        self._history_limit = history_limit

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        """Subscribe to events matching a topic pattern."""
        self._subscribers[pattern].append(handler)

    def unsubscribe(self, pattern: str, handler: EventHandler) -> None:
        """Remove a subscription."""
        handlers = self._subscribers.get(pattern, [])
        if handler in handlers:
            handlers.remove(handler)

    async def emit(self, topic: str, data: dict | None = None, source: str = "") -> Event:
        """Emit an event to all matching subscribers.

        A failing subscriber is logged and never reaches the emitter.
        """
        event = Event(topic=topic, data=data or {}, source=source)

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit:]

        tasks = []
        for pattern, handlers in self._subscribers.items():
            if fnmatch.fnmatch(topic, pattern):
                for handler in handlers:
                    tasks.append(handler(event))

        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    _logger.warning("Event handler for '%s' failed: %s", topic, result)

        return event

    def history(self, topic_filter: str = "*", limit: int = 50) -> list[Event]:
        """Get recent events, newest first, optionally filtered by topic pattern."""
        if topic_filter == "*":
            events = self._history
        else:
            events = [
                e for e in self._history
                if fnmatch.fnmatch(e.topic, topic_filter)
            ]
        return list(reversed(events[-limit:]))

    @property
    def subscriber_count(self) -> int:
        return sum(len(h) for h in self._subscribers.values())

    def topics(self) -> list[str]:
        """Get all topics that have been emitted."""
        return list({e.topic for e in self._history})
