"""ConfigWatcher — hot reload when the config file changes.

Runs as the single long-lived watch worker. A watchdog observer thread
feeds an asyncio.Queue; the worker blocks on that queue and, for each
change, asks the supervisor to reload and reconcile. Passes therefore
run one at a time, never overlapping.

The parent directory is watched rather than the file itself so that
editors which save by rename-over are still seen.
"""

from __future__ import annotations

import asyncio
import os
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from keepup.events.bus import EventBus
from keepup.exceptions import WatchRegistrationError
from keepup.supervisor import Supervisor
from keepup.types import WatchEvent

logger = structlog.get_logger()

# Opened/closed notifications are left out: the loader opens the file
# itself on every reload.
_CHANGE_EVENTS = frozenset({"modified", "created", "moved"})


class WatchState(str, Enum):
    PENDING = "pending"
    IDLE = "idle"
    TRIGGERED = "triggered"
    FAILED = "failed"
    STOPPED = "stopped"


class _ConfigFileHandler(FileSystemEventHandler):
    """Forwards changes to one file from the observer thread to the loop."""

    def __init__(
        self,
        target: str,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[WatchEvent],
    ) -> None:
        super().__init__()
        self._target = target
        self._loop = loop
        self._queue = queue

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in _CHANGE_EVENTS:
            return
        paths = (event.src_path, getattr(event, "dest_path", ""))
        if not any(p and os.path.abspath(os.fsdecode(p)) == self._target for p in paths):
            return
        self._loop.call_soon_threadsafe(
            self._queue.put_nowait, WatchEvent(path=self._target),
        )


class ConfigWatcher:
    """Watch one config file and drive ``Supervisor.reload_and_reconcile``."""

    def __init__(
        self,
        path: str | Path,
        supervisor: Supervisor,
        *,
        event_bus: EventBus | None = None,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        self._path = os.path.abspath(os.fspath(path))
        self._supervisor = supervisor
        self._bus = event_bus
        self._observer_factory = observer_factory
        self._state = WatchState.PENDING
        self._task: asyncio.Task | None = None
        self._reloads = 0

    @property
    def path(self) -> str:
        return self._path

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def reloads(self) -> int:
        """Reload passes triggered so far."""
        return self._reloads

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the watch worker. Only one worker may exist at a time."""
        if self.is_running:
            raise RuntimeError(f"watcher for {self._path} is already running")
        self._task = asyncio.create_task(self._watch_loop(), name="config-watch")

    def cancel(self) -> None:
        """Request shutdown without waiting (safe from a signal handler)."""
        if self._task and not self._task.done():
            self._task.cancel()

    async def stop(self) -> None:
        """Stop the worker and wait for it to finish."""
        self.cancel()
        await self.wait()

    async def wait(self) -> WatchState:
        """Block until the worker exits; return its final state."""
        if self._task is None:
            return self._state
        try:
            await self._task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        return self._state

    def _register(
        self,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[WatchEvent],
    ) -> BaseObserver:
        if not os.path.isfile(self._path):
            raise WatchRegistrationError(self._path, "no such file")

        handler = _ConfigFileHandler(self._path, loop, queue)
        observer = self._observer_factory()
        try:
            observer.schedule(handler, os.path.dirname(self._path), recursive=False)
            observer.start()
        except OSError as e:
            raise WatchRegistrationError(self._path, e.strerror or str(e)) from e
        return observer

    async def _watch_loop(self) -> None:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[WatchEvent] = asyncio.Queue()

        try:
            observer = self._register(loop, queue)
        except WatchRegistrationError as e:
            self._state = WatchState.FAILED
            logger.error("config_watch_registration_failed", path=self._path, error=e.reason)
            await self._emit("watch.failed", {"path": self._path, "error": e.reason})
            return

        self._state = WatchState.IDLE
        logger.info("config_watch_started", path=self._path)
        await self._emit("watch.started", {"path": self._path})

        try:
            while True:
                await queue.get()
                # One save usually arrives as a burst; treat it as one change.
                coalesced = 1
                while not queue.empty():
                    queue.get_nowait()
                    coalesced += 1

                self._state = WatchState.TRIGGERED
                logger.info("config_changed", path=self._path, events=coalesced)
                await self._emit("watch.triggered", {"path": self._path, "events": coalesced})

                try:
                    await self._supervisor.reload_and_reconcile()
                except Exception as e:
                    logger.error("config_reload_pass_failed", path=self._path, error=str(e))

                self._reloads += 1
                self._state = WatchState.IDLE
        finally:
            observer.stop()
            observer.join(timeout=5)
            self._state = WatchState.STOPPED
            logger.info("config_watch_stopped", path=self._path, reloads=self._reloads)
            await self._emit("watch.stopped", {"path": self._path, "reloads": self._reloads})

    async def _emit(self, topic: str, data: dict[str, Any]) -> None:
        if self._bus:
            await self._bus.emit(topic, data, source="config_watcher")
