"""keepup runtime — bootstrap pass, then the watch worker until it ends."""

from __future__ import annotations

import asyncio
import logging
import signal

from keepup.config import KeepupSettings, settings as default_settings
from keepup.events.bus import EventBus
from keepup.loader import ConfigFileLoader
from keepup.processes.backend import create_backend, resolve_platform
from keepup.supervisor import Supervisor
from keepup.watcher import ConfigWatcher, WatchState

_logger = logging.getLogger(__name__)


def _install_signal_handlers(watcher: ConfigWatcher) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, watcher.cancel)
        except (NotImplementedError, RuntimeError):
            # Not supported on this loop (e.g. Windows); Ctrl+C still raises.
            pass


async def run(
    settings: KeepupSettings | None = None,
    event_bus: EventBus | None = None,
) -> WatchState:
    """Run the supervisor until the watch worker exits.

    Raises UnsupportedPlatformError if the host has no backend at all.
    """
    settings = settings or default_settings
    event_bus = event_bus or EventBus()

    platform = resolve_platform(settings.platform)
    backend = create_backend(platform, proc_root=settings.proc_root, event_bus=event_bus)
    _logger.info("Using %s backend for %s", platform.value, settings.config_path)

    supervisor = Supervisor(backend, ConfigFileLoader(settings.config_path), event_bus=event_bus)
    watcher = ConfigWatcher(settings.config_path, supervisor, event_bus=event_bus)

    try:
        report = await supervisor.reload_and_reconcile()
        _logger.info(
            "Initial pass: %d running, %d launched, %d failed",
            len(report.already_running), len(report.launched), len(report.failed),
        )

        await watcher.start()
        _install_signal_handlers(watcher)
        state = await watcher.wait()
    finally:
        try:
            await watcher.stop()
        finally:
            await backend.close()

    if state == WatchState.FAILED:
        _logger.error("Hot reload unavailable; supervisor exiting, supervised processes keep running")
    return state


async def main() -> None:
    await run()


if __name__ == "__main__":
    asyncio.run(main())
