"""Supervisor — reconcile the configured process list against the host.

Each pass walks the current Config in order, asks the backend whether
each name is alive, and launches the ones that are not. Nothing is
remembered between passes: liveness comes from the OS every time.

Only one actor drives a Supervisor at a time (the bootstrap, then the
single watch worker), so the Config is swapped without a lock. Calling
``reconcile`` from several tasks at once breaks that assumption.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from keepup.events.bus import EventBus
from keepup.exceptions import ConfigLoadError, LaunchError
from keepup.processes.backend import ProcessBackend
from keepup.types import (
    Config,
    LaunchAction,
    ReconcileOutcome,
    ReconcileReport,
)

ConfigLoader = Callable[[], Config]

_logger = logging.getLogger(__name__)


class Supervisor:
    """Owns the backend and the current Config."""

    def __init__(
        self,
        backend: ProcessBackend,
        loader: ConfigLoader,
        *,
        config: Config | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._backend = backend
        self._loader = loader
        self._config = config or Config()
        self._bus = event_bus

    @property
    def config(self) -> Config:
        return self._config

    @property
    def backend(self) -> ProcessBackend:
        return self._backend

    async def reconcile(self) -> ReconcileReport:
        """Launch every configured process that is not running.

        At most one launch per spec per pass. A failed launch is reported
        and the pass moves on to the next spec.
        """
        report = ReconcileReport()

        for spec in self._config.processes:
            if await self._backend.is_process_running(spec.name):
                report.outcomes.append(ReconcileOutcome(
                    name=spec.name, path=spec.path, action=LaunchAction.RUNNING,
                ))
                continue

            try:
                handle = await self._backend.start_process(spec)
            except LaunchError as e:
                _logger.error("Failed to start '%s': %s", spec.name, e)
                report.outcomes.append(ReconcileOutcome(
                    name=spec.name, path=spec.path,
                    action=LaunchAction.FAILED, error=str(e),
                ))
                await self._emit("process.launch_failed", {
                    "name": spec.name,
                    "path": spec.path,
                    "error": e.reason,
                })
                continue

            _logger.info("Started '%s' (pid %d): %s", spec.name, handle.pid, " ".join(spec.argv))
            report.outcomes.append(ReconcileOutcome(
                name=spec.name, path=spec.path,
                action=LaunchAction.LAUNCHED, pid=handle.pid,
            ))
            await self._emit("process.launched", {
                "name": spec.name,
                "pid": handle.pid,
                "argv": spec.argv,
            })

        await self._emit("supervisor.reconciled", {
            "total": len(report.outcomes),
            "running": len(report.already_running),
            "launched": len(report.launched),
            "failed": len(report.failed),
        })
        return report

    async def reload_and_reconcile(self) -> ReconcileReport:
        """Reload the Config, then reconcile.

        A load failure keeps the previous Config in place; the pass still
        runs against it.
        """
        try:
            config = self._loader()
        except ConfigLoadError as e:
            _logger.error("Config reload failed, keeping previous config: %s", e)
            await self._emit("config.load_failed", {
                "path": e.path,
                "error": e.reason,
                "kept_processes": len(self._config.processes),
            })
        else:
            self._config = config
            await self._emit("config.loaded", {
                "processes": [p.name for p in config.processes],
            })

        return await self.reconcile()

    async def _emit(self, topic: str, data: dict[str, Any]) -> None:
        if self._bus:
            await self._bus.emit(topic, data, source="supervisor")
