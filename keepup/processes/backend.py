"""Process backends — one per host platform, chosen once at startup.

The set of platforms is closed (``HostPlatform``). Linux is fully
implemented. Windows and macOS get an explicit stub that never sees a
process running and never manages to start one, so a deployment there
shows up as a stream of launch failures rather than a crash. Any other
host is refused outright.
"""

from __future__ import annotations

import logging
import sys
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path

from keepup.events.bus import EventBus
from keepup.exceptions import LaunchError, ProbeError, UnsupportedPlatformError
from keepup.processes.launcher import Launcher
from keepup.processes.probe import ProcProbe
from keepup.types import ProcessSpec, RunningProcessHandle

_logger = logging.getLogger(__name__)


class HostPlatform(str, Enum):
    LINUX = "linux"
    WINDOWS = "windows"
    MACOS = "macos"


_SYS_PLATFORMS: dict[str, HostPlatform] = {
    "linux": HostPlatform.LINUX,
    "win32": HostPlatform.WINDOWS,
    "cygwin": HostPlatform.WINDOWS,
    "darwin": HostPlatform.MACOS,
}


def detect_platform(sys_platform: str | None = None) -> HostPlatform:
    """Map ``sys.platform`` onto a HostPlatform.

    Raises UnsupportedPlatformError for hosts outside the known set.
    """
    value = sys.platform if sys_platform is None else sys_platform
    for prefix, platform in _SYS_PLATFORMS.items():
        if value.startswith(prefix):
            return platform
    raise UnsupportedPlatformError(value)


def resolve_platform(name: str) -> HostPlatform:
    """Resolve a settings value: ``auto`` or a HostPlatform value."""
    if name == "auto":
        return detect_platform()
    try:
        return HostPlatform(name.lower())
    except ValueError:
        raise UnsupportedPlatformError(name) from None


class ProcessBackend(ABC):
    """Start processes and answer "is this name running" for one host."""

    platform: HostPlatform

    @abstractmethod
    async def start_process(self, spec: ProcessSpec) -> RunningProcessHandle:
        """Launch ``spec``. Raises LaunchError on failure."""
        ...

    @abstractmethod
    async def is_process_running(self, name: str) -> bool:
        """Liveness of ``name``. Never raises."""
        ...

    async def running_pids(self, name: str) -> list[int]:
        """PIDs whose command line matches ``name``; empty if unknown."""
        return []

    async def close(self) -> None:
        """Release backend resources. Supervised processes keep running."""


class LinuxBackend(ProcessBackend):
    """procfs liveness + detached subprocess launches."""

    platform = HostPlatform.LINUX

    def __init__(
        self,
        probe: ProcProbe | None = None,
        launcher: Launcher | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._probe = probe or ProcProbe()
        self._launcher = launcher or Launcher()
        self._bus = event_bus

    async def start_process(self, spec: ProcessSpec) -> RunningProcessHandle:
        return await self._launcher.launch(spec)

    async def is_process_running(self, name: str) -> bool:
        try:
            return self._probe.is_alive(name)
        except ProbeError as e:
            # An unreadable table reads as "not running".
            _logger.warning("Liveness probe for '%s' failed: %s", name, e)
            if self._bus:
                await self._bus.emit("probe.failed", {
                    "name": name,
                    "proc_root": e.proc_root,
                    "error": e.reason,
                }, source="backend")
            return False

    async def running_pids(self, name: str) -> list[int]:
        try:
            return self._probe.find(name)
        except ProbeError as e:
            _logger.warning("Liveness probe for '%s' failed: %s", name, e)
            return []

    async def close(self) -> None:
        await self._launcher.close()


class UnimplementedBackend(ProcessBackend):
    """Stub for platforms without a real backend."""

    def __init__(self, platform: HostPlatform) -> None:
        self.platform = platform

    async def start_process(self, spec: ProcessSpec) -> RunningProcessHandle:
        raise LaunchError(spec.path, f"backend not implemented for {self.platform.value}")

    async def is_process_running(self, name: str) -> bool:
        return False


def create_backend(
    platform: HostPlatform,
    *,
    proc_root: str | Path = "/proc",
    event_bus: EventBus | None = None,
) -> ProcessBackend:
    match platform:
        case HostPlatform.LINUX:
            return LinuxBackend(probe=ProcProbe(proc_root), event_bus=event_bus)
        case HostPlatform.WINDOWS | HostPlatform.MACOS:
            _logger.warning(
                "No process backend for %s; every launch will fail", platform.value,
            )
            return UnimplementedBackend(platform)
    raise UnsupportedPlatformError(str(platform))
