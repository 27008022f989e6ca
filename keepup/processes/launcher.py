"""Launcher — start one configured process as an OS child.

The child runs ``path`` with argv ``[path, *args]`` in a session of its
own, so it outlives the supervisor and does not receive signals aimed at
the supervisor's terminal. If the image cannot be loaded, CPython's
spawn machinery ends the child before any supervisor code runs in it and
raises OSError in the parent; that becomes a LaunchError here.

A bare ``path`` with no directory part is resolved against the working
directory, the way execv treats it, and is never looked up on PATH.
"""

from __future__ import annotations

import asyncio
import logging
import os

from keepup.exceptions import LaunchError
from keepup.types import ProcessSpec, RunningProcessHandle

_logger = logging.getLogger(__name__)


def _executable(path: str) -> str:
    if os.path.dirname(path):
        return path
    return os.path.join(os.curdir, path)


class Launcher:
    """Spawns processes and reaps them in the background once they exit.

    The returned handle is not tracked against its spec; liveness is
    re-derived from the process table on every pass.
    """

    def __init__(self) -> None:
        self._reapers: set[asyncio.Task] = set()

    async def launch(self, spec: ProcessSpec) -> RunningProcessHandle:
        try:
            proc = await asyncio.create_subprocess_exec(
                spec.path,
                *spec.args,
                executable=_executable(spec.path),
                start_new_session=True,
            )
        except OSError as e:
            raise LaunchError(spec.path, e.strerror or str(e)) from e
        except ValueError as e:
            # e.g. an embedded NUL in path or args
            raise LaunchError(spec.path, str(e)) from e

        reaper = asyncio.create_task(self._reap(spec.name, proc))
        self._reapers.add(reaper)
        reaper.add_done_callback(self._reapers.discard)
        return RunningProcessHandle(pid=proc.pid)

    @staticmethod
    async def _reap(name: str, proc: asyncio.subprocess.Process) -> None:
        code = await proc.wait()
        _logger.info("Process '%s' (pid %d) exited with code %d", name, proc.pid, code)

    @property
    def pending(self) -> int:
        """Children launched by this instance that have not exited yet."""
        return len(self._reapers)

    async def drain(self) -> None:
        """Wait until every launched child has exited."""
        if self._reapers:
            await asyncio.gather(*list(self._reapers), return_exceptions=True)

    async def close(self) -> None:
        """Stop reaping. Children keep running."""
        for task in list(self._reapers):
            task.cancel()
        if self._reapers:
            await asyncio.gather(*list(self._reapers), return_exceptions=True)
        self._reapers.clear()
