"""ProcProbe — liveness by substring match over /proc/<pid>/cmdline.

A name counts as alive when it occurs anywhere in any live process's
command line, so "app" also matches "myapp-helper". The match is a plain
substring test, not a token or path comparison.

A process that rewrites its own argv after starting can escape detection.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from keepup.exceptions import ProbeError


class ProcProbe:
    """Reads the live process table from a procfs mount."""

    def __init__(self, proc_root: str | Path = "/proc") -> None:
        self._root = Path(proc_root)

    @property
    def proc_root(self) -> Path:
        return self._root

    def scan(self) -> Iterator[tuple[int, str]]:
        """Yield ``(pid, cmdline)`` for each live process.

        Argument separators (NUL) are rendered as spaces. Processes that
        exit mid-scan or deny access are skipped. Raises ProbeError when
        the proc root itself cannot be listed.
        """
        try:
            entries = list(os.scandir(self._root))
        except OSError as e:
            raise ProbeError(str(self._root), e.strerror or str(e)) from e

        for entry in entries:
            if not entry.name.isdigit():
                continue
            try:
                if not entry.is_dir():
                    continue
                with open(os.path.join(entry.path, "cmdline"), "rb") as f:
                    raw = f.read()
            except OSError:
                continue
            yield int(entry.name), self._render(raw)

    def is_alive(self, name: str) -> bool:
        """True if ``name`` is a substring of any live command line."""
        return any(name in cmdline for _, cmdline in self.scan())

    def find(self, name: str) -> list[int]:
        """PIDs whose command line contains ``name``."""
        return [pid for pid, cmdline in self.scan() if name in cmdline]

    @staticmethod
    def _render(raw: bytes) -> str:
        return raw.rstrip(b"\0").replace(b"\0", b" ").decode("utf-8", errors="replace")
