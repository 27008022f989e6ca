"""Shared test fixtures — FakeBackend for reconciling without real processes."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from keepup.exceptions import LaunchError
from keepup.processes.backend import HostPlatform, ProcessBackend
from keepup.types import ProcessSpec, RunningProcessHandle


class FakeBackend(ProcessBackend):
    """Backend with an in-memory process table. No real processes.

    ``running`` holds command lines; liveness is the same substring test
    the real probe uses. A successful launch adds the spec's command line.
    """

    platform = HostPlatform.LINUX

    def __init__(self, running: list[str] | None = None, fail_paths: set[str] | None = None):
        self.running: list[str] = list(running or [])
        self.fail_paths = set(fail_paths or ())
        self.launches: list[list[str]] = []  # argv of every attempt, in order
        self.probes: list[str] = []
        self.closed = False
        self._next_pid = 1000

    async def start_process(self, spec: ProcessSpec) -> RunningProcessHandle:
        self.launches.append(spec.argv)
        if spec.path in self.fail_paths:
            raise LaunchError(spec.path, "simulated failure")
        self._next_pid += 1
        self.running.append(" ".join(spec.argv))
        return RunningProcessHandle(pid=self._next_pid)

    async def is_process_running(self, name: str) -> bool:
        self.probes.append(name)
        return any(name in cmdline for cmdline in self.running)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def write_config(tmp_path):
    """Write a config document (dict or raw text) and return its path."""
    path = tmp_path / "config.json"

    def _write(content: dict | str) -> Path:
        text = content if isinstance(content, str) else json.dumps(content)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def fake_proc(tmp_path):
    """Build a fake procfs tree: {pid: argv} -> root path."""
    root = tmp_path / "proc"
    root.mkdir()

    def _build(table: dict[int, list[str]]) -> Path:
        for pid, argv in table.items():
            d = root / str(pid)
            d.mkdir()
            (d / "cmdline").write_bytes(b"".join(a.encode() + b"\0" for a in argv))
        return root

    return _build
