"""Core types shared across keepup subsystems."""

from __future__ import annotations

from enum import Enum
from typing import TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

ProcessName: TypeAlias = str


# ── Configuration ─────────────────────────────────────────────────────────────


class ProcessSpec(BaseModel):
    """One process the supervisor keeps alive.

    ``name`` is the liveness key matched against live command lines; it
    need not equal the basename of ``path``.
    """

    model_config = ConfigDict(frozen=True)

    name: ProcessName
    path: str
    args: tuple[str, ...] = ()

    @field_validator("args", mode="before")
    @classmethod
    def _null_args(cls, value):
        return () if value is None else value

    @field_validator("path", "args")
    @classmethod
    def _no_nul(cls, value):
        # Strings reach execve as C strings.
        items = value if isinstance(value, tuple) else (value,)
        if any("\0" in item for item in items):
            raise ValueError("must not contain NUL characters")
        return value

    @property
    def argv(self) -> list[str]:
        return [self.path, *self.args]


class Config(BaseModel):
    """The full set of processes from one read of the config file.

    Replaced wholesale on reload, never merged.
    """

    model_config = ConfigDict(frozen=True)

    processes: tuple[ProcessSpec, ...] = ()

    @field_validator("processes", mode="before")
    @classmethod
    def _null_processes(cls, value):
        return () if value is None else value


# ── Runtime ───────────────────────────────────────────────────────────────────


class RunningProcessHandle(BaseModel):
    pid: int


class WatchEvent(BaseModel):
    """The watched config file was modified."""

    path: str


class LaunchAction(str, Enum):
    RUNNING = "running"
    LAUNCHED = "launched"
    FAILED = "failed"


class ReconcileOutcome(BaseModel):
    name: ProcessName
    path: str
    action: LaunchAction
    pid: int | None = None
    error: str | None = None


class ReconcileReport(BaseModel):
    """What one reconciliation pass did, in config order."""

    outcomes: list[ReconcileOutcome] = Field(default_factory=list)

    @property
    def launched(self) -> list[ReconcileOutcome]:
        return [o for o in self.outcomes if o.action == LaunchAction.LAUNCHED]

    @property
    def failed(self) -> list[ReconcileOutcome]:
        return [o for o in self.outcomes if o.action == LaunchAction.FAILED]

    @property
    def already_running(self) -> list[ReconcileOutcome]:
        return [o for o in self.outcomes if o.action == LaunchAction.RUNNING]
