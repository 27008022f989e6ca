"""Process management — the host-facing half of the supervisor.

This package provides:
- ProcProbe: decide liveness by scanning live command lines
- Launcher: spawn a configured process as a detached OS child
- ProcessBackend: one implementation per host platform, picked at startup
"""
