"""Custom exception hierarchy for keepup."""


class KeepupError(Exception):
    """Base for all keepup errors."""


class ConfigLoadError(KeepupError):
    """The configuration file is unreadable or malformed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot load config {path}: {reason}")
        self.path = path
        self.reason = reason


class LaunchError(KeepupError):
    """A process could not be created or could not load its image."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"process start failed: {path}: {reason}")
        self.path = path
        self.reason = reason


class ProbeError(KeepupError):
    """The live process table could not be enumerated."""

    def __init__(self, proc_root: str, reason: str) -> None:
        super().__init__(f"cannot list processes under {proc_root}: {reason}")
        self.proc_root = proc_root
        self.reason = reason


class WatchRegistrationError(KeepupError):
    """A filesystem watch on the config file could not be established."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot watch {path}: {reason}")
        self.path = path
        self.reason = reason


class UnsupportedPlatformError(KeepupError):
    """No backend exists for this host."""

    def __init__(self, platform: str) -> None:
        super().__init__(f"no process backend for platform {platform!r}")
        self.platform = platform
