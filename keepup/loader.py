"""Config loader — reads the supervisor's JSON file into a ``Config``."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from keepup.exceptions import ConfigLoadError
from keepup.types import Config

_logger = logging.getLogger(__name__)


def load_config(path: str | Path) -> Config:
    """Parse ``path`` into a Config.

    Raises ConfigLoadError for an unreadable file, invalid JSON, or a
    document that does not match the schema.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigLoadError(str(path), e.strerror or str(e)) from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(str(path), f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigLoadError(str(path), "top level must be an object")

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigLoadError(str(path), errors) from e

    _logger.info("Loaded config from %s (%d processes)", path, len(config.processes))
    return config


class ConfigFileLoader:
    """Loader bound to one config path; call it to get a fresh Config."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def __call__(self) -> Config:
        return load_config(self.path)

    def __repr__(self) -> str:
        return f"ConfigFileLoader({str(self.path)!r})"
