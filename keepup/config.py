"""Global configuration — loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class KeepupSettings(BaseSettings):
    config_path: Path = Path("config.json")
    log_level: str = "INFO"
    platform: str = "auto"  # auto|linux|windows|macos
    proc_root: Path = Path("/proc")

    model_config = {"env_prefix": "KEEPUP_"}


settings = KeepupSettings()
