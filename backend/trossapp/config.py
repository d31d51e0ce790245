import logging
import os
import threading
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()

DEFAULT_PERMISSIONS_CONFIG_PATH = Path(__file__).resolve().parent / "data" / "permissions.json"


class Settings(BaseModel):
    app_name: str = Field(default="TrossApp Backend")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    permissions_config_path: Path = Field(default=DEFAULT_PERMISSIONS_CONFIG_PATH)

    @classmethod
    def from_env(cls) -> "Settings":
        raw_debug = os.getenv("DEBUG", "false").strip().lower()
        if raw_debug in {"1", "true", "yes", "on"}:
            debug = True
        elif raw_debug in {"0", "false", "no", "off"}:
            debug = False
        else:
            raise ValueError("DEBUG must be a boolean value")

        log_level = os.getenv("LOG_LEVEL", cls.model_fields["log_level"].default).strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"LOG_LEVEL '{log_level}' is not a valid logging level")

        raw_path = os.getenv("PERMISSIONS_CONFIG_PATH", "").strip()
        if raw_path:
            permissions_config_path = Path(raw_path).expanduser()
            if permissions_config_path.suffix != ".json":
                raise ValueError("PERMISSIONS_CONFIG_PATH must point to a .json file")
        else:
            permissions_config_path = DEFAULT_PERMISSIONS_CONFIG_PATH

        return cls(
            app_name=os.getenv("APP_NAME", cls.model_fields["app_name"].default),
            debug=debug,
            log_level=log_level,
            permissions_config_path=permissions_config_path,
        )


# Settings are created on first access so importing this module never reads the environment
_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get settings instance, creating it on first access.

    Uses double-checked locking so concurrent first callers build the
    settings exactly once.

    Returns:
        Settings instance

    Raises:
        ValueError: If environment variables are invalid
    """
    global _settings_instance

    if _settings_instance is not None:
        return _settings_instance

    with _settings_lock:
        if _settings_instance is None:
            _settings_instance = Settings.from_env()

    return _settings_instance


def reset_settings() -> None:
    """Forget the cached settings so the next access re-reads the environment."""
    global _settings_instance
    with _settings_lock:
        _settings_instance = None


class _SettingsProxy:
    """Proxy to defer settings creation until first attribute access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)


settings = _SettingsProxy()  # type: ignore[assignment]
