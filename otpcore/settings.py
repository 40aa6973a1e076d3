"""Centralised settings for the OTP core.

:class:`ApplicationSettings` treats the process environment (or any mapping
provided) as the backing store and falls back to :data:`DEFAULT_SETTINGS`.
The module-level :data:`settings` instance is meant for production code;
tests instantiate their own with a dedicated mapping.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SETTINGS: dict[str, object] = {
    "OTPCORE_PIPELINE_PROFILE": "thorough",
    "OTPCORE_PIPELINE_TIMEOUT": 10.0,
    "OTPCORE_VERIFY_WINDOW": 1,
    "OTPCORE_WINDOW_COUNT": 3,
    "OTPCORE_LOG_LEVEL": "INFO",
    "OTPCORE_LOG_JSON": True,
}

_BOOL_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class _EnvironmentFacade:
    """Thin wrapper that provides ``Mapping`` compatible access to env vars."""

    source: Mapping[str, str]

    @classmethod
    def from_environ(cls, env: Optional[Mapping[str, str]] = None) -> "_EnvironmentFacade":
        return cls(source=os.environ if env is None else env)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.source.get(key, default)


class ApplicationSettings:
    def __init__(self, env: Optional[Mapping[str, str]] = None) -> None:
        self._env = _EnvironmentFacade.from_environ(env)

    def _get(self, key: str) -> Any:
        raw = self._env.get(key)
        if raw is None or raw == "":
            return DEFAULT_SETTINGS.get(key)
        return raw

    def get_str(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._get(key)
        return default if value is None else str(value)

    def get_int(self, key: str, default: int = 0) -> int:
        value = self._get(key)
        try:
            return int(value) if value is not None else default
        except (TypeError, ValueError):
            return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        value = self._get(key)
        try:
            return float(value) if value is not None else default
        except (TypeError, ValueError):
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self._get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in _BOOL_TRUE

    @property
    def pipeline_profile(self) -> str:
        return (self.get_str("OTPCORE_PIPELINE_PROFILE", "thorough") or "thorough").lower()

    @property
    def pipeline_timeout(self) -> float:
        return self.get_float("OTPCORE_PIPELINE_TIMEOUT", 10.0)

    @property
    def verify_window(self) -> int:
        return max(0, self.get_int("OTPCORE_VERIFY_WINDOW", 1))

    @property
    def window_count(self) -> int:
        return max(1, self.get_int("OTPCORE_WINDOW_COUNT", 3))

    @property
    def log_level(self) -> str:
        return (self.get_str("OTPCORE_LOG_LEVEL", "INFO") or "INFO").upper()

    @property
    def log_json(self) -> bool:
        return self.get_bool("OTPCORE_LOG_JSON", True)


settings = ApplicationSettings()


__all__ = ["ApplicationSettings", "DEFAULT_SETTINGS", "settings"]
