import logging
import os
from dataclasses import dataclass
from enum import Enum

from errors import ConfigError

STRICT_MODE_ENV = "PAYMENTS_STRICT_MODE"
LOG_LEVEL_ENV = "PAYMENTS_LOG_LEVEL"

_TRUTHY = {"on", "true", "1", "yes"}
_FALSY = {"off", "false", "0", "no", ""}


class StrictMode(Enum):
    OFF = "off"
    ON = "on"

    @classmethod
    def parse(cls, value: str) -> "StrictMode":
        normalized = value.strip().lower()
        if normalized in _TRUTHY:
            return cls.ON
        if normalized in _FALSY:
            return cls.OFF
        raise ConfigError(f"invalid strict mode {value!r}, expected on or off")


@dataclass
class EngineConfig:
    strict_mode: StrictMode = StrictMode.OFF
    sort_output: bool = False
    log_level: int = logging.WARNING

    @property
    def strict(self) -> bool:
        return self.strict_mode is StrictMode.ON

    @classmethod
    def from_env(cls, environ=None) -> "EngineConfig":
        """Build config from PAYMENTS_* environment variables."""
        environ = os.environ if environ is None else environ
        config = cls()

        strict_value = environ.get(STRICT_MODE_ENV)
        if strict_value is not None:
            config.strict_mode = StrictMode.parse(strict_value)

        level_name = environ.get(LOG_LEVEL_ENV)
        if level_name:
            level = logging.getLevelName(level_name.strip().upper())
            if not isinstance(level, int):
                raise ConfigError(f"invalid log level {level_name!r}")
            config.log_level = level

        return config
