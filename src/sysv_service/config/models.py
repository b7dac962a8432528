"""Configuration models using Pydantic."""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# Option keys understood by the SysV backend
OPTION_USER_SERVICE = "user_service"
OPTION_SYSV_SCRIPT = "sysv_script"
OPTION_LOG_DIRECTORY = "log_directory"
OPTION_ENABLED = "enabled"
OPTION_RUN_WAIT = "run_wait"


class ServiceOptions:
    """Dynamically typed service options with typed accessors.

    Each accessor takes the default returned when the key is missing or
    holds a value of the wrong type.
    """

    def __init__(self, values: Mapping[str, Any] | None = None):
        self._values = dict(values or {})

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __repr__(self) -> str:
        return f"ServiceOptions({self._values!r})"

    def _get(self, key: str, default: Any, expected: type | tuple[type, ...]) -> Any:
        if key not in self._values:
            return default
        value = self._values[key]
        if not isinstance(value, expected):
            logger.warning(
                "Ignoring option %s: expected %s, got %s",
                key,
                getattr(expected, "__name__", expected),
                type(value).__name__,
            )
            return default
        return value

    def get_bool(self, key: str, default: bool) -> bool:
        return self._get(key, default, bool)

    def get_str(self, key: str, default: str) -> str:
        return self._get(key, default, str)

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    @property
    def user_service(self) -> bool:
        return self.get_bool(OPTION_USER_SERVICE, False)

    @property
    def enabled(self) -> bool:
        return self.get_bool(OPTION_ENABLED, True)

    @property
    def run_wait(self) -> Callable[[], Any] | None:
        """Blocking callable that replaces waiting for a stop signal."""
        value = self._values.get(OPTION_RUN_WAIT)
        return value if callable(value) else None


class ServiceConfig(BaseModel):
    """Descriptor of the single service managed by the backend.

    The name derives every file path (init script, links, PID file, logs),
    so it must be a plain file name.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str | None = None
    description: str = ""
    # None means the running interpreter
    executable: str | None = None
    arguments: list[str] = Field(default_factory=list)
    working_directory: str | None = None
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not value or value in (".", "..") or "/" in value:
            raise ValueError(f"Invalid service name: {value!r}")
        return value

    @property
    def label(self) -> str:
        """Human readable name, falling back to the service name."""
        return self.display_name or self.name

    @property
    def option_set(self) -> ServiceOptions:
        return ServiceOptions(self.options)
