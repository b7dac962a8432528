"""Abstract base for service management backends."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from sysv_service.logging import ErrorCallback


class ServiceState(Enum):
    """Service running state."""

    RUNNING = "running"
    STOPPED = "stopped"
    UNKNOWN = "unknown"


@dataclass
class ServiceStatus:
    """Service status information.

    UNKNOWN is always paired with the error that prevented classification.
    """

    state: ServiceState
    pid: int | None = None
    message: str | None = None
    error: Exception | None = None


class Workload(Protocol):
    """The managed program's start/stop callbacks.

    Both receive the backend as context and may be coroutine functions.
    """

    def start(self, service: ServiceBackend) -> Awaitable[Any] | Any: ...

    def stop(self, service: ServiceBackend) -> Awaitable[Any] | Any: ...


class ServiceBackend(ABC):
    """Abstract interface for service management backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name (e.g., 'sysv')."""
        ...

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if this backend is available on the current system."""
        ...

    @property
    @abstractmethod
    def supports_install(self) -> bool:
        """Check if this backend supports install/uninstall."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the installed service."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the installed service gracefully."""
        ...

    @abstractmethod
    async def restart(self) -> None:
        """Restart the installed service."""
        ...

    @abstractmethod
    async def status(self) -> ServiceStatus:
        """Get current service status."""
        ...

    @abstractmethod
    async def install(self) -> Path:
        """Install as auto-starting service.

        Returns:
            Path of the installed artifact.
        """
        ...

    @abstractmethod
    async def uninstall(self) -> None:
        """Remove the installed service."""
        ...

    @abstractmethod
    async def run(self, workload: Workload) -> Any:
        """Run the workload attached to the current session until told to stop.

        Returns:
            Whatever the workload's stop callback returns.
        """
        ...

    @abstractmethod
    def logger(self, on_error: ErrorCallback | None = None) -> logging.Logger:
        """Get a logger suited to how the process is running."""
        ...

    @abstractmethod
    def get_log_source(self) -> Path:
        """Get the path of the service's standard output log."""
        ...
