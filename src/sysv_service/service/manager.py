"""High-level service management interface."""

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

from sysv_service.errors import ServiceError
from sysv_service.service.base import ServiceBackend, ServiceState, ServiceStatus


class ServiceManager:
    """High-level service management interface.

    Turns backend results and errors into (success, message) pairs for
    display.

    Example:
        manager = ServiceManager(SysVBackend(config))
        success, message = await manager.start()
        status = await manager.status()
    """

    def __init__(self, backend: ServiceBackend):
        self._backend = backend

    @property
    def backend(self) -> ServiceBackend:
        return self._backend

    @property
    def backend_name(self) -> str:
        """Get the name of the active backend."""
        return self._backend.name

    @property
    def supports_install(self) -> bool:
        """Check if the backend supports install/uninstall."""
        return self._backend.supports_install

    async def start(self) -> tuple[bool, str]:
        """Start the service.

        Returns:
            Tuple of (success, message).
        """
        try:
            status = await self._backend.status()
            if status.state == ServiceState.RUNNING:
                if status.pid:
                    return False, f"Service already running (PID {status.pid})"
                return False, "Service already running"

            await self._backend.start()
            status = await self._backend.status()
            if status.state == ServiceState.RUNNING and status.pid:
                return True, f"Service started (PID {status.pid})"
            return True, "Service started"
        except (ServiceError, OSError) as e:
            return False, f"Error starting service: {e}"

    async def stop(self) -> tuple[bool, str]:
        """Stop the service.

        Returns:
            Tuple of (success, message).
        """
        try:
            status = await self._backend.status()
            if status.state == ServiceState.STOPPED:
                return True, "Service already stopped"

            await self._backend.stop()
            return True, "Service stopped"
        except (ServiceError, OSError) as e:
            return False, f"Error stopping service: {e}"

    async def restart(self) -> tuple[bool, str]:
        """Restart the service.

        Returns:
            Tuple of (success, message).
        """
        try:
            await self._backend.restart()
            status = await self._backend.status()
            if status.state == ServiceState.RUNNING and status.pid:
                return True, f"Service restarted (PID {status.pid})"
            return True, "Service restarted"
        except (ServiceError, OSError) as e:
            return False, f"Error restarting service: {e}"

    async def status(self) -> ServiceStatus:
        """Get current service status.

        Returns:
            ServiceStatus with current state.
        """
        return await self._backend.status()

    async def install(self) -> tuple[bool, str]:
        """Install as auto-starting service.

        Returns:
            Tuple of (success, message).
        """
        if not self._backend.supports_install:
            return (
                False,
                f"Install not supported with {self.backend_name} backend for this service.",
            )

        try:
            path = await self._backend.install()
            return True, f"Installed {self.backend_name} service at {path}"
        except (ServiceError, OSError) as e:
            return False, f"Error installing service: {e}"

    async def uninstall(self) -> tuple[bool, str]:
        """Remove the installed service.

        Returns:
            Tuple of (success, message).
        """
        try:
            await self._backend.uninstall()
            return True, "Service uninstalled"
        except (ServiceError, OSError) as e:
            return False, f"Error uninstalling service: {e}"

    async def logs(self, follow: bool = False, lines: int = 50) -> AsyncIterator[str]:
        """Stream service logs.

        Args:
            follow: If True, continue streaming new lines.
            lines: Number of historical lines to show.

        Yields:
            Log lines.
        """
        async for line in self._tail_file(self._backend.get_log_source(), follow, lines):
            yield line

    async def _tail_file(
        self, path: Path, follow: bool, lines: int
    ) -> AsyncIterator[str]:
        """Tail a log file.

        Args:
            path: Path to the log file.
            follow: If True, follow new output.
            lines: Number of lines to show.

        Yields:
            Log lines.
        """
        if not path.exists():
            yield f"Log file not found: {path}"
            return

        try:
            with path.open() as f:  # noqa: ASYNC230
                all_lines = f.readlines()
                for line in all_lines[-lines:]:
                    yield line.rstrip()

                if follow:
                    while True:
                        line = f.readline()
                        if line:
                            yield line.rstrip()
                        else:
                            await asyncio.sleep(0.1)
        except OSError as e:
            yield f"Error reading log file: {e}"
