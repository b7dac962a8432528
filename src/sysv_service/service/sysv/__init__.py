"""System V init backend.

No service manager supervises the process on these hosts, so install
renders a shell script into /etc/init.d that tracks the process in a PID
file, stops it with a grace period and redirects its output. Control
commands go through `service`, or straight to the script where `service`
does not exist.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from sysv_service.config.models import ServiceConfig
from sysv_service.config.paths import get_init_dir, get_pid_path, get_script_path
from sysv_service.errors import DispatchError, NotFoundError
from sysv_service.logging import console_logger, is_interactive, system_logger
from sysv_service.service.base import (
    ErrorCallback,
    ServiceBackend,
    ServiceState,
    ServiceStatus,
    Workload,
)
from sysv_service.service.pid import read_pid_file
from sysv_service.service.runner import ForegroundRunner, get_waiter
from sysv_service.service.sysv.detect import is_running_busybox
from sysv_service.service.sysv.dispatch import run_service_command
from sysv_service.service.sysv.install import (
    LinkReconciliation,
    check_capability,
    install_script,
    reconcile_links,
    resolve_executable,
    uninstall_script,
)
from sysv_service.service.sysv.script import (
    ScriptRenderer,
    build_variables,
    get_log_directory,
    get_renderer,
)
from sysv_service.service.sysv.status import interpret_status

log = logging.getLogger(__name__)

RESTART_DELAY_SECONDS = 0.05


class SysVBackend(ServiceBackend):
    """System V init backend for one service.

    The init script lives at /etc/init.d/<name> and is linked into the
    runlevel directories when enabled.
    """

    def __init__(self, config: ServiceConfig, renderer: ScriptRenderer | None = None):
        """Initialize the backend.

        Args:
            config: The service this backend manages.
            renderer: Script renderer, overriding the sysv_script option.
        """
        self.config = config
        self._renderer = renderer
        # Shared by every run() so run_wait is called at most once
        self._waiter = get_waiter(config.option_set)

    def __str__(self) -> str:
        return self.config.label

    @property
    def name(self) -> str:
        return "sysv"

    @property
    def is_available(self) -> bool:
        return get_init_dir().is_dir()

    @property
    def supports_install(self) -> bool:
        return not self.config.option_set.user_service

    @property
    def script_path(self) -> Path:
        return get_script_path(self.config.name)

    def render_script(self, is_busybox: bool | None = None) -> str:
        """Render the script install would write, without writing it."""
        check_capability(self.config)
        if is_busybox is None:
            is_busybox = is_running_busybox()
        renderer = self._renderer or get_renderer(self.config.option_set)
        variables = build_variables(
            self.config, resolve_executable(self.config), is_busybox
        )
        return renderer.render(variables)

    async def install(self) -> Path:
        """Write the init script and link it into the runlevels."""
        return install_script(self.config, renderer=self._renderer)

    async def uninstall(self) -> None:
        """Remove the init script. Autostart links are not touched."""
        uninstall_script(self.config)

    async def enable(self) -> LinkReconciliation:
        """Link the installed script into the runlevels."""
        return self._reconcile(enabled=True)

    async def disable(self) -> LinkReconciliation:
        """Remove the runlevel links of the installed script."""
        return self._reconcile(enabled=False)

    def _reconcile(self, enabled: bool) -> LinkReconciliation:
        check_capability(self.config)
        if not self.script_path.exists():
            raise NotFoundError(f"Init script not found: {self.script_path}")
        return reconcile_links(self.config.name, self.script_path, enabled)

    async def _control(self, operation: str) -> None:
        result = await run_service_command(
            self.config.name, operation, capture_stdout=True
        )
        if result.error is not None:
            raise result.error
        if result.returncode != 0:
            message = f"{operation} {self.config.name} failed (exit {result.returncode})"
            output = result.stdout.strip()
            raise DispatchError(f"{message}: {output}" if output else message)
        log.info("%s %s", operation, self.config.name)

    async def start(self) -> None:
        await self._control("start")

    async def stop(self) -> None:
        await self._control("stop")

    async def restart(self) -> None:
        """Stop, then start. A failed stop raises before start is tried."""
        await self.stop()
        await asyncio.sleep(RESTART_DELAY_SECONDS)
        await self.start()

    async def status(self) -> ServiceStatus:
        result = await run_service_command(
            self.config.name, "status", capture_stdout=True
        )
        status = interpret_status(result)
        if status.state == ServiceState.RUNNING:
            proc_info = read_pid_file(get_pid_path(self.config.name))
            if proc_info is not None and proc_info.alive:
                status.pid = proc_info.pid
        return status

    async def run(self, workload: Workload) -> Any:
        runner = ForegroundRunner(self, self._waiter)
        return await runner.run(workload)

    def logger(self, on_error: ErrorCallback | None = None) -> logging.Logger:
        """Console logger when interactive, system logger otherwise."""
        if is_interactive():
            return console_logger(self.config.name)
        return self.system_logger(on_error)

    def system_logger(self, on_error: ErrorCallback | None = None) -> logging.Logger:
        return system_logger(self.config.name, on_error)

    def get_log_source(self) -> Path:
        return get_log_directory(self.config.option_set) / f"{self.config.name}.log"


__all__ = ["SysVBackend"]
