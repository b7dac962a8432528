"""Invocation of service control commands."""

import asyncio
import logging
from dataclasses import dataclass

from sysv_service.config.paths import get_script_path
from sysv_service.errors import DispatchError, NotFoundError

logger = logging.getLogger(__name__)

SERVICE_COMMAND = "service"

# Shell conventions for commands that never ran
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126


@dataclass
class CommandResult:
    """Result of a control command.

    error is set only when no command could be run; a command that ran and
    failed reports it through returncode.
    """

    returncode: int
    stdout: str = ""
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0


async def run_command(program: str, *args: str, capture_stdout: bool) -> CommandResult:
    """Run a command to completion.

    Raises:
        OSError: If the program cannot be started.
    """
    logger.debug("Running %s %s", program, " ".join(args))
    proc = await asyncio.create_subprocess_exec(
        program,
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE if capture_stdout else asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
    )
    stdout, _ = await proc.communicate()
    return CommandResult(
        returncode=proc.returncode or 0,
        stdout=stdout.decode(errors="replace") if stdout else "",
    )


def _is_missing_entry_point(error: OSError) -> bool:
    return isinstance(error, FileNotFoundError) and error.filename == SERVICE_COMMAND


async def run_service_command(
    name: str, operation: str, capture_stdout: bool = False
) -> CommandResult:
    """Run `service <name> <operation>`.

    Hosts without a `service` executable (OpenWrt ships it as a shell
    function) get the init script run directly instead.
    """
    try:
        return await run_command(
            SERVICE_COMMAND, name, operation, capture_stdout=capture_stdout
        )
    except OSError as e:
        if not _is_missing_entry_point(e):
            return CommandResult(
                returncode=EXIT_NOT_EXECUTABLE,
                error=DispatchError(f"Could not run {SERVICE_COMMAND}: {e}"),
            )
        original = e

    script_path = get_script_path(name)
    logger.debug("%s not found, running %s directly", SERVICE_COMMAND, script_path)
    try:
        return await run_command(
            str(script_path), operation, capture_stdout=capture_stdout
        )
    except FileNotFoundError as e:
        # The script exists but its interpreter does not
        if script_path.exists():
            return CommandResult(
                returncode=EXIT_NOT_EXECUTABLE,
                error=DispatchError(
                    f"{SERVICE_COMMAND} is not available ({original.strerror}) "
                    f"and {script_path} could not be run: {e}"
                ),
            )
        return CommandResult(
            returncode=EXIT_NOT_FOUND,
            error=NotFoundError(
                f"{SERVICE_COMMAND} is not available ({original.strerror}) "
                f"and no init script exists at {script_path}"
            ),
        )
    except OSError as e:
        return CommandResult(
            returncode=EXIT_NOT_EXECUTABLE,
            error=DispatchError(
                f"{SERVICE_COMMAND} is not available ({original.strerror}) "
                f"and {script_path} could not be run: {e}"
            ),
        )
