"""Classification of `status` output from the supervision script."""

from sysv_service.errors import NotInstalledError
from sysv_service.service.base import ServiceState, ServiceStatus
from sysv_service.service.sysv.dispatch import CommandResult


def interpret_status(result: CommandResult) -> ServiceStatus:
    """Map a status dispatch to a service status.

    The script prints "Running" or "Stopped" (exiting 1 for the latter), so
    the exit code is not consulted. Anything else means the command that
    answered is not our script.
    """
    if result.error is not None:
        return ServiceStatus(state=ServiceState.UNKNOWN, error=result.error)

    if result.stdout.startswith("Running"):
        return ServiceStatus(state=ServiceState.RUNNING)
    if result.stdout.startswith("Stopped"):
        return ServiceStatus(state=ServiceState.STOPPED)

    output = result.stdout.strip()
    return ServiceStatus(
        state=ServiceState.UNKNOWN,
        message=output or None,
        error=NotInstalledError(),
    )
