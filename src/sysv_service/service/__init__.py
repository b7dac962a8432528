"""Background service management.

Provides the SysV init backend behind the generic ServiceBackend
interface, plus a foreground runner for interactive sessions.

Example:
    from sysv_service.service import ServiceManager, SysVBackend

    manager = ServiceManager(SysVBackend(config))
    success, message = await manager.install()
    status = await manager.status()
"""

from sysv_service.service.base import (
    ServiceBackend,
    ServiceState,
    ServiceStatus,
    Workload,
)
from sysv_service.service.manager import ServiceManager
from sysv_service.service.runner import (
    ForegroundRunner,
    FunctionWaiter,
    SignalWaiter,
    Waiter,
)
from sysv_service.service.sysv import SysVBackend

__all__ = [
    "ForegroundRunner",
    "FunctionWaiter",
    "ServiceBackend",
    "ServiceManager",
    "ServiceState",
    "ServiceStatus",
    "SignalWaiter",
    "SysVBackend",
    "Waiter",
    "Workload",
]
