"""Centralized path management for SysV services.

Every location the backend reads or writes lives under a filesystem root.
The root defaults to ``/`` and can be overridden with the SYSV_SERVICE_ROOT
environment variable, which lets image builders and tests stage an init
tree somewhere else.

Default locations:
- Init scripts: /etc/init.d/<name>
- Autostart links: /etc/rc<N>.d/
- PID files: /var/run/<name>.pid
- Logs: /var/log/<name>.log and /var/log/<name>.err
- Environment overrides: /etc/sysconfig/<name>
"""

import os
from pathlib import Path

ENV_VAR = "SYSV_SERVICE_ROOT"


def get_root() -> Path:
    """Get the filesystem root all service paths are resolved under.

    Resolution order:
    1. SYSV_SERVICE_ROOT environment variable (if set)
    2. /
    """
    if env_root := os.environ.get(ENV_VAR):
        return Path(env_root).expanduser().resolve()
    return Path("/")


def get_init_dir() -> Path:
    """Get the init script directory."""
    return get_root() / "etc" / "init.d"


def get_script_path(name: str) -> Path:
    """Get the init script path for a service."""
    return get_init_dir() / name


def get_rc_dir(runlevel: str) -> Path:
    """Get the autostart link directory for a runlevel."""
    return get_root() / "etc" / f"rc{runlevel}.d"


def get_pid_dir() -> Path:
    """Get the directory the supervision script keeps PID files in."""
    return get_root() / "var" / "run"


def get_pid_path(name: str) -> Path:
    """Get the PID file path for a service."""
    return get_pid_dir() / f"{name}.pid"


def get_default_log_dir() -> Path:
    """Get the log directory used when the service does not configure one."""
    return get_root() / "var" / "log"


def get_env_dir() -> Path:
    """Get the directory holding per-service environment override files."""
    return get_root() / "etc" / "sysconfig"

