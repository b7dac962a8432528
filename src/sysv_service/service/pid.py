"""PID file utilities.

The supervision script owns the PID file: it writes the decimal PID of the
process it launched and removes the file once the process is confirmed
stopped. These helpers only read it.
"""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class ProcessInfo:
    """Process information from PID file."""

    pid: int
    alive: bool


def read_pid_file(pid_path: Path) -> ProcessInfo | None:
    """Read PID file and check if process is alive.

    Args:
        pid_path: Path to the PID file.

    Returns:
        ProcessInfo if the file exists and holds a PID, None otherwise.
    """
    try:
        content = pid_path.read_text().strip().split("\n")
        pid = int(content[0])
    except (OSError, ValueError, IndexError):
        return None
    if pid <= 0:
        return None
    return ProcessInfo(pid=pid, alive=is_process_alive(pid))


def is_process_alive(pid: int) -> bool:
    """Check if a process with given PID is alive.

    Args:
        pid: Process ID to check.

    Returns:
        True if process exists, including processes owned by other users.
    """
    try:
        os.kill(pid, 0)  # Signal 0 checks existence without sending signal
    except PermissionError:
        return True
    except OSError:
        return False
    return True
