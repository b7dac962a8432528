"""BusyBox detection for choosing the script's liveness check."""

import logging
import subprocess
from enum import StrEnum

logger = logging.getLogger(__name__)

# BusyBox ps accepts none of these options
PROBE_COMMAND = ["ps", "xaw"]
UNRECOGNIZED_MARKER = "unrecognized option"
BUSYBOX_MARKER = "BusyBox"


class LivenessCheck(StrEnum):
    """How the supervision script decides the tracked process is alive."""

    PROC_TABLE = "proc_table"
    LISTING_TOOL = "listing_tool"


def is_running_busybox() -> bool:
    """Check whether ps on this host is the BusyBox applet.

    Runs ps with options BusyBox rejects and looks for its complaint on
    stderr. Returns False if ps cannot be run at all.
    """
    try:
        result = subprocess.run(
            PROBE_COMMAND,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("BusyBox probe failed: %s", e)
        return False

    stderr = result.stderr or ""
    return UNRECOGNIZED_MARKER in stderr and BUSYBOX_MARKER in stderr


def select_liveness_check(is_busybox: bool) -> LivenessCheck:
    """Pick the liveness check rendered into the supervision script."""
    if is_busybox:
        return LivenessCheck.LISTING_TOOL
    return LivenessCheck.PROC_TABLE
