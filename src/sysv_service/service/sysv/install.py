"""Installation of the init script and its runlevel links."""

from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple

from sysv_service.config.models import ServiceConfig
from sysv_service.config.paths import get_rc_dir, get_script_path
from sysv_service.errors import CapabilityError, ConflictError, NotFoundError
from sysv_service.service.sysv.detect import is_running_busybox
from sysv_service.service.sysv.script import (
    ScriptRenderer,
    build_variables,
    get_renderer,
)

logger = logging.getLogger(__name__)

SCRIPT_MODE = 0o755
START_PREFIX = "S50"
KILL_PREFIX = "K02"


class AutostartLink(NamedTuple):
    """One runlevel link: rc<runlevel>.d/<prefix><name>."""

    runlevel: str
    prefix: str

    def path(self, name: str) -> Path:
        return get_rc_dir(self.runlevel) / f"{self.prefix}{name}"


AUTOSTART_LINKS: tuple[AutostartLink, ...] = (
    *(AutostartLink(runlevel, START_PREFIX) for runlevel in ("2", "3", "4", "5")),
    *(AutostartLink(runlevel, KILL_PREFIX) for runlevel in ("0", "1", "6")),
)


@dataclass
class LinkReconciliation:
    """Outcome of bringing the autostart links to the desired state."""

    enabled: bool
    changed: list[Path] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)
    failed: list[tuple[Path, OSError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def check_capability(config: ServiceConfig) -> None:
    """Reject modes this backend cannot provide."""
    if config.option_set.user_service:
        raise CapabilityError("User services are not supported on SystemV.")


def resolve_executable(config: ServiceConfig) -> Path:
    """Get the absolute path of the program the script will launch.

    Raises:
        NotFoundError: If the executable cannot be found.
    """
    if config.executable is None:
        return Path(sys.executable).absolute()

    candidate = Path(config.executable).expanduser()
    if not candidate.is_absolute():
        found = shutil.which(config.executable)
        if found is None:
            raise NotFoundError(f"Executable not found: {config.executable}")
        candidate = Path(found)

    if not candidate.exists():
        raise NotFoundError(f"Executable not found: {candidate}")
    return candidate.absolute()


def _ensure_link(link_path: Path, target: Path) -> bool:
    if link_path.is_symlink() and Path(os.readlink(link_path)) == target:
        return False
    link_path.symlink_to(target)
    return True


def _remove_link(link_path: Path) -> bool:
    try:
        link_path.unlink()
    except FileNotFoundError:
        return False
    return True


def reconcile_links(name: str, script_path: Path, enabled: bool) -> LinkReconciliation:
    """Make the autostart links match the enabled state.

    Enabled means every link exists and points at the script; disabled means
    none exist. Each link is handled independently: a failure is logged and
    recorded in the result, and the remaining links are still processed.
    Running it twice with the same arguments changes nothing the second time.
    """
    result = LinkReconciliation(enabled=enabled)
    for link in AUTOSTART_LINKS:
        link_path = link.path(name)
        try:
            if enabled:
                changed = _ensure_link(link_path, script_path)
            else:
                changed = _remove_link(link_path)
        except OSError as e:
            logger.warning(
                "Could not %s autostart link %s: %s",
                "create" if enabled else "remove",
                link_path,
                e,
            )
            result.failed.append((link_path, e))
            continue

        if changed:
            logger.debug("%s %s", "Linked" if enabled else "Unlinked", link_path)
            result.changed.append(link_path)
        else:
            result.unchanged.append(link_path)
    return result


def install_script(
    config: ServiceConfig,
    renderer: ScriptRenderer | None = None,
    is_busybox: bool | None = None,
) -> Path:
    """Write the init script and reconcile its autostart links.

    Args:
        config: The service to install.
        renderer: Script renderer; defaults to the sysv_script option or the
            built-in template.
        is_busybox: Detection result; probed when None.

    Returns:
        Path of the installed script.

    Raises:
        CapabilityError: If a user service was requested.
        ConflictError: If a script already exists for this name.
        NotFoundError: If the executable cannot be found.
    """
    check_capability(config)

    script_path = get_script_path(config.name)
    if script_path.exists() or script_path.is_symlink():
        raise ConflictError(f"Init already exists: {script_path}")

    if is_busybox is None:
        is_busybox = is_running_busybox()
    exec_path = resolve_executable(config)
    renderer = renderer or get_renderer(config.option_set)
    content = renderer.render(build_variables(config, exec_path, is_busybox))

    try:
        script_file = script_path.open("x", encoding="utf-8")
    except FileExistsError as e:
        raise ConflictError(f"Init already exists: {script_path}") from e
    with script_file:
        script_file.write(content)
    script_path.chmod(SCRIPT_MODE)
    logger.info("Installed init script %s", script_path)

    links = reconcile_links(config.name, script_path, config.option_set.enabled)
    if not links.ok:
        logger.warning(
            "%d of %d autostart links were not reconciled",
            len(links.failed),
            len(AUTOSTART_LINKS),
        )
    return script_path


def uninstall_script(config: ServiceConfig) -> Path:
    """Remove the init script.

    Autostart links are left in place. Reconcile them with enabled=False
    first to remove them, or they will dangle.

    Raises:
        CapabilityError: If a user service was requested.
        NotFoundError: If no script is installed for this name.
    """
    check_capability(config)

    script_path = get_script_path(config.name)
    try:
        script_path.unlink()
    except FileNotFoundError as e:
        raise NotFoundError(f"Init script not found: {script_path}") from e
    logger.info("Removed init script %s", script_path)
    return script_path
