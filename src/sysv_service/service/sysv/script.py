"""Rendering of the SysV supervision script.

The init script does its own supervision: it tracks the launched process in
a PID file, checks liveness, stops it with a bounded grace period and
redirects its output to log files. Operators can replace the built-in
template with their own, rendered against the same ScriptVariables.
"""

from __future__ import annotations

import shlex
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import BaseLoader, Environment, StrictUndefined

from sysv_service.config.models import (
    OPTION_LOG_DIRECTORY,
    OPTION_SYSV_SCRIPT,
    ServiceConfig,
    ServiceOptions,
)
from sysv_service.config.paths import get_default_log_dir, get_env_dir, get_pid_dir
from sysv_service.service.sysv.detect import LivenessCheck, select_liveness_check

# Graceful stop window: attempts x interval seconds
STOP_ATTEMPTS = 10
STOP_INTERVAL_SECONDS = 1


def shell_quote(word: Any) -> str:
    """Quote one word so a single pass of sh word parsing restores it."""
    return shlex.quote(str(word))


def _oneline(text: Any) -> str:
    return " ".join(str(text).split())


_ENV = Environment(
    loader=BaseLoader(),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)
_ENV.filters["cmd"] = shell_quote
_ENV.filters["oneline"] = _oneline


SYSV_SCRIPT = """\
#!/bin/sh
# For RedHat and cousins:
# chkconfig: - 99 01
# description: {{ description|oneline }}
# processname: {{ path }}

### BEGIN INIT INFO
# Provides:          {{ name }}
# Required-Start:
# Required-Stop:
# Default-Start:     2 3 4 5
# Default-Stop:      0 1 6
# Short-Description: {{ display_name|oneline }}
# Description:       {{ description|oneline }}
### END INIT INFO

cmd={{ command_line|cmd }}

name=$(basename "$(readlink -f "$0")")
pid_file={{ pid_directory|cmd }}"/$name.pid"
stdout_log={{ log_directory|cmd }}"/$name.log"
stderr_log={{ log_directory|cmd }}"/$name.err"
env_file={{ env_directory|cmd }}"/$name"

[ -e "$env_file" ] && . "$env_file"

get_pid() {
    cat "$pid_file"
}

is_running() {
{% if liveness_check == "listing_tool" %}
    [ -f "$pid_file" ] && ps | awk '{print "s" $1 "s"}' | grep "s$(get_pid)s" > /dev/null 2>&1
{% else %}
    [ -f "$pid_file" ] && cat "/proc/$(get_pid)/stat" > /dev/null 2>&1
{% endif %}
}

case "$1" in
    start)
        if is_running; then
            echo "Already started"
        else
            echo "Starting $name"
            {% if working_directory %}
            cd {{ working_directory|cmd }} || exit 1
            {% endif %}
            eval "set -- $cmd"
            "$@" >> "$stdout_log" 2>> "$stderr_log" &
            echo $! > "$pid_file"
            if ! is_running; then
                echo "Unable to start, see $stdout_log and $stderr_log"
                exit 1
            fi
        fi
    ;;
    stop)
        if is_running; then
            printf "Stopping %s.." "$name"
            kill "$(get_pid)"
            attempt=0
            while [ "$attempt" -lt {{ stop_attempts }} ]; do
                if ! is_running; then
                    break
                fi
                printf "."
                sleep {{ stop_interval }}
                attempt=$((attempt + 1))
            done
            echo
            if is_running; then
                echo "Not stopped; may still be shutting down or shutdown may have failed"
                exit 1
            else
                echo "Stopped"
                if [ -f "$pid_file" ]; then
                    rm "$pid_file"
                fi
            fi
        else
            echo "Not running"
        fi
    ;;
    restart)
        "$0" stop
        if is_running; then
            echo "Unable to stop, will not attempt to start"
            exit 1
        fi
        "$0" start
    ;;
    status)
        if is_running; then
            echo "Running"
        else
            echo "Stopped"
            exit 1
        fi
    ;;
    *)
        echo "Usage: $0 {start|stop|restart|status}"
        exit 1
    ;;
esac
exit 0
"""


@dataclass(frozen=True)
class ScriptVariables:
    """Everything a script template may reference."""

    name: str
    display_name: str
    description: str
    path: str
    arguments: tuple[str, ...] = ()
    working_directory: str | None = None
    log_directory: str = field(default_factory=lambda: str(get_default_log_dir()))
    pid_directory: str = field(default_factory=lambda: str(get_pid_dir()))
    env_directory: str = field(default_factory=lambda: str(get_env_dir()))
    is_busybox: bool = False
    liveness_check: LivenessCheck = LivenessCheck.PROC_TABLE
    stop_attempts: int = STOP_ATTEMPTS
    stop_interval: int = STOP_INTERVAL_SECONDS

    @property
    def command_line(self) -> str:
        """The executable and arguments, each quoted for sh."""
        return " ".join(shell_quote(word) for word in (self.path, *self.arguments))

    def to_context(self) -> dict[str, Any]:
        context = asdict(self)
        context["arguments"] = list(self.arguments)
        context["command_line"] = self.command_line
        return context


def get_log_directory(options: ServiceOptions) -> Path:
    """Get the directory the script sends the service's output to."""
    return Path(options.get_str(OPTION_LOG_DIRECTORY, str(get_default_log_dir())))


def build_variables(
    config: ServiceConfig,
    path: Path | str,
    is_busybox: bool,
) -> ScriptVariables:
    """Collect the template variables for a service."""
    return ScriptVariables(
        name=config.name,
        display_name=config.label,
        description=config.description,
        path=str(path),
        arguments=tuple(config.arguments),
        working_directory=config.working_directory,
        log_directory=str(get_log_directory(config.option_set)),
        is_busybox=is_busybox,
        liveness_check=select_liveness_check(is_busybox),
    )


class ScriptRenderer(ABC):
    """Turns ScriptVariables into the text of an init script."""

    @abstractmethod
    def render(self, variables: ScriptVariables) -> str: ...


class TemplateScriptRenderer(ScriptRenderer):
    """Renders Jinja2 template text with the `cmd` quoting filter available.

    Undefined variables are errors, so a typo in an operator template fails
    the install instead of producing a broken script.
    """

    def __init__(self, source: str):
        self.source = source
        self._template = _ENV.from_string(source)

    def render(self, variables: ScriptVariables) -> str:
        return self._template.render(**variables.to_context())


DEFAULT_RENDERER = TemplateScriptRenderer(SYSV_SCRIPT)


def get_renderer(options: ServiceOptions) -> ScriptRenderer:
    """Get the operator's script override, or the built-in template.

    The sysv_script option may hold template text or a ScriptRenderer.
    """
    override = options.get_value(OPTION_SYSV_SCRIPT)
    if isinstance(override, ScriptRenderer):
        return override
    if isinstance(override, str) and override:
        return TemplateScriptRenderer(override)
    return DEFAULT_RENDERER
