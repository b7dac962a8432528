"""Tests for supervision script rendering."""

import re
import shlex
import subprocess
import time
from dataclasses import replace

import pytest
from jinja2 import UndefinedError

from sysv_service.config.paths import get_pid_dir, get_pid_path
from sysv_service.service.pid import is_process_alive
from sysv_service.service.sysv.detect import LivenessCheck
from sysv_service.service.sysv.install import install_script
from sysv_service.service.sysv.script import (
    DEFAULT_RENDERER,
    ScriptRenderer,
    ScriptVariables,
    TemplateScriptRenderer,
    build_variables,
    get_renderer,
    shell_quote,
)
from tests.conftest import make_config, requires_sh

TRICKY_ARGUMENTS = [
    "hello world",
    'say "hi"',
    "it's",
    "$HOME",
    "`id`",
    "a\tb",
    "",
    "*",
    "back\\slash",
]


def _cmd_assignment(script: str) -> str:
    match = re.search(r"^cmd=(.*)$", script, re.MULTILINE)
    assert match is not None
    return match.group(1)


def _render(**overrides) -> str:
    config = make_config(**overrides)
    return DEFAULT_RENDERER.render(build_variables(config, "/usr/bin/demo", False))


# =============================================================================
# Variable Tests
# =============================================================================


class TestScriptVariables:
    """Tests for the template variable contract."""

    def test_build_variables(self, sysv_root):
        config = make_config(working_directory="/srv/demo")
        variables = build_variables(config, "/usr/bin/demo", is_busybox=False)

        assert variables.name == "demo"
        assert variables.display_name == "Demo Service"
        assert variables.path == "/usr/bin/demo"
        assert variables.arguments == ("-m", "http.server")
        assert variables.working_directory == "/srv/demo"
        assert variables.log_directory == str(sysv_root / "var" / "log")
        assert variables.pid_directory == str(get_pid_dir())
        assert variables.liveness_check == LivenessCheck.PROC_TABLE

    def test_log_directory_option(self):
        config = make_config(options={"log_directory": "/srv/logs"})
        variables = build_variables(config, "/usr/bin/demo", is_busybox=False)
        assert variables.log_directory == "/srv/logs"

    def test_busybox_selects_listing_tool(self):
        variables = build_variables(make_config(), "/usr/bin/demo", is_busybox=True)
        assert variables.is_busybox is True
        assert variables.liveness_check == LivenessCheck.LISTING_TOOL

    def test_command_line_quotes_each_word(self):
        variables = ScriptVariables(
            name="demo",
            display_name="demo",
            description="",
            path="/opt/my app/bin",
            arguments=("a b", "c"),
        )
        assert variables.command_line == "'/opt/my app/bin' 'a b' c"


# =============================================================================
# Default Template Tests
# =============================================================================


class TestDefaultTemplate:
    """Tests for the built-in supervision script."""

    def test_header(self):
        script = _render()
        assert script.startswith("#!/bin/sh\n")
        assert "# Provides:          demo\n" in script
        assert "# Short-Description: Demo Service\n" in script
        assert "# Default-Start:     2 3 4 5\n" in script
        assert "# Default-Stop:      0 1 6\n" in script
        assert script.endswith("exit 0\n")

    def test_multiline_description_stays_in_comment(self):
        script = _render(description="first line\nsecond line")
        assert "# Description:       first line second line\n" in script

    def test_single_liveness_check(self):
        script = _render()
        assert script.count("is_running() {") == 1
        assert "/proc/$(get_pid)/stat" in script
        assert "awk" not in script

    def test_busybox_liveness_check(self):
        variables = build_variables(make_config(), "/usr/bin/demo", is_busybox=True)
        script = DEFAULT_RENDERER.render(variables)
        assert script.count("is_running() {") == 1
        assert "ps | awk" in script
        assert "/proc/" not in script

    def test_operations(self):
        script = _render()
        for operation in ("start)", "stop)", "restart)", "status)"):
            assert operation in script
        assert 'echo "Usage: $0 {start|stop|restart|status}"' in script

    def test_stop_window(self):
        script = _render()
        assert '[ "$attempt" -lt 10 ]' in script
        assert "sleep 1" in script

    def test_log_files_and_env_override(self, sysv_root):
        script = _render()
        log_dir = sysv_root / "var" / "log"
        assert f'stdout_log={shell_quote(log_dir)}"/$name.log"' in script
        assert f'stderr_log={shell_quote(log_dir)}"/$name.err"' in script
        assert '[ -e "$env_file" ] && . "$env_file"' in script

    def test_working_directory(self):
        script = _render(working_directory="/srv/my app")
        assert "cd '/srv/my app' || exit 1" in script

    def test_no_working_directory(self):
        script = _render()
        assert "cd " not in script


# =============================================================================
# Argument Quoting Tests
# =============================================================================


class TestArgumentQuoting:
    """Tests that the cmd variable reproduces the argument list."""

    def test_round_trip_through_shlex(self):
        script = _render(arguments=TRICKY_ARGUMENTS)

        [command_line] = shlex.split(_cmd_assignment(script))

        assert shlex.split(command_line) == ["/usr/bin/demo", *TRICKY_ARGUMENTS]

    @requires_sh
    def test_round_trip_through_sh(self):
        script = _render(arguments=TRICKY_ARGUMENTS)
        program = (
            f"cmd={_cmd_assignment(script)}\n"
            'eval "set -- $cmd"\n'
            "printf '%s\\0' \"$@\"\n"
        )

        result = subprocess.run(
            ["sh", "-c", program], capture_output=True, check=True
        )

        words = result.stdout.decode().split("\0")[:-1]
        assert words == ["/usr/bin/demo", *TRICKY_ARGUMENTS]


# =============================================================================
# Override Tests
# =============================================================================


class TestRendererOverride:
    """Tests for operator supplied scripts."""

    def test_default_renderer(self):
        assert get_renderer(make_config().option_set) is DEFAULT_RENDERER

    def test_template_text_override(self):
        config = make_config(
            options={"sysv_script": "#!/bin/sh\nexec {{ command_line }} # {{ name }}\n"}
        )
        renderer = get_renderer(config.option_set)

        script = renderer.render(build_variables(config, "/usr/bin/demo", False))

        assert isinstance(renderer, TemplateScriptRenderer)
        assert script == "#!/bin/sh\nexec /usr/bin/demo -m http.server # demo\n"

    def test_override_can_use_cmd_filter(self):
        config = make_config(
            arguments=["a b"],
            options={"sysv_script": "{% for arg in arguments %}{{ arg|cmd }}{% endfor %}"},
        )
        script = get_renderer(config.option_set).render(
            build_variables(config, "/usr/bin/demo", False)
        )
        assert script == "'a b'"

    def test_renderer_instance_override(self):
        class NameRenderer(ScriptRenderer):
            def render(self, variables: ScriptVariables) -> str:
                return f"#!/bin/sh\necho {variables.name}\n"

        renderer = NameRenderer()
        config = make_config(options={"sysv_script": renderer})

        assert get_renderer(config.option_set) is renderer

    def test_empty_override_uses_default(self):
        config = make_config(options={"sysv_script": ""})
        assert get_renderer(config.option_set) is DEFAULT_RENDERER

    def test_unknown_variable_is_an_error(self):
        renderer = TemplateScriptRenderer("{{ nmae }}")
        with pytest.raises(UndefinedError):
            renderer.render(build_variables(make_config(), "/usr/bin/demo", False))


# =============================================================================
# Supervision Script Behavior Tests
# =============================================================================

IGNORE_TERM = "trap '' TERM; while :; do sleep 1; done"


class ShortStopRenderer(ScriptRenderer):
    """Default template with a two-second stop window."""

    def render(self, variables: ScriptVariables) -> str:
        return DEFAULT_RENDERER.render(replace(variables, stop_attempts=2))


def _run_script(script_path, operation: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [str(script_path), operation],
        stdin=subprocess.DEVNULL,
        capture_output=True,
        text=True,
        timeout=60,
    )


@requires_sh
class TestSupervisionScript:
    """Run the installed script's operations directly."""

    @pytest.fixture(autouse=True)
    def _no_probe(self, monkeypatch):
        monkeypatch.setattr(
            "sysv_service.service.sysv.install.is_running_busybox", lambda: False
        )

    def _start(self, config, reap_pid_file, renderer=None):
        script_path = install_script(config, renderer=renderer)
        pid_path = get_pid_path(config.name)
        reap_pid_file(pid_path)

        started = _run_script(script_path, "start")

        assert started.returncode == 0, started.stdout
        return script_path, pid_path

    def test_status_exit_codes(self, sysv_root, reap_pid_file):
        config = make_config(executable="sleep", arguments=["30"])
        script_path = install_script(config)

        stopped = _run_script(script_path, "status")
        assert stopped.returncode == 1
        assert stopped.stdout == "Stopped\n"

        reap_pid_file(get_pid_path("demo"))
        assert _run_script(script_path, "start").returncode == 0

        running = _run_script(script_path, "status")
        assert running.returncode == 0
        assert running.stdout == "Running\n"

    def test_start_when_running(self, sysv_root, reap_pid_file):
        config = make_config(executable="sleep", arguments=["30"])
        script_path, pid_path = self._start(config, reap_pid_file)
        pid = pid_path.read_text()

        again = _run_script(script_path, "start")

        assert again.returncode == 0
        assert "Already started" in again.stdout
        assert pid_path.read_text() == pid

    def test_stop_removes_pid_file(self, sysv_root, reap_pid_file):
        config = make_config(executable="sleep", arguments=["30"])
        script_path, pid_path = self._start(config, reap_pid_file)
        pid = int(pid_path.read_text())

        stopped = _run_script(script_path, "stop")

        assert stopped.returncode == 0
        assert "Stopped" in stopped.stdout
        assert not pid_path.exists()
        assert not is_process_alive(pid)

    def test_stop_when_not_running(self, sysv_root):
        script_path = install_script(make_config(executable="sleep", arguments=["30"]))

        result = _run_script(script_path, "stop")

        assert result.returncode == 0
        assert "Not running" in result.stdout

    def test_stop_timeout_keeps_pid_file(self, sysv_root, reap_pid_file):
        config = make_config(executable="sh", arguments=["-c", IGNORE_TERM])
        script_path, pid_path = self._start(
            config, reap_pid_file, renderer=ShortStopRenderer()
        )
        pid = pid_path.read_text()
        # Give the workload time to install its trap
        time.sleep(0.5)

        result = _run_script(script_path, "stop")

        assert result.returncode == 1
        assert "Not stopped" in result.stdout
        assert pid_path.read_text() == pid
        assert is_process_alive(int(pid))

    def test_restart_refuses_to_start_over_live_process(
        self, sysv_root, reap_pid_file
    ):
        config = make_config(executable="sh", arguments=["-c", IGNORE_TERM])
        script_path, pid_path = self._start(
            config, reap_pid_file, renderer=ShortStopRenderer()
        )
        pid = pid_path.read_text()
        time.sleep(0.5)

        result = _run_script(script_path, "restart")

        assert result.returncode == 1
        assert "will not attempt to start" in result.stdout
        assert "Starting" not in result.stdout
        assert pid_path.read_text() == pid

    def test_unknown_operation(self, sysv_root):
        script_path = install_script(make_config(executable="sleep", arguments=["30"]))

        result = _run_script(script_path, "reload")

        assert result.returncode == 1
        assert "Usage:" in result.stdout
        assert "{start|stop|restart|status}" in result.stdout
