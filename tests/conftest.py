"""Shared test fixtures and factories."""

import os
import shutil
import sys
from pathlib import Path
from typing import Any

import pytest

from sysv_service.config.models import ServiceConfig
from sysv_service.config.paths import ENV_VAR

requires_sh = pytest.mark.skipif(
    shutil.which("sh") is None or not Path("/proc/self/stat").exists(),
    reason="needs a POSIX shell and /proc",
)

# =============================================================================
# Filesystem Fixtures
# =============================================================================


@pytest.fixture
def sysv_root(tmp_path: Path, monkeypatch) -> Path:
    """A staged init tree that every service path resolves under."""
    root = tmp_path / "root"
    for relative in (
        "etc/init.d",
        "etc/sysconfig",
        "var/run",
        "var/log",
        *(f"etc/rc{runlevel}.d" for runlevel in "0123456"),
    ):
        (root / relative).mkdir(parents=True)
    monkeypatch.setenv(ENV_VAR, str(root))
    return root.resolve()


def write_executable(path: Path, content: str) -> Path:
    """Write a shell script and make it executable."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(0o755)
    return path


# =============================================================================
# Configuration Fixtures
# =============================================================================


def make_config(**overrides: Any) -> ServiceConfig:
    """Build a service descriptor with test defaults."""
    values: dict[str, Any] = {
        "name": "demo",
        "display_name": "Demo Service",
        "description": "A service used in tests",
        "executable": sys.executable,
        "arguments": ["-m", "http.server"],
    }
    values.update(overrides)
    return ServiceConfig(**values)


@pytest.fixture
def service_config() -> ServiceConfig:
    """Descriptor for an enabled service."""
    return make_config()


@pytest.fixture
def disabled_config() -> ServiceConfig:
    """Descriptor for a service installed without autostart links."""
    return make_config(options={"enabled": False})


@pytest.fixture
def config_toml_content() -> str:
    return """
[service]
name = "demo"
display_name = "Demo Service"
description = "A service used in tests"
executable = "sh"
arguments = ["-c", "echo hello world"]

[service.options]
enabled = false
"""


@pytest.fixture
def config_file(tmp_path: Path, config_toml_content: str) -> Path:
    """Create a temporary descriptor file."""
    config_path = tmp_path / "service.toml"
    config_path.write_text(config_toml_content)
    return config_path


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1", "COLUMNS": "200"})


@pytest.fixture
def reap_pid_file():
    """Kill processes whose PID files are registered during a test."""
    pid_files: list[Path] = []
    yield pid_files.append
    for pid_file in pid_files:
        try:
            os.kill(int(pid_file.read_text().strip()), 9)
        except (OSError, ValueError):
            pass
