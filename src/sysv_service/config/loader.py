"""Service descriptor loading from TOML files."""

import tomllib
from pathlib import Path
from typing import Any

from sysv_service.config.models import OPTION_SYSV_SCRIPT, ServiceConfig
from sysv_service.config.paths import get_root

SCRIPT_FILE_OPTION = "sysv_script_file"


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default descriptor locations."""
    return [
        Path("service.toml"),  # Current directory
        get_root() / "etc" / "sysv-service" / "service.toml",  # System-wide
    ]


def _resolve_script_file(options: dict[str, Any], base_dir: Path) -> dict[str, Any]:
    """Replace a script file reference with the template text it names."""
    script_file = options.pop(SCRIPT_FILE_OPTION, None)
    if script_file is None:
        return options
    if OPTION_SYSV_SCRIPT in options:
        raise ValueError(
            f"Set either {OPTION_SYSV_SCRIPT} or {SCRIPT_FILE_OPTION}, not both"
        )
    script_path = (base_dir / Path(script_file).expanduser()).resolve()
    if not script_path.exists():
        raise FileNotFoundError(f"Script template not found: {script_path}")
    options[OPTION_SYSV_SCRIPT] = script_path.read_text()
    return options


def load_config(path: Path | None = None) -> ServiceConfig:
    """Load a service descriptor from a TOML file.

    Args:
        path: Explicit path to the descriptor. If None, searches default locations.

    Returns:
        Validated ServiceConfig instance.

    Raises:
        FileNotFoundError: If no descriptor file is found.
        ValueError: If the descriptor is invalid.
    """
    config_path: Path | None = None

    default_paths = _get_default_config_paths()

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in default_paths:
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    if config_path is None:
        raise FileNotFoundError(
            f"No config file found. Searched: {', '.join(str(p) for p in default_paths)}"
        )

    with config_path.open("rb") as f:
        raw_config = tomllib.load(f)

    section = raw_config.get("service")
    if not isinstance(section, dict):
        raise ValueError(f"Missing [service] table in {config_path}")

    section["options"] = _resolve_script_file(
        dict(section.get("options") or {}), config_path.parent
    )

    return ServiceConfig.model_validate(section)
