"""Service management commands."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from sysv_service.cli.console import console, error, success, warning

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to the service descriptor (TOML)",
    ),
]


def _get_backend(config_path: Path | None):
    """Load the descriptor and build its backend, exiting on bad config."""
    from sysv_service.config import load_config
    from sysv_service.service import SysVBackend

    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        error(str(e))
        raise typer.Exit(1) from None
    return SysVBackend(config)


def _run_service_action(config_path: Path | None, action_name: str) -> None:
    """Run a service manager action and handle the result.

    Args:
        config_path: Descriptor path, or None to search default locations.
        action_name: Name of the ServiceManager method to call.
    """
    from sysv_service.service import ServiceManager

    manager = ServiceManager(_get_backend(config_path))
    action = getattr(manager, action_name)
    result, message = asyncio.run(action())

    if result:
        success(message)
    else:
        error(message)
        raise typer.Exit(1)


def _set_enabled(config_path: Path | None, enabled: bool) -> None:
    from sysv_service.errors import ServiceError

    backend = _get_backend(config_path)
    try:
        outcome = asyncio.run(backend.enable() if enabled else backend.disable())
    except ServiceError as e:
        error(str(e))
        raise typer.Exit(1) from None

    for link_path, link_error in outcome.failed:
        warning(f"{link_path}: {link_error}")
    verb = "Enabled" if enabled else "Disabled"
    success(f"{verb} {backend.config.name} ({len(outcome.changed)} links changed)")
    if outcome.failed:
        raise typer.Exit(1)


def register(app: typer.Typer) -> None:
    """Register service commands."""

    @app.command("install")
    def service_install(config: ConfigOption = None) -> None:
        """Install the init script and its autostart links."""
        _run_service_action(config, "install")

    @app.command("uninstall")
    def service_uninstall(config: ConfigOption = None) -> None:
        """Remove the init script (autostart links are left in place)."""
        _run_service_action(config, "uninstall")

    @app.command("enable")
    def service_enable(config: ConfigOption = None) -> None:
        """Link the installed script into the start and stop runlevels."""
        _set_enabled(config, True)

    @app.command("disable")
    def service_disable(config: ConfigOption = None) -> None:
        """Remove the runlevel links of the installed script."""
        _set_enabled(config, False)

    @app.command("start")
    def service_start(config: ConfigOption = None) -> None:
        """Start the service."""
        _run_service_action(config, "start")

    @app.command("stop")
    def service_stop(config: ConfigOption = None) -> None:
        """Stop the service."""
        _run_service_action(config, "stop")

    @app.command("restart")
    def service_restart(config: ConfigOption = None) -> None:
        """Restart the service."""
        _run_service_action(config, "restart")

    @app.command("status")
    def service_status(config: ConfigOption = None) -> None:
        """Show service status."""
        from sysv_service.cli.console import create_table
        from sysv_service.service import ServiceManager, ServiceState

        backend = _get_backend(config)
        manager = ServiceManager(backend)
        status = asyncio.run(manager.status())

        table = create_table(
            f"{backend} Service Status",
            [
                ("Property", "cyan"),
                ("Value", ""),
            ],
        )

        state_colors = {
            ServiceState.RUNNING: "green",
            ServiceState.STOPPED: "yellow",
            ServiceState.UNKNOWN: "dim",
        }
        state_color = state_colors.get(status.state, "white")
        table.add_row("State", f"[{state_color}]{status.state.value}[/{state_color}]")
        table.add_row("Backend", manager.backend_name)
        table.add_row("Script", str(backend.script_path))

        if status.pid:
            table.add_row("PID", str(status.pid))

        if status.message:
            table.add_row("Message", escape(status.message))

        if status.error:
            table.add_row("Error", f"[red]{escape(str(status.error))}[/red]")

        console.print(table)

    @app.command("logs")
    def service_logs(
        config: ConfigOption = None,
        follow: Annotated[
            bool,
            typer.Option(
                "--follow",
                "-f",
                help="Follow log output",
            ),
        ] = False,
        lines: Annotated[
            int,
            typer.Option(
                "--lines",
                "-n",
                help="Number of lines to show",
            ),
        ] = 50,
    ) -> None:
        """View the service's standard output log."""
        from sysv_service.service import ServiceManager

        manager = ServiceManager(_get_backend(config))

        async def do_logs():
            async for line in manager.logs(follow=follow, lines=lines):
                console.print(line, markup=False, highlight=False)

        try:
            asyncio.run(do_logs())
        except KeyboardInterrupt:
            pass

    @app.command("render")
    def service_render(
        config: ConfigOption = None,
        busybox: Annotated[
            bool | None,
            typer.Option(
                "--busybox/--no-busybox",
                help="Render for a BusyBox host (default: detect)",
            ),
        ] = None,
    ) -> None:
        """Print the init script install would write."""
        from sysv_service.errors import ServiceError

        backend = _get_backend(config)
        try:
            script = backend.render_script(is_busybox=busybox)
        except ServiceError as e:
            error(str(e))
            raise typer.Exit(1) from None
        typer.echo(script, nl=False)
