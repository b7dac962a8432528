"""Command line interface for sysv-service."""

from sysv_service.cli.app import app

__all__ = ["app"]
