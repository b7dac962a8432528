"""Service descriptor, options and path configuration."""

from sysv_service.config.loader import load_config
from sysv_service.config.models import ServiceConfig, ServiceOptions

__all__ = [
    "ServiceConfig",
    "ServiceOptions",
    "load_config",
]
