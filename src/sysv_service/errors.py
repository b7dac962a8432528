"""Exceptions raised by the SysV service backend.

Filesystem and template failures are not wrapped: they surface as the
``OSError`` or ``jinja2.TemplateError`` raised by the underlying call.
"""


class ServiceError(Exception):
    """Base class for service management errors."""


class CapabilityError(ServiceError):
    """The requested mode is not supported by this backend."""


class ConflictError(ServiceError):
    """The install target already exists."""


class NotFoundError(ServiceError):
    """A script, executable or dispatch target does not exist."""


class DispatchError(ServiceError):
    """The service control command could not be run or reported failure."""


class NotInstalledError(ServiceError):
    """The service control command gave an unrecognizable status."""

    def __init__(self, message: str = "the service is not installed"):
        super().__init__(message)
