"""Install, control and supervise a process as a System V init service."""

__version__ = "0.1.0"
