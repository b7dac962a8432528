"""Foreground run loop for a workload attached to the current session.

Used instead of the init script when the program runs interactively: start
the workload, wait until told to stop, stop the workload.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import signal
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from contextlib import suppress
from typing import Any

from sysv_service.config.models import ServiceOptions
from sysv_service.service.base import ServiceBackend, Workload

logger = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGTERM, signal.SIGINT)

# Room for a few duplicate deliveries (e.g. Ctrl-C pressed repeatedly)
SIGNAL_QUEUE_SIZE = 3


def once(func: Callable[[], Any]) -> Callable[[], None]:
    """Wrap a callable so only the first call runs it.

    Later calls return immediately, including calls made while the first
    one is still running on another thread.
    """
    lock = threading.Lock()
    called = False

    @functools.wraps(func)
    def wrapper() -> None:
        nonlocal called
        with lock:
            if called:
                return
            called = True
        func()

    return wrapper


class Waiter(ABC):
    """Blocks until the foreground run should end."""

    @abstractmethod
    async def wait(self) -> None: ...


class SignalWaiter(Waiter):
    """Waits for a termination signal."""

    def __init__(self, signals: tuple[signal.Signals, ...] = STOP_SIGNALS):
        self.signals = signals

    async def wait(self) -> None:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[signal.Signals] = asyncio.Queue(maxsize=SIGNAL_QUEUE_SIZE)

        def deliver(sig: signal.Signals) -> None:
            with suppress(asyncio.QueueFull):
                queue.put_nowait(sig)

        for sig in self.signals:
            loop.add_signal_handler(sig, deliver, sig)
        try:
            received = await queue.get()
            logger.info("Received %s, stopping", received.name)
        finally:
            for sig in self.signals:
                loop.remove_signal_handler(sig)


class FunctionWaiter(Waiter):
    """Waits for a caller-supplied blocking function to return.

    The function runs in a worker thread and at most once, however many
    times wait() is called.
    """

    def __init__(self, func: Callable[[], Any]):
        self._func = once(func)

    async def wait(self) -> None:
        await asyncio.to_thread(self._func)


def get_waiter(options: ServiceOptions) -> Waiter:
    """Get the run_wait option's waiter, or wait for a signal."""
    if options.run_wait is not None:
        return FunctionWaiter(options.run_wait)
    return SignalWaiter()


async def _call(callback: Callable[[ServiceBackend], Any], service: ServiceBackend) -> Any:
    result = callback(service)
    if inspect.isawaitable(result):
        result = await result
    return result


class ForegroundRunner:
    """Runs one workload for the lifetime of the process."""

    def __init__(self, service: ServiceBackend, waiter: Waiter):
        self.service = service
        self.waiter = waiter

    async def run(self, workload: Workload) -> Any:
        """Start the workload, wait, then stop it.

        Returns:
            The result of the workload's stop callback.
        """
        await _call(workload.start, self.service)
        await self.waiter.wait()
        return await _call(workload.stop, self.service)
