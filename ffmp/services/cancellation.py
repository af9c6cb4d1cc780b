"""
Tracking of live encoder processes and best-effort cancellation.

`ProcessRegistry` is a lock-protected set of `ProcessHandle` objects. Each running
job registers its handle right after launch and unregisters it in a `finally`
block, so the registry only ever holds processes that may still be alive.

`CancellationCoordinator` holds a reference to a registry and, when a SIGINT or
SIGTERM arrives, kills every tracked process and exits with a fixed status code.
It is an ordinary object: the orchestrator, the runner and the coordinator are
all handed the same registry instance, and tests can call `cancel()` without
sending real signals.
"""
import signal
import sys
import threading
from typing import Callable, Dict, List, Optional

from loguru import logger

from ..config.video import DEFAULT_INTERRUPT_EXIT_CODE


class ProcessRegistry:
    """
    Concurrent set of live process handles.

    Once `close()` has been called, newly registered handles are killed on the
    spot: a process launched in the window between a cancellation and the
    worker noticing it is still terminated.
    """

    def __init__(self):
        self._handles: set = set()
        self._lock = threading.Lock()
        self._closed = threading.Event()

    def register(self, handle) -> bool:
        """
        Adds a handle to the registry.

        Returns:
            True if the handle is now tracked, False if the registry was already
            closed (in which case the handle has been killed).
        """
        with self._lock:
            if not self._closed.is_set():
                self._handles.add(handle)
                return True
        logger.debug(f"Registry closed; killing late process {handle}.")
        handle.kill()
        return False

    def unregister(self, handle) -> None:
        with self._lock:
            self._handles.discard(handle)

    def snapshot(self) -> List:
        with self._lock:
            return list(self._handles)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def __contains__(self, handle) -> bool:
        with self._lock:
            return handle in self._handles

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """Stops accepting new handles."""
        self._closed.set()

    def kill_all(self) -> int:
        """
        Attempts to kill every handle present at the time of the call.

        Individual failures are logged and ignored; a process that exited between
        the snapshot and the kill attempt is not an error.

        Returns:
            The number of kill attempts made.
        """
        handles = self.snapshot()
        attempts = 0
        for handle in handles:
            attempts += 1
            try:
                handle.kill()
            except Exception as e:
                logger.warning(f"Failed to kill {handle}: {e}")
        return attempts


class CancellationCoordinator:
    """
    Wires a `ProcessRegistry` to the process's interrupt signals.

    Args:
        registry: The registry shared with the runner and orchestrator.
        exit_code: Status passed to `exit_func` after cleanup.
        exit_func: Called with `exit_code` from the signal handler. Defaults to
                   `sys.exit`, which raises `SystemExit` in the main thread and
                   lets `with` blocks (the worker pool) unwind normally.
    """

    HANDLED_SIGNALS = tuple(
        sig for sig in (getattr(signal, "SIGINT", None), getattr(signal, "SIGTERM", None)) if sig is not None
    )

    def __init__(
        self,
        registry: ProcessRegistry,
        exit_code: int = DEFAULT_INTERRUPT_EXIT_CODE,
        exit_func: Callable[[int], object] = sys.exit,
    ):
        self.registry = registry
        self.exit_code = exit_code
        self.exit_func = exit_func
        self.cancelled = threading.Event()
        self._previous_handlers: Dict[int, object] = {}

    def cancel(self) -> int:
        """Closes the registry and kills all tracked processes. Returns the number of kill attempts."""
        self.cancelled.set()
        self.registry.close()
        attempts = self.registry.kill_all()
        logger.debug(f"Cancellation issued {attempts} kill attempt(s).")
        return attempts

    def handle_interrupt(self, signum: Optional[int] = None, frame=None):
        try:
            name = signal.Signals(signum).name if signum is not None else "interrupt"
        except ValueError:
            name = str(signum)
        sys.stderr.write(f"Received {name}. Terminating all running encoder processes...\n")
        # The interrupted frame may hold a loguru handler lock; logging from here
        # would raise instead of exiting.
        logger.disable("ffmp")
        try:
            attempts = self.cancel()
        finally:
            logger.enable("ffmp")
        sys.stderr.write(f"Sent termination to {attempts} process(es). Exiting with status {self.exit_code}.\n")
        sys.stderr.flush()
        return self.exit_func(self.exit_code)

    def install(self) -> "CancellationCoordinator":
        """Installs `handle_interrupt` for SIGINT/SIGTERM. Must be called from the main thread."""
        for sig in self.HANDLED_SIGNALS:
            self._previous_handlers[sig] = signal.signal(sig, self.handle_interrupt)
        return self

    def uninstall(self) -> None:
        for sig, previous in self._previous_handlers.items():
            signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
        self._previous_handlers.clear()

    def __enter__(self):
        return self.install()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.uninstall()
        return False
