"""
Execution of a single external encoder process.

`ProcessRunner.run()` launches the executable with an argument vector (never
through a shell), consumes its output streams, and turns the result into one of
the `ExitOutcome` values:

- `Success` for exit code 0
- `Failure(exit_code, stderr)` for any other exit code
- `LaunchError(cause)` when the process could not be started at all
- `Killed(exit_code)` when the process died after `ProcessHandle.kill()`

While the process runs, its `ProcessHandle` sits in the shared `ProcessRegistry`
so a cancellation can reach it. The handle is removed on every exit path.
"""
import collections
import subprocess
import threading
from typing import Callable, Deque, List, Optional, Sequence, TextIO

from loguru import logger

from ..config.common import STDERR_TAIL_LINES
from ..domain.models import ExitOutcome, Failure, Killed, LaunchError, Success
from ..utils.ffmpeg_utils import format_command
from .cancellation import ProcessRegistry

# Receives (stream_name, line) for every output line in verbose mode.
LineSink = Callable[[str, str], None]

STDOUT = "stdout"
STDERR = "stderr"


class ProcessHandle:
    """A live reference to one launched process, used for cancellation."""

    def __init__(self, process: subprocess.Popen, label: str = ""):
        self.process = process
        self.label = label
        self._kill_requested = threading.Event()

    def __repr__(self) -> str:
        return f"<ProcessHandle pid={self.pid} label={self.label!r}>"

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def kill_requested(self) -> bool:
        return self._kill_requested.is_set()

    def kill(self) -> bool:
        """
        Forcefully terminates the process.

        Safe to call any number of times and on a process that has already exited.

        Returns:
            True if a kill signal was sent by this call.
        """
        if self.process.poll() is not None:
            return False
        self._kill_requested.set()
        try:
            self.process.kill()
        except ProcessLookupError:
            return False
        except OSError as e:
            # Windows raises PermissionError when the process is already gone.
            logger.debug(f"Kill of {self} ignored: {e}")
            return False
        logger.debug(f"Sent kill to {self}.")
        return True


class ProcessRunner:
    """
    Runs external processes and reports how they ended.

    Args:
        registry: Where live handles are tracked for cancellation. A private
                  registry is created when omitted.
        stderr_tail_lines: How many trailing stderr lines to keep for `Failure`.
    """

    def __init__(self, registry: Optional[ProcessRegistry] = None, stderr_tail_lines: int = STDERR_TAIL_LINES):
        self.registry = registry if registry is not None else ProcessRegistry()
        self.stderr_tail_lines = stderr_tail_lines

    def run(
        self,
        executable: str,
        args: Sequence[str],
        verbose: bool = False,
        sink: Optional[LineSink] = None,
        label: str = "",
    ) -> ExitOutcome:
        """
        Launches `executable` with `args` and waits for it to finish.

        Args:
            executable: Program name or path.
            args: Argument vector, passed through unchanged.
            verbose: If True, stdout and stderr are drained by two reader threads
                     and each line is handed to `sink` as it arrives. Ordering is
                     preserved within a stream, not across streams.
            sink: Line consumer for verbose mode. Defaults to the logger.
            label: Short name used in log messages (typically the input file).

        Returns:
            An `ExitOutcome`.
        """
        cmd_list: List[str] = [str(executable), *map(str, args)]
        logger.debug(f"Executing: {format_command(executable, args)}")

        try:
            process = subprocess.Popen(
                cmd_list,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                shell=False,
            )
        except OSError as e:
            # FileNotFoundError, PermissionError and friends: no handle is created.
            logger.error(f"Could not launch '{executable}' for {label or cmd_list}: {e}")
            return LaunchError(e)

        handle = ProcessHandle(process, label=label)
        self.registry.register(handle)
        try:
            if verbose:
                stderr_text = self._relay_streams(process, sink or self._log_sink(label))
            else:
                _, stderr_text = process.communicate()
                stderr_text = self._tail(stderr_text or "")
            returncode = process.wait()
        finally:
            self.registry.unregister(handle)
            if process.poll() is None:
                # Only reached when the body above raised.
                handle.kill()
                process.wait()

        if returncode == 0:
            return Success()
        # A terminal Ctrl+C also reaches the child, which may exit on its own before
        # the kill sweep gets to it; a closed registry still means cancellation.
        if handle.kill_requested or self.registry.closed:
            logger.debug(f"{label or executable} terminated by kill (rc={returncode}).")
            return Killed(returncode)
        return Failure(returncode, stderr_text)

    def _relay_streams(self, process: subprocess.Popen, sink: LineSink) -> str:
        stderr_tail: Deque[str] = collections.deque(maxlen=self.stderr_tail_lines)
        readers = [
            threading.Thread(
                target=self._drain,
                args=(process.stdout, STDOUT, sink, None),
                name=f"stdout-{process.pid}",
                daemon=True,
            ),
            threading.Thread(
                target=self._drain,
                args=(process.stderr, STDERR, sink, stderr_tail),
                name=f"stderr-{process.pid}",
                daemon=True,
            ),
        ]
        for reader in readers:
            reader.start()
        for reader in readers:
            reader.join()
        return "\n".join(stderr_tail)

    @staticmethod
    def _drain(stream: TextIO, stream_name: str, sink: LineSink, keep: Optional[Deque[str]]):
        try:
            for line in iter(stream.readline, ""):
                line = line.rstrip("\r\n")
                if keep is not None:
                    keep.append(line)
                try:
                    sink(stream_name, line)
                except Exception as e:
                    logger.error(f"Output sink raised on {stream_name} line: {e}")
        finally:
            stream.close()

    def _tail(self, text: str) -> str:
        lines = text.splitlines()
        return "\n".join(lines[-self.stderr_tail_lines:]) if lines else ""

    @staticmethod
    def _log_sink(label: str) -> LineSink:
        def sink(stream_name: str, line: str):
            if line:
                logger.info(f"[{label}:{stream_name}] {line}")

        return sink
