import subprocess
import sys
import threading

import pytest

from ffmp.domain.models import Failure, Killed, LaunchError, Success
from ffmp.services.cancellation import ProcessRegistry
from ffmp.services.process_runner import ProcessRunner

PY = sys.executable


def test_exit_code_zero_is_success() -> None:
    runner = ProcessRunner()

    assert runner.run(PY, ["-c", "print('hello')"]) == Success()
    assert len(runner.registry) == 0


def test_nonzero_exit_returns_failure_with_stderr() -> None:
    runner = ProcessRunner()

    outcome = runner.run(PY, ["-c", "import sys; sys.stderr.write('bad input\\n'); sys.exit(3)"])

    assert isinstance(outcome, Failure)
    assert outcome.exit_code == 3
    assert "bad input" in outcome.stderr


def test_stderr_is_truncated_to_tail() -> None:
    runner = ProcessRunner(stderr_tail_lines=2)

    outcome = runner.run(PY, ["-c", "import sys; [print(i, file=sys.stderr) for i in range(10)]; sys.exit(1)"])

    assert outcome.stderr == "8\n9"


def test_missing_executable_is_launch_error() -> None:
    registry = ProcessRegistry()
    runner = ProcessRunner(registry)

    outcome = runner.run("/nonexistent/dir/ffmpeg-does-not-exist", ["-version"])

    assert isinstance(outcome, LaunchError)
    assert isinstance(outcome.cause, FileNotFoundError)
    assert "FileNotFoundError" in outcome.message
    assert len(registry) == 0


def test_arguments_are_passed_as_a_vector() -> None:
    runner = ProcessRunner()
    tricky = "a b; echo $HOME 'quoted'"
    lines = []

    outcome = runner.run(
        PY,
        ["-c", "import sys; print(sys.argv[1])", tricky],
        verbose=True,
        sink=lambda stream, line: lines.append((stream, line)),
    )

    assert outcome == Success()
    assert ("stdout", tricky) in lines


def test_verbose_mode_relays_both_streams_in_order() -> None:
    runner = ProcessRunner()
    script = (
        "import sys\n"
        "for i in range(20):\n"
        "    print(f'out {i}', flush=True)\n"
        "    print(f'err {i}', file=sys.stderr, flush=True)\n"
    )
    lines = []
    lock = threading.Lock()

    def sink(stream: str, line: str) -> None:
        with lock:
            lines.append((stream, line))

    outcome = runner.run(PY, ["-c", script], verbose=True, sink=sink)

    assert outcome == Success()
    assert [line for stream, line in lines if stream == "stdout"] == [f"out {i}" for i in range(20)]
    assert [line for stream, line in lines if stream == "stderr"] == [f"err {i}" for i in range(20)]


def test_verbose_failure_keeps_stderr_tail() -> None:
    runner = ProcessRunner()

    outcome = runner.run(
        PY,
        ["-c", "import sys; print('boom', file=sys.stderr); sys.exit(5)"],
        verbose=True,
        sink=lambda stream, line: None,
    )

    assert outcome == Failure(5, "boom")


def test_kill_terminates_running_process_and_deregisters(wait_for) -> None:
    registry = ProcessRegistry()
    runner = ProcessRunner(registry)
    outcomes = []

    thread = threading.Thread(
        target=lambda: outcomes.append(runner.run(PY, ["-c", "import time; time.sleep(60)"], label="sleeper"))
    )
    thread.start()
    assert wait_for(lambda: len(registry) == 1)

    handle = registry.snapshot()[0]
    assert handle.label == "sleeper"
    assert handle.kill() is True
    thread.join(timeout=10)

    assert not thread.is_alive()
    assert isinstance(outcomes[0], Killed)
    assert len(registry) == 0
    # Idempotent on an exited process.
    assert handle.kill() is False
    assert handle.kill() is False


def test_process_launched_after_registry_closed_is_killed() -> None:
    registry = ProcessRegistry()
    registry.close()
    runner = ProcessRunner(registry)

    outcome = runner.run(PY, ["-c", "import time; time.sleep(60)"])

    assert isinstance(outcome, Killed)
    assert len(registry) == 0


def test_sink_errors_do_not_break_draining() -> None:
    runner = ProcessRunner()

    def sink(stream: str, line: str) -> None:
        raise RuntimeError("sink failure")

    outcome = runner.run(PY, ["-c", "print('x'); print('y')"], verbose=True, sink=sink)

    assert outcome == Success()


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal exit codes")
def test_killed_outcome_carries_signal_exit_code(wait_for) -> None:
    registry = ProcessRegistry()
    runner = ProcessRunner(registry)
    outcomes = []
    thread = threading.Thread(target=lambda: outcomes.append(runner.run(PY, ["-c", "import time; time.sleep(60)"])))
    thread.start()
    assert wait_for(lambda: len(registry) == 1)

    registry.kill_all()
    thread.join(timeout=10)

    assert outcomes == [Killed(-9)]


def test_self_terminated_process_after_cancellation_is_killed(tmp_path, wait_for) -> None:
    # The child exits with ffmpeg's interrupt status on its own, the way it does
    # when a terminal Ctrl+C reaches it before the kill sweep.
    release = tmp_path / "release"
    script = (
        "import os, sys, time\n"
        f"while not os.path.exists({str(release)!r}):\n"
        "    time.sleep(0.02)\n"
        "sys.exit(255)\n"
    )
    registry = ProcessRegistry()
    runner = ProcessRunner(registry)
    outcomes = []
    thread = threading.Thread(target=lambda: outcomes.append(runner.run(PY, ["-c", script])))
    thread.start()
    assert wait_for(lambda: len(registry) == 1)

    registry.close()
    release.touch()
    thread.join(timeout=10)

    assert outcomes == [Killed(255)]
    assert len(registry) == 0


def test_process_is_deregistered_and_reaped_when_waiting_raises(monkeypatch) -> None:
    registry = ProcessRegistry()
    runner = ProcessRunner(registry)
    launched = []

    def broken_communicate(self, *args, **kwargs):
        launched.append(self)
        raise RuntimeError("communicate failed")

    monkeypatch.setattr(subprocess.Popen, "communicate", broken_communicate)

    with pytest.raises(RuntimeError, match="communicate failed"):
        runner.run(PY, ["-c", "import time; time.sleep(60)"])

    assert len(registry) == 0
    assert len(launched) == 1
    assert launched[0].returncode is not None
