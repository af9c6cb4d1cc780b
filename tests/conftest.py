import threading
import time
from collections.abc import Generator
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest
from loguru import logger

from ffmp.domain.models import Configuration, Failure, Killed, Success
from ffmp.services.cancellation import ProcessRegistry


class FakeHandle:
    def __init__(self, label: str):
        self.label = label
        self.killed = threading.Event()
        self.kill_calls = 0

    def kill(self) -> bool:
        self.kill_calls += 1
        self.killed.set()
        return True


class FakeRunner:
    """
    Stands in for `ProcessRunner`: registers a handle, optionally waits, and
    writes the output file on success. Tracks how many runs overlap.
    """

    def __init__(
        self,
        registry: Optional[ProcessRegistry] = None,
        exit_code: int = 0,
        exit_codes: Optional[Dict[str, int]] = None,
        errors: Optional[Dict[str, Exception]] = None,
        delay: float = 0.0,
        block: bool = False,
        create_output: bool = True,
    ):
        self.registry = registry if registry is not None else ProcessRegistry()
        self.exit_code = exit_code
        self.exit_codes = exit_codes or {}
        self.errors = errors or {}
        self.delay = delay
        self.block = block
        self.create_output = create_output
        self.calls: List[List[str]] = []
        self.labels: List[str] = []
        self.handles: List[FakeHandle] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def run(self, executable, args, verbose=False, sink=None, label=""):
        if label in self.errors:
            raise self.errors[label]
        handle = FakeHandle(label)
        with self._lock:
            self.calls.append(list(args))
            self.labels.append(label)
            self.handles.append(handle)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.registry.register(handle)
        try:
            if self.block:
                handle.killed.wait(timeout=10)
            elif self.delay:
                time.sleep(self.delay)
            if handle.killed.is_set():
                return Killed(-9)
            code = self.exit_codes.get(label, self.exit_code)
            if code != 0:
                return Failure(code, f"{label}: encoder error")
            if self.create_output:
                Path(args[-1]).write_bytes(b"encoded")
            return Success()
        finally:
            self.registry.unregister(handle)
            with self._lock:
                self.active -= 1


@pytest.fixture
def fake_runner_factory() -> Callable[..., FakeRunner]:
    return FakeRunner


@pytest.fixture
def make_inputs(tmp_path: Path) -> Callable[..., List[str]]:
    def _make(*names: str) -> List[str]:
        paths = []
        for name in names:
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"source")
            paths.append(str(path))
        return paths

    return _make


@pytest.fixture
def base_config() -> Configuration:
    return Configuration(
        thread_count=2,
        codec="libx265",
        output_pattern="{{dir}}/{{name}}.out.mkv",
        ffmpeg_path="ffmpeg",
    )


@pytest.fixture
def log_messages() -> Generator[List[str], None, None]:
    messages: List[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="TRACE")
    try:
        yield messages
    finally:
        logger.remove(handler_id)


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    return wait_until
