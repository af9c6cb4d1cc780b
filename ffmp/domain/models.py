"""
Value objects describing a batch transcoding run.

- `Configuration` is the immutable record produced by the CLI layer and read by
  every other component for the lifetime of a run.
- `Job` is the unit of work bound to exactly one input file.
- `Success`, `Failure`, `LaunchError` and `Killed` form the `ExitOutcome` sum type
  returned by the process runner.
- `JobResult` and `OverallResult` are what the orchestrator hands back to callers.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from ..config.common import (
    JOB_OUTCOME_FAILED,
    JOB_OUTCOME_KILLED,
    JOB_OUTCOME_SKIPPED,
    JOB_OUTCOME_SUCCEEDED,
)
from ..config.video import (
    DEFAULT_INTERRUPT_EXIT_CODE,
    DEFAULT_THREAD_COUNT,
    FFMPEG_EXECUTABLE_NAME,
)
from .exceptions import ConfigurationException


class JobOutcome(str, Enum):
    """Terminal state of a job. No further transitions occur once reached."""

    SUCCEEDED = JOB_OUTCOME_SUCCEEDED
    FAILED = JOB_OUTCOME_FAILED
    SKIPPED = JOB_OUTCOME_SKIPPED
    KILLED = JOB_OUTCOME_KILLED


class JobState(str, Enum):
    """
    Lifecycle of a job.

    `PENDING -> DISPATCHED -> {SKIPPED | RUNNING -> {SUCCEEDED | FAILED | KILLED}}`.
    Only `RUNNING` has a live process handle.
    """

    PENDING = "pending"
    DISPATCHED = "dispatched"
    RUNNING = "running"
    SUCCEEDED = JOB_OUTCOME_SUCCEEDED
    FAILED = JOB_OUTCOME_FAILED
    SKIPPED = JOB_OUTCOME_SKIPPED
    KILLED = JOB_OUTCOME_KILLED

    @property
    def is_terminal(self) -> bool:
        return self.value in {outcome.value for outcome in JobOutcome}


@dataclass(frozen=True)
class Configuration:
    """
    Settings for one batch run.

    Attributes:
        thread_count: Maximum number of encoder processes running at once.
        codec: Video codec passed as `-c:v` (e.g. 'libx265').
        preset: Optional encoder preset passed as `-preset`.
        encoder_args: Raw arguments appended verbatim before the output path.
        output_pattern: Output path template using `{{dir}}`, `{{name}}`, `{{ext}}`.
        overwrite: Re-encode even when the output file already exists.
        verbose: Relay encoder stdout/stderr line by line while it runs.
        delete_source: Delete the input file after a successful encode.
        convert: Conversion mode; the output is `<dir>/<name>.<target_format>`.
        target_format: Container/extension used in conversion mode.
        input_directory: Directory to scan for inputs (exclusive with `input_file_list`).
        input_file_list: Text file listing one input path per line.
        ffmpeg_path: Encoder executable name or path.
        progress_outcomes: Outcomes that advance the progress counter.
        interrupt_exit_code: Exit status used when the run is interrupted.
    """

    thread_count: int = DEFAULT_THREAD_COUNT
    codec: str = ""
    preset: str = ""
    encoder_args: Tuple[str, ...] = ()
    output_pattern: str = ""
    overwrite: bool = False
    verbose: bool = False
    delete_source: bool = False
    convert: bool = False
    target_format: str = ""
    input_directory: Optional[str] = None
    input_file_list: Optional[str] = None
    ffmpeg_path: str = FFMPEG_EXECUTABLE_NAME
    progress_outcomes: frozenset = frozenset({JobOutcome.SUCCEEDED})
    interrupt_exit_code: int = DEFAULT_INTERRUPT_EXIT_CODE

    def validate(self, require_input_source: bool = False) -> "Configuration":
        """
        Checks the record for combinations that make a run impossible.

        Args:
            require_input_source: Also require exactly one of `input_directory`
                                  and `input_file_list` (the CLI sets this; library
                                  callers passing inputs directly do not).

        Returns:
            The configuration itself, to allow chaining.

        Raises:
            ConfigurationException: On the first problem found.
        """
        if not isinstance(self.thread_count, int) or self.thread_count < 1:
            raise ConfigurationException(
                f"Thread count must be a positive integer, got {self.thread_count!r}."
            )
        if self.convert:
            if not self.target_format.strip(". "):
                raise ConfigurationException("Conversion mode requires a target format.")
        else:
            if not self.codec:
                raise ConfigurationException("A codec is required unless conversion mode is enabled.")
            if not self.output_pattern:
                raise ConfigurationException(
                    "An output pattern is required unless conversion mode is enabled."
                )
        if not self.ffmpeg_path:
            raise ConfigurationException("The encoder executable path is empty.")
        if require_input_source and bool(self.input_directory) == bool(self.input_file_list):
            raise ConfigurationException(
                "Exactly one of an input directory or an input file list must be given."
            )
        unknown = [o for o in self.progress_outcomes if not isinstance(o, JobOutcome)]
        if unknown:
            raise ConfigurationException(f"Unknown progress outcomes: {unknown}")
        return self


@dataclass
class Job:
    """One input file's transcode, from dispatch to terminal state."""

    index: int
    input_path: str
    output_path: str = ""
    args: List[str] = field(default_factory=list)
    state: JobState = JobState.PENDING

    def transition(self, new_state: JobState) -> None:
        if self.state.is_terminal:
            raise RuntimeError(
                f"Job {self.input_path} is already {self.state.value}; cannot move to {new_state.value}."
            )
        self.state = new_state


# --- Process runner outcomes ---


@dataclass(frozen=True)
class Success:
    exit_code: int = 0


@dataclass(frozen=True)
class Failure:
    exit_code: int
    stderr: str = ""


@dataclass(frozen=True)
class LaunchError:
    cause: BaseException

    @property
    def message(self) -> str:
        return f"{type(self.cause).__name__}: {self.cause}"


@dataclass(frozen=True)
class Killed:
    exit_code: Optional[int] = None


ExitOutcome = Union[Success, Failure, LaunchError, Killed]


# --- Orchestrator results ---


@dataclass(frozen=True)
class JobResult:
    """Terminal report of a single job, passed to the outcome callback."""

    input_path: str
    output_path: str
    outcome: JobOutcome
    exit_code: Optional[int] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        return {
            "input": self.input_path,
            "output": self.output_path,
            "outcome": self.outcome.value,
            "exit_code": self.exit_code,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass(frozen=True)
class OverallResult:
    """
    Summary of a finished run.

    `results` is in completion order, which is not necessarily input order.
    """

    total: int
    counts: Dict[JobOutcome, int]
    results: Tuple[JobResult, ...] = ()

    @classmethod
    def from_results(cls, total: int, results: List[JobResult]) -> "OverallResult":
        counts = {outcome: 0 for outcome in JobOutcome}
        for result in results:
            counts[result.outcome] += 1
        return cls(total=total, counts=counts, results=tuple(results))

    @classmethod
    def empty(cls) -> "OverallResult":
        return cls.from_results(0, [])

    @property
    def succeeded(self) -> int:
        return self.counts[JobOutcome.SUCCEEDED]

    @property
    def failed(self) -> int:
        return self.counts[JobOutcome.FAILED]

    @property
    def skipped(self) -> int:
        return self.counts[JobOutcome.SKIPPED]

    @property
    def killed(self) -> int:
        return self.counts[JobOutcome.KILLED]

    @property
    def ok(self) -> bool:
        """True when nothing failed or was killed."""
        return self.failed == 0 and self.killed == 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "counts": {outcome.value: count for outcome, count in self.counts.items()},
            "jobs": [result.to_dict() for result in self.results],
        }
