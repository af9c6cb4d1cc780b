"""
The job pool orchestrator.

`JobOrchestrator.run_all()` takes a fixed, ordered list of input files and runs
one ffmpeg job per input with at most `Configuration.thread_count` encoder
processes alive at once:

1. An empty input list finishes immediately with an empty `OverallResult`.
2. A bounded semaphore sized to the thread count acts as the admission gate.
3. The dispatch loop walks the inputs in order. For each one it acquires a slot
   (blocking while all slots are taken) and submits the job to a thread pool.
4. A job derives its output path, skips the encode when the output already
   exists and overwriting is disabled, otherwise builds the argument vector and
   runs the encoder. Any exception inside a job becomes a `FAILED` result. The
   slot is released in a `finally` block.
5. Each terminal result advances the progress counter (for the outcomes listed
   in `Configuration.progress_outcomes`) and is passed to the caller's callback.
6. Leaving the pool's `with` block waits for every submitted job.

Errors from one job never reach sibling jobs or the caller. `run_all()` raises
only for an invalid configuration, before anything is dispatched.
"""
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from datetime import timedelta
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from loguru import logger

from ..domain.models import (
    Configuration,
    ExitOutcome,
    Failure,
    Job,
    JobOutcome,
    JobResult,
    JobState,
    Killed,
    LaunchError,
    OverallResult,
    Success,
)
from ..services.cancellation import ProcessRegistry
from ..services.logging_service import ErrorLog
from ..services.process_runner import LineSink, ProcessRunner
from ..services.progress import ProgressAggregator, ProgressObserver
from ..utils.ffmpeg_utils import build_encoder_args, format_command
from ..utils.format_utils import format_timedelta, formatted_size
from ..utils.path_template import derive_conversion_path, derive_output_path

JobOutcomeCallback = Callable[[JobResult], None]


class JobOrchestrator:
    """
    Runs a batch of encoder jobs under an admission gate.

    Args:
        config: The run's configuration. Validated at the start of `run_all()`.
        runner: Executes one process per job. Defaults to a `ProcessRunner` sharing
                `registry`. Any object with the same `run()` signature works.
        registry: Registry of live processes, shared with a `CancellationCoordinator`.
                  Defaults to the runner's registry, or a new one.
        error_log: Optional plain-text log receiving diagnostics for failed jobs.
        output_sink: Line consumer for verbose mode. Defaults to the logger.
    """

    def __init__(
        self,
        config: Configuration,
        runner: Optional[ProcessRunner] = None,
        registry: Optional[ProcessRegistry] = None,
        error_log: Optional[ErrorLog] = None,
        output_sink: Optional[LineSink] = None,
    ):
        self.config = config
        if registry is None:
            registry = getattr(runner, "registry", None)
        if registry is None:
            registry = ProcessRegistry()
        self.registry = registry
        self.runner = runner if runner is not None else ProcessRunner(self.registry)
        self.error_log = error_log
        self.output_sink = output_sink
        self.progress: Optional[ProgressAggregator] = None
        self._progress_observers: List[ProgressObserver] = []
        self._results: List[JobResult] = []
        self._results_lock = threading.Lock()

    def subscribe_progress(self, observer: ProgressObserver) -> None:
        """Registers an observer called with (completed, total) after every counted job."""
        self._progress_observers.append(observer)

    def run_all(self, inputs: Iterable[str], on_job_outcome: Optional[JobOutcomeCallback] = None) -> OverallResult:
        """
        Runs one job per input and waits for all of them.

        Args:
            inputs: Input file paths, dispatched in this order.
            on_job_outcome: Called once per job with its `JobResult`, from the
                            worker thread that finished it.

        Returns:
            An `OverallResult` whose counts add up to the number of inputs.

        Raises:
            ConfigurationException: If the configuration is invalid.
        """
        self.config.validate()
        input_list = [str(path) for path in inputs]
        self._results = []

        if not input_list:
            logger.info("No input files to process.")
            self.progress = ProgressAggregator(0)
            return OverallResult.empty()

        total = len(input_list)
        self.progress = ProgressAggregator(total)
        for observer in self._progress_observers:
            self.progress.subscribe(observer)

        thread_count = max(1, self.config.thread_count)
        gate = threading.BoundedSemaphore(thread_count)
        jobs = [Job(index=i, input_path=path) for i, path in enumerate(input_list)]
        logger.info(f"Processing {total} file(s) with {thread_count} concurrent job(s).")

        with ThreadPoolExecutor(max_workers=thread_count, thread_name_prefix="ffmp-job") as executor:
            try:
                futures = {}
                for job in jobs:
                    gate.acquire()
                    if self.registry.closed:
                        gate.release()
                        self._finish(
                            job,
                            JobResult(job.input_path, "", JobOutcome.KILLED, error="Cancelled before dispatch."),
                            on_job_outcome,
                        )
                        continue
                    job.transition(JobState.DISPATCHED)
                    try:
                        future = executor.submit(self._run_job, job, gate, on_job_outcome)
                    except BaseException:
                        gate.release()
                        raise
                    futures[future] = job
                    logger.trace(f"Dispatched {job.index + 1}/{total}: {job.input_path}")

                for future in as_completed(futures):
                    # _run_job converts every exception into a result; this only
                    # surfaces bugs in the bookkeeping itself.
                    future.result()
            except BaseException:
                # Kill before the executor waits on the workers when leaving the block.
                logger.warning("Dispatch interrupted; killing running encoder processes.")
                self.registry.close()
                self.registry.kill_all()
                raise

        with self._results_lock:
            overall = OverallResult.from_results(total, list(self._results))
        logger.info(
            f"Processing complete: {overall.succeeded} succeeded, {overall.failed} failed, "
            f"{overall.skipped} skipped, {overall.killed} killed."
        )
        return overall

    def _run_job(self, job: Job, gate: threading.BoundedSemaphore, on_job_outcome: Optional[JobOutcomeCallback]):
        started = time.monotonic()
        try:
            try:
                result = self._execute(job)
            except Exception as e:
                logger.exception(f"Unexpected error while processing {job.input_path}: {e}")
                result = JobResult(
                    job.input_path,
                    job.output_path,
                    JobOutcome.FAILED,
                    error=f"{type(e).__name__}: {e}",
                )
            result = replace(result, duration_seconds=time.monotonic() - started)
            self._finish(job, result, on_job_outcome)
            return result
        finally:
            gate.release()

    def _execute(self, job: Job) -> JobResult:
        config = self.config
        job.output_path = self.derive_output(job.input_path)

        if self.registry.closed:
            return JobResult(job.input_path, job.output_path, JobOutcome.KILLED, error="Cancelled before start.")

        if os.path.abspath(job.output_path) == os.path.abspath(job.input_path):
            return JobResult(
                job.input_path,
                job.output_path,
                JobOutcome.FAILED,
                error="Output path is the same as the input path.",
            )

        if os.path.exists(job.output_path) and not config.overwrite:
            logger.info(f"Skipping {job.input_path}, output already exists: {job.output_path}")
            return JobResult(job.input_path, job.output_path, JobOutcome.SKIPPED)

        job.args = build_encoder_args(config, job.input_path, job.output_path)
        Path(job.output_path).parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Processing file: {job.input_path}")
        job.transition(JobState.RUNNING)
        outcome = self.runner.run(
            config.ffmpeg_path,
            job.args,
            verbose=config.verbose,
            sink=self.output_sink,
            label=os.path.basename(job.input_path),
        )
        return self._interpret(job, outcome)

    def derive_output(self, input_path: str) -> str:
        if self.config.convert:
            return derive_conversion_path(input_path, self.config.target_format)
        return derive_output_path(input_path, self.config.output_pattern)

    def _interpret(self, job: Job, outcome: ExitOutcome) -> JobResult:
        if isinstance(outcome, Success):
            if self.config.delete_source:
                self._delete_source(job)
            return JobResult(job.input_path, job.output_path, JobOutcome.SUCCEEDED, exit_code=outcome.exit_code)
        if isinstance(outcome, Killed):
            return JobResult(
                job.input_path,
                job.output_path,
                JobOutcome.KILLED,
                exit_code=outcome.exit_code,
                error="Terminated by cancellation.",
            )
        if isinstance(outcome, Failure):
            self._write_error_log(job, f"Exit code: {outcome.exit_code}", outcome.stderr)
            return JobResult(
                job.input_path,
                job.output_path,
                JobOutcome.FAILED,
                exit_code=outcome.exit_code,
                error=outcome.stderr or f"Encoder exited with code {outcome.exit_code}.",
            )
        if isinstance(outcome, LaunchError):
            self._write_error_log(job, f"Launch error: {outcome.message}")
            return JobResult(job.input_path, job.output_path, JobOutcome.FAILED, error=outcome.message)
        raise TypeError(f"Unknown process outcome: {outcome!r}")

    def _delete_source(self, job: Job) -> None:
        try:
            os.remove(job.input_path)
            logger.info(f"Deleted source file {job.input_path}")
        except OSError as e:
            logger.error(f"Could not delete source file {job.input_path}: {e}")

    def _write_error_log(self, job: Job, *details: str) -> None:
        if self.error_log is None:
            return
        self.error_log.write(
            f"Encoding failed for: {job.input_path}",
            f"Command: {format_command(self.config.ffmpeg_path, job.args)}",
            *[d for d in details if d],
        )

    def _finish(self, job: Job, result: JobResult, on_job_outcome: Optional[JobOutcomeCallback]) -> None:
        job.transition(JobState(result.outcome.value))
        with self._results_lock:
            self._results.append(result)

        self._log_result(result)
        if self.progress is not None and result.outcome in self.config.progress_outcomes:
            self.progress.report()
        if on_job_outcome is not None:
            try:
                on_job_outcome(result)
            except Exception as e:
                logger.error(f"Job outcome callback raised for {result.input_path}: {e}")

    @staticmethod
    def _log_result(result: JobResult) -> None:
        elapsed = format_timedelta(timedelta(seconds=result.duration_seconds))
        if result.outcome is JobOutcome.SUCCEEDED:
            size = os.path.getsize(result.output_path) if os.path.isfile(result.output_path) else 0
            logger.success(f"Encoded {result.input_path} -> {result.output_path} ({formatted_size(size)}) in {elapsed}")
        elif result.outcome is JobOutcome.FAILED:
            logger.error(f"Error processing file {result.input_path} (exit code {result.exit_code}): {result.error}")
        elif result.outcome is JobOutcome.KILLED:
            logger.warning(f"Killed {result.input_path}: {result.error}")
        else:
            logger.debug(f"Skipped {result.input_path}")
