"""
Main entry point for FFMP.

This script configures logging, parses command-line arguments, collects the input
files, and runs the job orchestrator with progress display and Ctrl+C handling.

Exit status:
    0   the run completed (including runs with no input files or failed jobs)
    1   the configuration or the input source was invalid
    N   the run was interrupted (`--interrupt-exit-code`, 130 by default)
"""

import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from ffmp.cli import build_configuration, get_args
from ffmp.config.common import EXIT_CONFIG_ERROR, EXIT_OK, LOGGER_FORMAT
from ffmp.domain.exceptions import ConfigurationException, InputDiscoveryException
from ffmp.pipeline.orchestrator import JobOrchestrator
from ffmp.services.cancellation import CancellationCoordinator, ProcessRegistry
from ffmp.services.console import ProgressPrinter
from ffmp.services.file_processing_service import collect_input_files
from ffmp.services.logging_service import ErrorLog, RunReport
from ffmp.utils.ffmpeg_utils import format_command

# Configure the logger for initial setup.
# The level is overridden once command-line arguments are parsed.
logger.remove()
logger.add(sys.stderr, level="INFO", format=LOGGER_FORMAT)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Runs one batch and returns the process exit status.

    Steps:
    1. Parse arguments and reconfigure the logger.
    2. Build and validate the `Configuration`.
    3. Collect the input files from the directory or list file.
    4. Install the interrupt handler and run the orchestrator.
    5. Write the optional YAML report.
    """
    args = get_args(argv)

    effective_log_level = "DEBUG" if args.verbose and args.log_level == "INFO" else args.log_level
    logger.remove()
    logger.add(sys.stderr, level=effective_log_level, format=LOGGER_FORMAT)
    logger.debug(f"Parsed arguments: {args}")

    try:
        config = build_configuration(args)
        inputs = collect_input_files(config.input_directory, config.input_file_list)
    except (ConfigurationException, InputDiscoveryException) as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    logger.info(f"Input: {config.input_directory or config.input_file_list}")
    logger.info(f"Encoder: {format_command(config.ffmpeg_path, ['<input>', *config.encoder_args])}")
    logger.info(f"Output pattern: {config.output_pattern or '<name>.' + config.target_format}")
    logger.info(f"Thread count: {config.thread_count}")

    if not inputs:
        logger.info("No input files found.")
        return EXIT_OK

    logger.info(f"Found {len(inputs)} file(s) to process.")
    for i, path in enumerate(inputs):
        logger.debug(f"  {i + 1}. {path}")

    registry = ProcessRegistry()
    error_log = ErrorLog(Path(args.error_log_dir)) if args.error_log_dir else None
    orchestrator = JobOrchestrator(config, registry=registry, error_log=error_log)
    printer = ProgressPrinter()
    if not config.verbose:
        orchestrator.subscribe_progress(printer.update)

    started = time.monotonic()
    with CancellationCoordinator(registry, exit_code=config.interrupt_exit_code):
        try:
            result = orchestrator.run_all(inputs)
        finally:
            printer.close()

    if args.report:
        RunReport(Path(args.report)).write(result, elapsed_seconds=time.monotonic() - started)

    logger.success("FFMP process finished.")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
