"""
Command-Line Interface (CLI) setup for FFMP.

This module uses Python's `argparse` to define and parse the command-line
arguments, and turns them into the immutable `Configuration` record consumed by
the orchestrator. Everything after a literal `--` is passed to ffmpeg verbatim.

Example:
    python main.py -t 4 --codec libx265 --preset fast \\
        --output-pattern "{{dir}}/{{name}}_x265.mkv" -d ./videos -- -crf 26
"""
import argparse
import sys
from typing import List, Optional, Sequence, Tuple

from .config.common import MODULE_PATH
from .config.video import (
    DEFAULT_CODEC,
    DEFAULT_INTERRUPT_EXIT_CODE,
    DEFAULT_OUTPUT_PATTERN,
    DEFAULT_PRESET,
    DEFAULT_THREAD_COUNT,
)
from .domain.models import Configuration, JobOutcome
from .utils.ffmpeg_utils import resolve_ffmpeg_executable


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ffmp",
        description="Batch-transcode media files with ffmpeg, several files at a time.",
        epilog="Arguments after '--' are passed to ffmpeg unchanged, before the output path.",
    )
    parser.add_argument(
        "-t", "--threads", type=_positive_int, default=DEFAULT_THREAD_COUNT,
        help=f"Number of files encoded concurrently. Default is {DEFAULT_THREAD_COUNT}.",
    )
    parser.add_argument(
        "--codec", default=DEFAULT_CODEC or None,
        help="Video codec, e.g. 'libx265'. Required unless --convert is used.",
    )
    parser.add_argument("--preset", default=DEFAULT_PRESET, help="Encoder preset, e.g. 'fast'.")
    parser.add_argument(
        "--output-pattern", default=DEFAULT_OUTPUT_PATTERN or None,
        help="Pattern for output file paths. Use {{dir}}, {{name}} and {{ext}} placeholders.",
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument("-d", "--directory", help="Directory containing files to process.")
    source.add_argument("-f", "--file", help="Path to a file containing a list of input files.")

    parser.add_argument("--overwrite", action="store_true", help="Overwrite output files if they already exist.")
    parser.add_argument("--verbose", action="store_true", help="Show ffmpeg output while encoding.")
    parser.add_argument("--delete", action="store_true", help="Delete the source file after a successful encode.")
    parser.add_argument(
        "--convert", action="store_true",
        help="Conversion mode: write <dir>/<name>.<format>, ignoring --output-pattern.",
    )
    parser.add_argument("--format", dest="target_format", default="", help="Target container for --convert, e.g. 'mkv'.")
    parser.add_argument(
        "--ffmpeg", default=None,
        help="ffmpeg executable. Defaults to config.user.yaml's ffmpeg_dir, then PATH.",
    )
    parser.add_argument(
        "--count-all-progress", action="store_true",
        help="Advance the progress bar for every finished file, not only successful ones.",
    )
    parser.add_argument(
        "--interrupt-exit-code", type=int, default=DEFAULT_INTERRUPT_EXIT_CODE,
        help=f"Exit status after Ctrl+C. Default is {DEFAULT_INTERRUPT_EXIT_CODE}.",
    )
    parser.add_argument("--report", default=None, help="Write a YAML summary of the run to this path.")
    parser.add_argument("--error-log-dir", default=None, help="Directory for a plain-text log of failed encodes.")
    parser.add_argument(
        "--log-level", type=str.upper, default="INFO",
        choices=["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR"],
        help="Set the logging level.",
    )
    return parser


def split_passthrough(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Splits argv at the first '--' into (own arguments, ffmpeg arguments)."""
    argv = list(argv)
    if "--" in argv:
        index = argv.index("--")
        return argv[:index], argv[index + 1:]
    return argv, []


def get_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments.

    Args:
        argv: Arguments without the program name. Defaults to `sys.argv[1:]`.

    Returns:
        argparse.Namespace: The parsed arguments, with the pass-through ffmpeg
                            arguments in `encoder_args`.
    """
    own, passthrough = split_passthrough(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(own)
    args.encoder_args = passthrough
    return args


def build_configuration(args: argparse.Namespace) -> Configuration:
    """
    Converts parsed arguments into a validated `Configuration`.

    Raises:
        ConfigurationException: If the combination of arguments is invalid.
    """
    progress_outcomes = (
        frozenset(JobOutcome) if args.count_all_progress else frozenset({JobOutcome.SUCCEEDED})
    )
    config = Configuration(
        thread_count=args.threads,
        codec=args.codec or "",
        preset=args.preset or "",
        encoder_args=tuple(args.encoder_args),
        output_pattern=args.output_pattern or "",
        overwrite=args.overwrite,
        verbose=args.verbose,
        delete_source=args.delete,
        convert=args.convert,
        target_format=args.target_format or "",
        input_directory=args.directory,
        input_file_list=args.file,
        ffmpeg_path=args.ffmpeg or resolve_ffmpeg_executable(MODULE_PATH),
        progress_outcomes=progress_outcomes,
        interrupt_exit_code=args.interrupt_exit_code,
    )
    return config.validate(require_input_source=True)
