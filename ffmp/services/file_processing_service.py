"""
Discovery of the input files for a run.

Inputs come from exactly one of two sources:
- a directory, whose direct children with a known video extension are taken in
  sorted order;
- a list file, one path per line, taken in file order. Blank lines and lines
  starting with '#' are ignored.

The result is a plain list of path strings that the orchestrator treats as fixed.
"""
from pathlib import Path
from typing import Iterable, List, Optional

from loguru import logger

from ..config.video import VIDEO_EXTENSIONS
from ..domain.exceptions import InputDiscoveryException


def collect_input_files(
    directory: Optional[str] = None,
    list_file: Optional[str] = None,
    extensions: Iterable[str] = VIDEO_EXTENSIONS,
) -> List[str]:
    """
    Produces the ordered list of input files.

    Args:
        directory: Directory to scan (non-recursive).
        list_file: Text file listing input paths.
        extensions: Allowed extensions for directory mode, compared case-insensitively.

    Raises:
        InputDiscoveryException: When neither or both sources are given, or the
                                 given source does not exist or cannot be read.
    """
    if bool(directory) == bool(list_file):
        raise InputDiscoveryException("Specify exactly one of an input directory or an input list file.")
    if directory:
        return _files_in_directory(Path(directory), extensions)
    return _files_in_list(Path(list_file))


def _files_in_directory(directory: Path, extensions: Iterable[str]) -> List[str]:
    if not directory.is_dir():
        raise InputDiscoveryException(f"Input directory does not exist: {directory}")
    allowed = {ext.lower() for ext in extensions}
    try:
        files = sorted(
            p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in allowed
        )
    except OSError as e:
        raise InputDiscoveryException(f"Could not scan {directory}: {e}") from e
    logger.debug(f"Found {len(files)} media file(s) in {directory}")
    return [str(p) for p in files]


def _files_in_list(list_file: Path) -> List[str]:
    if not list_file.is_file():
        raise InputDiscoveryException(f"Input list file does not exist: {list_file}")
    try:
        with list_file.open("r", encoding="utf-8") as f:
            lines = [line.strip() for line in f]
    except (OSError, UnicodeDecodeError) as e:
        raise InputDiscoveryException(f"Could not read {list_file}: {e}") from e
    files = [line for line in lines if line and not line.startswith("#")]
    logger.debug(f"Read {len(files)} input path(s) from {list_file}")
    return files
