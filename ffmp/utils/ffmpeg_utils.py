"""
Helpers for building ffmpeg invocations.

Commands are always kept as argument vectors and handed to the process runner
as such; a joined string is only ever produced for logging.
"""
import os
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from ..config.video import FFMPEG_EXECUTABLE_NAME, QUIET_LOGLEVEL_ARGS
from ..domain.models import Configuration


def resolve_ffmpeg_executable(module_path: Optional[Path] = None) -> str:
    """
    Determines the ffmpeg executable to invoke.

    Args:
        module_path: Directory configured in 'config.user.yaml' (`paths.ffmpeg_dir`).
                     When it contains an ffmpeg binary, that binary is used.

    Returns:
        An absolute path when one could be resolved, otherwise the bare name
        'ffmpeg', leaving the lookup to the OS at launch time.
    """
    if module_path:
        exe_name = FFMPEG_EXECUTABLE_NAME + (".exe" if os.name == "nt" else "")
        candidate = Path(module_path) / exe_name
        if candidate.is_file():
            return str(candidate)
        logger.warning(f"No {exe_name} found in configured ffmpeg_dir '{module_path}'. Falling back to PATH.")
    found = shutil.which(FFMPEG_EXECUTABLE_NAME)
    return found or FFMPEG_EXECUTABLE_NAME


def build_encoder_args(config: Configuration, input_path: str, output_path: str) -> List[str]:
    """
    Builds the ffmpeg argument vector for one job (without the executable).

    The layout is:
        [-loglevel error] -y|-n -i <input> [-c:v <codec>] [-preset <preset>] [raw args...] <output>

    `-loglevel error` is only added in quiet mode. `-y` is used when overwriting and
    `-n` otherwise, so ffmpeg never stops to prompt on stdin.
    """
    args: List[str] = []
    if not config.verbose:
        args.extend(QUIET_LOGLEVEL_ARGS)
    args.append("-y" if config.overwrite else "-n")
    args.extend(["-i", str(input_path)])
    if config.codec:
        args.extend(["-c:v", config.codec])
    if config.preset:
        args.extend(["-preset", config.preset])
    args.extend(config.encoder_args)
    args.append(str(output_path))
    return args


def format_command(executable: str, args: Sequence[str]) -> str:
    """Renders a command for display, quoted the way the current platform's shell expects."""
    cmd_list = [str(executable), *map(str, args)]
    if os.name == "nt":
        return subprocess.list2cmdline(cmd_list)
    return shlex.join(cmd_list)
