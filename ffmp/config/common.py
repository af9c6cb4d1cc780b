"""
Common configuration settings used throughout the application.

This module contains globally shared configuration settings and constants used
across FFMP. It centralizes parameters for logging, external tool lookup and the
default values of a run. It also handles the loading of user-specific settings
from an external YAML file, allowing customization without modifying the source.
"""
from pathlib import Path

import yaml
from loguru import logger

# --- User-Defined Configuration ---
# This block loads user-specific settings from a 'config.user.yaml' file located
# at the project root. A typical file looks like:
#
#   paths:
#     ffmpeg_dir: /opt/ffmpeg/bin
#   defaults:
#     threads: 4
#     codec: libx265
#     preset: medium
#     output_pattern: "{{dir}}/{{name}}_x265{{ext}}"
#     interrupt_exit_code: 130

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"

# The directory containing the ffmpeg executable. If None, the executable is
# looked up on the system PATH.
MODULE_PATH: Path | None = None

# Values from the 'defaults' section, used as argparse defaults by the CLI.
USER_DEFAULTS: dict = {}


def load_user_config(config_path: Path) -> tuple[Path | None, dict]:
    """
    Reads the 'paths' and 'defaults' sections from a user YAML file.

    Args:
        config_path: Location of the YAML file.

    Returns:
        A tuple of (ffmpeg directory or None, defaults dictionary). Both are empty
        when the file is missing or cannot be parsed.
    """
    if not config_path.is_file():
        logger.debug(f"User config '{config_path}' not found. Relying on built-in defaults.")
        return None, {}
    try:
        with config_path.open("r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load or parse '{config_path}': {e}")
        return None, {}

    if not isinstance(user_config, dict):
        logger.warning(f"Ignoring '{config_path}': top level must be a mapping.")
        return None, {}

    paths_config = user_config.get("paths") or {}
    if not isinstance(paths_config, dict):
        logger.warning(f"Ignoring 'paths' in '{config_path}': expected a mapping.")
        paths_config = {}
    ffmpeg_dir_str = paths_config.get("ffmpeg_dir")
    defaults = user_config.get("defaults") or {}
    if not isinstance(defaults, dict):
        logger.warning(f"Ignoring 'defaults' in '{config_path}': expected a mapping.")
        defaults = {}
    return (Path(ffmpeg_dir_str) if ffmpeg_dir_str else None), defaults


def int_setting(defaults: dict, key: str, fallback: int) -> int:
    """Reads an integer from the user defaults, falling back when the value is not one."""
    value = defaults.get(key, fallback)
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring defaults.{key}={value!r} in user config: expected an integer.")
        return fallback


MODULE_PATH, USER_DEFAULTS = load_user_config(USER_CONFIG_PATH)


# --- Logging Configuration ---

# The format string for the Loguru logger. The thread name is included because
# encoder jobs run on pool threads and their log lines interleave.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{thread.name} - <level>{message}</level>"
)

# Number of trailing stderr lines kept per job for failure diagnostics.
STDERR_TAIL_LINES = 50

# Filename of the plain-text error log written into `--error-log-dir`.
DEFAULT_ERROR_LOG_FILENAME = "error.txt"


# --- Process Exit Codes ---

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1


# --- Job Outcome Names ---
# String values of `JobOutcome`, also used as keys in the YAML run report.

JOB_OUTCOME_SUCCEEDED = "succeeded"
JOB_OUTCOME_FAILED = "failed"
JOB_OUTCOME_SKIPPED = "skipped"
JOB_OUTCOME_KILLED = "killed"
