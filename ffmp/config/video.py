"""
Configuration settings related to video processing.

Defines the extensions picked up when scanning an input directory and the
defaults of an encoding run.
"""
from .common import USER_DEFAULTS, int_setting

# --- Input Discovery ---
VIDEO_EXTENSIONS = (".mp4", ".mkv", ".avi")

# --- Run Defaults ---
DEFAULT_THREAD_COUNT = int_setting(USER_DEFAULTS, "threads", 2)
DEFAULT_CODEC = USER_DEFAULTS.get("codec", "")
DEFAULT_PRESET = USER_DEFAULTS.get("preset", "")
DEFAULT_OUTPUT_PATTERN = USER_DEFAULTS.get("output_pattern", "")

# Exit status used when the run is aborted by SIGINT/SIGTERM. 130 follows the
# shell convention of 128 + SIGINT.
DEFAULT_INTERRUPT_EXIT_CODE = int_setting(USER_DEFAULTS, "interrupt_exit_code", 130)

# --- Encoder ---
FFMPEG_EXECUTABLE_NAME = "ffmpeg"
QUIET_LOGLEVEL_ARGS = ("-loglevel", "error")
