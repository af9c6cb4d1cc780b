"""
This module contains helper functions for formatting data into human-readable strings.
These are used in log messages and in the console progress bar.
"""

from datetime import timedelta

PROGRESS_BAR_WIDTH = 40


def format_timedelta(td_object: timedelta) -> str:
    """
    Formats a timedelta object into a "HH:MM:SS" string.

    Args:
        td_object: The timedelta object to format.

    Returns:
        A string in HH:MM:SS format, e.g. 7261 seconds becomes "02:01:01".
        Returns "00:00:00" if the input is not a timedelta.
    """
    if not isinstance(td_object, timedelta):
        return "00:00:00"

    total_seconds = int(td_object.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


def formatted_size(size_bytes: int) -> str:
    """
    Converts a size in bytes to a human-readable string (B, KB, MB, GB, TB, PB).

    Args:
        size_bytes: The size in bytes. Negative values are treated as zero.

    Returns:
        For example, 1536 becomes "1.50 KB" and 2097152 becomes "2.00 MB".
    """
    if size_bytes <= 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    factor = 1024.0
    size = float(size_bytes)
    for unit in units[:-1]:
        if size < factor:
            return f"{size:.2f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= factor
    return f"{size:.2f} {units[-1]}"


def render_progress_bar(completed: float, total: int, width: int = PROGRESS_BAR_WIDTH) -> str:
    """
    Renders a textual progress bar such as "[####    ]  50.0% (1/2)".

    A run with zero total jobs renders as complete.
    """
    width = max(1, width)
    ratio = 1.0 if total <= 0 else min(max(completed / total, 0.0), 1.0)
    filled = int(round(ratio * width))
    bar = "#" * filled + " " * (width - filled)
    completed_display = int(completed) if float(completed).is_integer() else round(completed, 2)
    return f"[{bar}] {ratio * 100:5.1f}% ({completed_display}/{total})"
