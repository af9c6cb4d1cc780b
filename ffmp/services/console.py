"""Console rendering of the aggregated progress."""
import sys
import threading
from typing import Optional, TextIO

from ..utils.format_utils import PROGRESS_BAR_WIDTH, render_progress_bar


class ProgressPrinter:
    """
    Redraws a single progress bar line on a text stream.

    Subscribe `update` to a `ProgressAggregator`; call `close()` at the end of the
    run to terminate the line.
    """

    def __init__(self, stream: Optional[TextIO] = None, width: int = PROGRESS_BAR_WIDTH):
        self.stream = stream if stream is not None else sys.stderr
        self.width = width
        self._lock = threading.Lock()
        self._drawn = False

    def update(self, completed: float, total: int) -> None:
        with self._lock:
            self.stream.write("\r" + render_progress_bar(completed, total, self.width))
            self.stream.flush()
            self._drawn = True

    def close(self) -> None:
        with self._lock:
            if self._drawn:
                self.stream.write("\n")
                self.stream.flush()
                self._drawn = False
