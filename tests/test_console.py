import io

from ffmp.services.console import ProgressPrinter
from ffmp.services.progress import ProgressAggregator


def test_printer_redraws_one_line_per_update() -> None:
    stream = io.StringIO()
    printer = ProgressPrinter(stream=stream, width=4)
    progress = ProgressAggregator(2)
    progress.subscribe(printer.update)

    progress.report()
    progress.report()
    printer.close()

    assert stream.getvalue() == "\r[##  ]  50.0% (1/2)\r[####] 100.0% (2/2)\n"


def test_close_without_updates_writes_nothing() -> None:
    stream = io.StringIO()

    ProgressPrinter(stream=stream).close()

    assert stream.getvalue() == ""
