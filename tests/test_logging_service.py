from pathlib import Path

from ffmp.domain.models import JobOutcome, JobResult, OverallResult
from ffmp.services.logging_service import ErrorLog, RunReport


def test_error_log_appends_entries(tmp_path: Path) -> None:
    log = ErrorLog(tmp_path / "errors")

    log.write("first failure", "detail")
    log.write("second failure")
    log.write()

    content = log.log_file_path.read_text(encoding="utf-8")
    assert log.log_file_path == (tmp_path / "errors" / "error.txt").resolve()
    assert content.count(ErrorLog.linesep_marker) == 2
    assert "first failure\ndetail\n" in content
    assert "second failure" in content


def test_run_report_writes_yaml_summary(tmp_path: Path) -> None:
    results = [
        JobResult("/v/a.mp4", "/v/a.mkv", JobOutcome.SUCCEEDED, exit_code=0, duration_seconds=1.23456),
        JobResult("/v/b.mp4", "/v/b.mkv", JobOutcome.FAILED, exit_code=1, error="boom"),
    ]
    overall = OverallResult.from_results(2, results)

    path = RunReport(tmp_path / "reports" / "run.yaml").write(overall, elapsed_seconds=2.5)
    document = RunReport.load(path)

    assert path == (tmp_path / "reports" / "run.yaml").resolve()
    assert document["total"] == 2
    assert document["elapsed_seconds"] == 2.5
    assert document["counts"] == {"succeeded": 1, "failed": 1, "skipped": 0, "killed": 0}
    assert document["jobs"][0] == {
        "input": "/v/a.mp4",
        "output": "/v/a.mkv",
        "outcome": "succeeded",
        "exit_code": 0,
        "error": None,
        "duration_seconds": 1.235,
    }


def test_run_report_into_directory_uses_generated_name(tmp_path: Path) -> None:
    path = RunReport(tmp_path / "reports").write(OverallResult.empty())

    assert path.parent == (tmp_path / "reports").resolve()
    assert path.name.startswith("report_") and path.suffix == ".yaml"
