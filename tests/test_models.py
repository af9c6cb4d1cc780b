import pytest

from ffmp.domain.exceptions import ConfigurationException
from ffmp.domain.models import Configuration, Job, JobOutcome, JobResult, JobState, OverallResult


def test_configuration_defaults() -> None:
    config = Configuration()

    assert config.thread_count == 2
    assert config.overwrite is False
    assert config.progress_outcomes == frozenset({JobOutcome.SUCCEEDED})


def test_configuration_is_immutable() -> None:
    config = Configuration(codec="libx265", output_pattern="{{name}}.mkv")

    with pytest.raises(AttributeError):
        config.codec = "libx264"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"thread_count": 0, "codec": "c", "output_pattern": "p"},
        {"codec": "", "output_pattern": "p"},
        {"codec": "c", "output_pattern": ""},
        {"convert": True, "target_format": "."},
        {"codec": "c", "output_pattern": "p", "ffmpeg_path": ""},
        {"codec": "c", "output_pattern": "p", "progress_outcomes": frozenset({"done"})},
    ],
)
def test_configuration_validation(kwargs) -> None:
    with pytest.raises(ConfigurationException):
        Configuration(**kwargs).validate()


def test_input_source_is_required_only_on_request() -> None:
    config = Configuration(codec="c", output_pattern="p")

    assert config.validate() is config
    with pytest.raises(ConfigurationException):
        config.validate(require_input_source=True)
    with pytest.raises(ConfigurationException):
        Configuration(codec="c", output_pattern="p", input_directory="d", input_file_list="f").validate(
            require_input_source=True
        )


def test_job_state_machine() -> None:
    job = Job(index=0, input_path="a.mp4")

    job.transition(JobState.DISPATCHED)
    job.transition(JobState.RUNNING)
    job.transition(JobState.SUCCEEDED)

    assert job.state.is_terminal
    with pytest.raises(RuntimeError):
        job.transition(JobState.FAILED)


def test_overall_result_counts() -> None:
    results = [
        JobResult("a", "a.out", JobOutcome.SUCCEEDED),
        JobResult("b", "b.out", JobOutcome.SKIPPED),
        JobResult("c", "c.out", JobOutcome.SKIPPED),
    ]

    overall = OverallResult.from_results(3, results)

    assert (overall.succeeded, overall.skipped, overall.failed, overall.killed) == (1, 2, 0, 0)
    assert overall.ok
    assert OverallResult.empty().counts == {outcome: 0 for outcome in JobOutcome}
