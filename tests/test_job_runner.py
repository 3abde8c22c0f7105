import asyncio

import pytest

from ffhls.core.job_runner import JobRunner, JobState, JobStatus
from ffhls.io.source_cleanup import SourceCleanup
from ffhls.quality.catalog import DEFAULT_CATALOG
from ffhls.utils.exceptions import EncodeError

PROFILE_360 = next(q for q in DEFAULT_CATALOG if q.name == "360")


def _run(runner, tmp_path, state=None):
    return asyncio.run(runner.run(tmp_path / "sample.mp4", PROFILE_360, tmp_path, 60.0, state))


def test_progress_is_monotonic_integer_and_ends_at_100(tmp_path, encoder_factory):
    events = []
    encoder = encoder_factory(steps={"360": [10.7, 5.0, 42.2, 42.9, 130.0, 99.0]})
    runner = JobRunner(encoder, progress_callback=lambda q, p: events.append((q, p)))

    _run(runner, tmp_path)

    percents = [p for _, p in events]
    assert {q for q, _ in events} == {"360"}
    assert percents == [0, 10, 42, 100]
    assert all(isinstance(p, int) for p in percents)


def test_final_100_is_emitted_when_encoder_stops_short(tmp_path, encoder_factory):
    events = []
    runner = JobRunner(encoder_factory(steps={"360": [20, 97.5]}),
                       progress_callback=lambda q, p: events.append(p))

    result = _run(runner, tmp_path)

    assert events == [0, 20, 97, 100]
    assert result.quality == "360"
    assert result.manifest_path == tmp_path / "360p.m3u8"
    assert result.peak_memory_mb == 12.5


def test_state_transitions(tmp_path, encoder_factory):
    state = JobState(quality="360")
    assert state.status is JobStatus.PENDING

    _run(JobRunner(encoder_factory()), tmp_path, state)

    assert state.status is JobStatus.DONE
    assert state.percent == 100


def test_failure_raises_encode_error_and_keeps_segments(tmp_path, encoder_factory):
    state = JobState(quality="360")
    events = []
    encoder = encoder_factory(steps={"360": [30]}, failures={"360": "boom"})
    runner = JobRunner(encoder, progress_callback=lambda q, p: events.append(p))

    with pytest.raises(EncodeError) as exc_info:
        _run(runner, tmp_path, state)

    assert exc_info.value.quality == "360"
    assert "boom" in str(exc_info.value.cause)
    assert state.status is JobStatus.FAILED
    assert events == [0, 30]
    assert (tmp_path / "360p_000.ts").exists()


def test_success_schedules_cleanup(tmp_path, encoder_factory):
    cleanup = SourceCleanup(tmp_path / "sample.mp4")
    _run(JobRunner(encoder_factory(), cleanup=cleanup), tmp_path)
    assert cleanup.requested_by == ["360"]


def test_failure_does_not_schedule_cleanup(tmp_path, encoder_factory):
    cleanup = SourceCleanup(tmp_path / "sample.mp4")
    runner = JobRunner(encoder_factory(failures={"360": "boom"}), cleanup=cleanup)
    with pytest.raises(EncodeError):
        _run(runner, tmp_path)
    assert not cleanup.scheduled
