"""Tests for SQLite run history."""

import pytest

from shipyard.domain.entities.pipeline_run import PhaseResult, PipelineRun, StageResult
from shipyard.domain.value_objects.build_id import BuildId
from shipyard.infrastructure.repositories.sqlite_run_repository import SQLiteRunRepository


@pytest.fixture
def repo(tmp_path):
    r = SQLiteRunRepository(str(tmp_path / "test.db"))
    r.connect()
    yield r
    r.close()


def _finished_run(build_id: int, fail: bool = False) -> PipelineRun:
    run = PipelineRun.start(BuildId(build_id), {"APP_NAME": "web"}, ("build", "deploy"))
    if fail:
        run = run.record(StageResult.failure("build", "exit 1")).record(StageResult.skip("deploy"))
    else:
        run = run.record(StageResult.success("build", "ok", 1.5)).record(
            StageResult.success("deploy", "rolled out", 3.0)
        )
    return run.record_phase(PhaseResult("always", "cleaned")).finish()


class TestBuildIds:
    def test_monotonic(self, repo):
        assert repo.next_build_id() == BuildId(1)
        assert repo.next_build_id() == BuildId(2)

    def test_continues_after_saved_runs(self, tmp_path):
        repo = SQLiteRunRepository(str(tmp_path / "seeded.db"))
        repo.connect()
        # a run saved before any id was issued seeds the counter
        repo.save(_finished_run(10))
        assert repo.next_build_id() == BuildId(11)
        repo.close()

    def test_persists_across_connections(self, tmp_path):
        path = str(tmp_path / "persist.db")
        first = SQLiteRunRepository(path)
        first.next_build_id()
        first.close()

        second = SQLiteRunRepository(path)
        assert second.next_build_id() == BuildId(2)
        second.close()

    def test_skips_ids_saved_explicitly(self, repo):
        repo.save(_finished_run(repo.next_build_id().value))
        repo.save(_finished_run(2, fail=True))

        assert repo.next_build_id() == BuildId(3)
        assert repo.get(BuildId(2))["outcome"] == "failure"

    def test_never_goes_backwards(self, repo):
        repo.save(_finished_run(7))
        repo.save(_finished_run(4))

        assert repo.next_build_id() == BuildId(8)


class TestRuns:
    def test_save_and_get(self, repo):
        repo.save(_finished_run(1))

        run = repo.get(BuildId(1))

        assert run["outcome"] == "success"
        assert run["environment"] == {"APP_NAME": "web"}
        assert [r["stage"] for r in run["results"]] == ["build", "deploy"]
        assert run["results"][0]["elapsed_seconds"] == 1.5
        assert run["phases"] == [{"phase": "always", "output": "cleaned", "ok": True}]

    def test_failed_run(self, repo):
        repo.save(_finished_run(2, fail=True))

        run = repo.get(BuildId(2))

        assert run["outcome"] == "failure"
        assert run["results"][0]["error"] == "exit 1"
        assert run["results"][1]["status"] == "skipped"

    def test_get_missing(self, repo):
        assert repo.get(BuildId(99)) is None

    def test_unfinished_run_rejected(self, repo):
        run = PipelineRun.start(BuildId(1), {}, ("build",))
        with pytest.raises(ValueError, match="finished"):
            repo.save(run)

    def test_recorded_run_is_not_replaced(self, repo):
        repo.save(_finished_run(3, fail=True))

        with pytest.raises(ValueError, match="already recorded"):
            repo.save(_finished_run(3))

        run = repo.get(BuildId(3))
        assert run["outcome"] == "failure"
        assert [r["status"] for r in run["results"]] == ["failed", "skipped"]

    def test_list_runs_newest_first(self, repo):
        for build_id in (1, 2, 3):
            repo.save(_finished_run(build_id))

        runs = repo.list_runs(limit=2)

        assert [r["build_id"] for r in runs] == [3, 2]
