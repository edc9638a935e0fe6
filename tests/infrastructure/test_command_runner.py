"""Tests for the async subprocess runner."""

import sys

import pytest

from shipyard.domain.errors import CommandError
from shipyard.infrastructure.adapters.command_runner import CommandResult, CommandRunner

PY = sys.executable


class TestCommandRunner:
    @pytest.mark.asyncio
    async def test_captures_stdout(self):
        result = await CommandRunner().run([PY, "-c", "print('hello')"])

        assert result.ok
        assert result.stdout.strip() == "hello"
        assert result.argv[0] == PY

    @pytest.mark.asyncio
    async def test_non_zero_exit_raises(self):
        with pytest.raises(CommandError) as exc_info:
            await CommandRunner().run(
                [PY, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"]
            )

        assert exc_info.value.returncode == 3
        assert exc_info.value.stderr == "bad"
        assert "exited with code 3: bad" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_check_false_returns_result(self):
        result = await CommandRunner().run([PY, "-c", "import sys; sys.exit(1)"], check=False)
        assert result.returncode == 1
        assert not result.ok

    @pytest.mark.asyncio
    async def test_stdin_input(self):
        result = await CommandRunner().run(
            [PY, "-c", "import sys; print(sys.stdin.read().upper())"], input="secret"
        )
        assert result.stdout.strip() == "SECRET"

    @pytest.mark.asyncio
    async def test_environment_merged(self):
        runner = CommandRunner(env={"SHIPYARD_TEST_A": "a"})
        result = await runner.run(
            [PY, "-c", "import os; print(os.environ['SHIPYARD_TEST_A'] + os.environ['SHIPYARD_TEST_B'])"],
            env={"SHIPYARD_TEST_B": "b"},
        )
        assert result.stdout.strip() == "ab"

    @pytest.mark.asyncio
    async def test_cwd(self, tmp_path):
        result = await CommandRunner().run([PY, "-c", "import os; print(os.getcwd())"], cwd=tmp_path)
        assert result.stdout.strip() == str(tmp_path.resolve())

    @pytest.mark.asyncio
    async def test_missing_binary(self):
        with pytest.raises(CommandError, match="not found"):
            await CommandRunner().run(["definitely-not-a-real-tool-xyz"])

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self):
        with pytest.raises(CommandError, match="timed out"):
            await CommandRunner().run([PY, "-c", "import time; time.sleep(30)"], timeout=0.5)

    def test_which(self):
        assert CommandRunner().which("definitely-not-a-real-tool-xyz") is None


class TestCommandResult:
    def test_ok(self):
        assert CommandResult(("x",), 0).ok
        assert not CommandResult(("x",), 2).ok
