"""
Command Runner

Architectural Intent:
- Single place where external tools are spawned
- Async subprocess execution so a cancelled stage kills its child process
- Non-zero exit codes raise CommandError unless check=False

Security:
- argv lists only, never a shell string
"""

from __future__ import annotations
import asyncio
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

from shipyard.domain.errors import CommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    def __init__(self, env: Optional[Mapping[str, str]] = None) -> None:
        self._env = dict(env) if env is not None else None

    def which(self, tool: str) -> Optional[str]:
        return shutil.which(tool)

    async def run(
        self,
        argv: Sequence[str],
        input: Optional[str] = None,
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
        check: bool = True,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        merged_env = None
        if self._env is not None or env is not None:
            merged_env = {**os.environ, **(self._env or {}), **(env or {})}

        logger.debug("Running: %s", " ".join(argv))
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
        except FileNotFoundError as e:
            raise CommandError(argv, None, f"{argv[0]} not found") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(input.encode() if input is not None else None),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            self._kill(proc)
            await proc.wait()
            raise CommandError(argv, None, f"timed out after {timeout}s")
        except asyncio.CancelledError:
            self._kill(proc)
            raise

        result = CommandResult(
            argv=tuple(argv),
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode(errors="replace") if stdout else "",
            stderr=stderr.decode(errors="replace") if stderr else "",
        )
        if check and not result.ok:
            raise CommandError(argv, result.returncode, result.stderr, result.stdout)
        return result

    @staticmethod
    def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
