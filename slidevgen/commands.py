from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Protocol, Sequence, Union


PathLike = Union[str, Path]


class CommandError(RuntimeError):
    """
    A command ran but exited with a non-zero status.
    """

    def __init__(self, args: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"Command failed: {' '.join(self.args_list)}: {detail}")


class CommandNotFound(CommandError):
    """
    The executable could not be found on PATH.
    """

    def __init__(self, args: Sequence[str]) -> None:
        super().__init__(args, 127, f"{args[0]}: command not found")


class CommandRunner(Protocol):
    """
    The narrow capability the analyzer and generator use to shell out.

    Test code swaps in a fake implementation so no real subprocess runs.
    """

    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: Optional[PathLike] = None,
        capture_output: bool = True,
    ) -> str:
        ...


class SubprocessRunner:
    """
    Run commands with asyncio subprocesses.

    `timeout` is in seconds; None waits forever.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: Optional[PathLike] = None,
        capture_output: bool = True,
    ) -> str:
        pipe = asyncio.subprocess.PIPE if capture_output else None
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(cwd) if cwd is not None else None,
                stdout=pipe,
                stderr=pipe,
            )
        except FileNotFoundError as e:
            raise CommandNotFound(args) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise CommandError(args, -1, f"timed out after {self.timeout}s") from None

        out = (stdout or b"").decode("utf-8", errors="replace")
        err = (stderr or b"").decode("utf-8", errors="replace")
        if proc.returncode != 0:
            raise CommandError(args, proc.returncode, err)
        return out
