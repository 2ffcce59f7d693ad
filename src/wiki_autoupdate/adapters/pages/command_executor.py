"""Page execution and validation through external commands."""

import asyncio
import time
from pathlib import Path
from typing import Optional

from wiki_autoupdate.core import PageExecutor, PageUpdate, RunResult, RunStatus

ERROR_LIMIT = 300


async def run_command(
    args: list[str],
    working_dir: Optional[Path] = None,
    timeout_seconds: float = 30 * 60,
    verbose: bool = False,
) -> None:
    """Run a command to completion.

    Output is inherited in verbose mode and captured otherwise.

    Raises:
        TimeoutError: if the command runs longer than ``timeout_seconds``
        RuntimeError: if the command exits with a non-zero code
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=str(working_dir) if working_dir else None,
        stdout=None if verbose else asyncio.subprocess.PIPE,
        stderr=None if verbose else asyncio.subprocess.PIPE,
    )
    try:
        _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise TimeoutError(f"Timed out after {timeout_seconds:.0f}s")

    if process.returncode != 0:
        detail = stderr.decode("utf-8", errors="replace").strip() if stderr else ""
        raise RuntimeError(f"Exit code {process.returncode}: {detail}".strip())


class CommandPageExecutor(PageExecutor):
    """Run ``<command> <page_id> --tier <tier> --apply [--directions ...]`` per page."""

    def __init__(
        self,
        command: list[str],
        working_dir: Optional[Path] = None,
        timeout_seconds: float = 30 * 60,
        verbose: bool = False,
    ) -> None:
        if not command:
            raise ValueError("Execution command cannot be empty")
        self.command = list(command)
        self.working_dir = working_dir
        self.timeout_seconds = timeout_seconds
        self.verbose = verbose

    def build_args(self, update: PageUpdate) -> list[str]:
        args = [*self.command, update.page_id, "--tier", update.suggested_tier.value, "--apply"]
        if update.directions:
            args.extend(["--directions", update.directions])
        return args

    async def execute(self, update: PageUpdate) -> RunResult:
        """Run the command; any failure is captured in the result."""
        start = time.monotonic()
        args = self.build_args(update)
        if self.verbose:
            print(f"    Running: {' '.join(args[:4])} ... --tier {update.suggested_tier.value}")

        try:
            await run_command(args, self.working_dir, self.timeout_seconds, self.verbose)
        except Exception as e:
            return RunResult(
                page_id=update.page_id,
                status=RunStatus.FAILED,
                tier=update.suggested_tier,
                error=str(e)[:ERROR_LIMIT],
                duration_ms=int((time.monotonic() - start) * 1000),
            )

        return RunResult(
            page_id=update.page_id,
            status=RunStatus.SUCCESS,
            tier=update.suggested_tier,
            duration_ms=int((time.monotonic() - start) * 1000),
        )


class CommandValidator:
    """Run the content validation (and auto-fix) command after page updates."""

    def __init__(
        self,
        command: list[str],
        working_dir: Optional[Path] = None,
        timeout_seconds: float = 10 * 60,
        verbose: bool = False,
    ) -> None:
        if not command:
            raise ValueError("Validation command cannot be empty")
        self.command = list(command)
        self.working_dir = working_dir
        self.timeout_seconds = timeout_seconds
        self.verbose = verbose
        self.last_error: Optional[str] = None

    async def validate(self) -> bool:
        """True if validation passed; failures are kept in ``last_error``."""
        self.last_error = None
        try:
            await run_command(self.command, self.working_dir, self.timeout_seconds, self.verbose)
        except Exception as e:
            self.last_error = str(e)[:ERROR_LIMIT]
            return False
        return True
