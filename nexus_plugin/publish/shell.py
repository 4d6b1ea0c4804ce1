"""External process runner for the gh and docker CLIs.

Commands are always argv lists (never a shell string) and every call carries
its own timeout.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from pydantic import BaseModel

from nexus_plugin.exceptions import CommandError

logger = logging.getLogger(__name__)


class CommandOutcome(BaseModel):
    ok: bool
    output: str          # stripped stdout on success, stderr (or reason) on failure


class CommandRunner:
    """Runs a command and returns its stripped stdout."""

    def __init__(self, timeout: float = 60.0):
        self._timeout = timeout

    async def run(self, args: list[str], timeout: Optional[float] = None) -> str:
        """Run ``args``; raise CommandError on non-zero exit, timeout or missing binary."""
        timeout = self._timeout if timeout is None else timeout
        logger.debug("Running: %s", " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise CommandError(args, returncode=127, stderr=str(exc)) from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise CommandError(args, stderr=f"timed out after {timeout}s")

        if proc.returncode != 0:
            raise CommandError(
                args,
                returncode=proc.returncode,
                stderr=stderr.decode(errors="replace"),
            )
        return stdout.decode(errors="replace").strip()

    async def try_run(self, args: list[str], timeout: Optional[float] = None) -> CommandOutcome:
        """Like :meth:`run` but reports failure instead of raising."""
        try:
            return CommandOutcome(ok=True, output=await self.run(args, timeout=timeout))
        except CommandError as exc:
            logger.debug("Command failed (tolerated): %s", exc)
            return CommandOutcome(ok=False, output=exc.stderr)
