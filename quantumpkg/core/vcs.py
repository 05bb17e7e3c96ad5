"""Git capability used by the git fetch variant.

The resolver only needs two operations, so they sit behind the small
:class:`GitClient` protocol. :class:`SubprocessGitClient` is the production
implementation and shells out to ``git``; tests substitute their own.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from quantumpkg.exceptions import FetchError
from quantumpkg.utils.logger import get_logger

logger = get_logger("vcs")

__all__ = ["GitClient", "SubprocessGitClient"]


class GitClient(Protocol):
    """Clone and check out git repositories."""

    async def clone(self, url: str, branch: Optional[str], destination: Path) -> None:
        """Clone ``url`` into ``destination``, restricted to ``branch`` if given."""
        ...

    async def checkout_revision(self, destination: Path, rev: str) -> None:
        """Check out ``rev`` inside an existing clone."""
        ...


class SubprocessGitClient:
    """:class:`GitClient` backed by the ``git`` executable.

    Args:
        executable: Name or path of the git binary.
        timeout: Seconds to wait for each git command; ``None`` waits forever.
    """

    def __init__(self, executable: str = "git", *, timeout: Optional[float] = None) -> None:
        self.executable = executable
        self.timeout = timeout

    async def clone(self, url: str, branch: Optional[str], destination: Path) -> None:
        args: List[str] = ["clone"]
        if branch:
            args += ["--branch", branch]
        args += [url, str(destination)]

        logger.info("Cloning %s%s", url, f" (branch {branch})" if branch else "")
        await self._run(args, step="git clone", source=url)

    async def checkout_revision(self, destination: Path, rev: str) -> None:
        logger.info("Checking out %s in %s", rev, destination)
        await self._run(
            ["-C", str(destination), "checkout", rev],
            step="git checkout",
            source=str(destination),
        )

    async def _run(self, args: Sequence[str], *, step: str, source: str) -> None:
        """Run one git command, raising :class:`FetchError` on failure."""
        try:
            proc = await asyncio.create_subprocess_exec(
                self.executable,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise FetchError(
                f"Failed to execute {step}: {exc}",
                step=step,
                source=source,
            ) from exc

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            await _terminate(proc)
            raise FetchError(
                f"{step} timed out after {self.timeout}s",
                step=step,
                source=source,
            ) from exc
        except BaseException:
            # Cancellation (Ctrl+C under asyncio.run) must not leave git running
            await _terminate(proc)
            raise

        if proc.returncode != 0:
            raise FetchError(
                f"{step} failed with exit code {proc.returncode}",
                step=step,
                source=source,
                output=stderr.decode(errors="replace"),
            )


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await asyncio.shield(proc.wait())
