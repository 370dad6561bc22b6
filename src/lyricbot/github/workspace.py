"""Git operations on the checked-out target repository.

Submission files are written under the workspace root, committed on a
per-issue branch and pushed so a pull request can be opened from it.
The base branch is checked out again afterwards, so the next issue of
the pass starts from a clean tree.
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, List

logger = logging.getLogger(__name__)

GIT_COMMAND_TIMEOUT_SECONDS = 120


class GitCommandError(Exception):
    """Raised when a git command fails or times out."""

    def __init__(self, command: List[str], returncode: int, stderr: str):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"git {' '.join(command)} failed with code {returncode}: {stderr}"
        )


class GitWorkspace:
    """Runs git commands inside the workspace root.

    Attributes:
        root: Checkout of the target repository.
        remote: Remote that branches are pushed to.
        timeout_seconds: Limit for each git command.
    """

    def __init__(
        self,
        root: Path,
        remote: str = "origin",
        timeout_seconds: int = GIT_COMMAND_TIMEOUT_SECONDS,
    ):
        self.root = root
        self.remote = remote
        self.timeout_seconds = timeout_seconds

    async def commit_files_on_branch(
        self,
        branch: str,
        base_branch: str,
        files: Dict[str, str],
        message: str,
    ) -> None:
        """Commit files on a fresh branch cut from the base branch and push it.

        The branch is recreated from the base branch if it already exists
        locally, and force-pushed, so a retried issue replaces a stale
        branch left behind by an earlier failed pass.

        Args:
            branch: Branch to create.
            base_branch: Branch to start from and return to.
            files: Mapping of workspace-relative path to content.
            message: Commit message.

        Raises:
            GitCommandError: If any git command fails.
            OSError: If a file cannot be written.
        """
        await self._run("checkout", "-B", branch, base_branch)
        try:
            paths = self._write_files(files)
            await self._run("add", "--", *paths)
            await self._run("commit", "-m", message)
            await self._run("push", "--force", self.remote, f"{branch}:{branch}")
        finally:
            await self._restore(base_branch)

        logger.info(
            "Pushed submission branch",
            extra={"branch": branch, "files": sorted(files)},
        )

    def _write_files(self, files: Dict[str, str]) -> List[str]:
        paths = []
        for relative_path, content in files.items():
            target = self.root / relative_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            paths.append(relative_path)
        return paths

    async def _restore(self, base_branch: str) -> None:
        """Return to the base branch, discarding uncommitted changes."""
        try:
            await self._run("checkout", "--force", base_branch)
        except GitCommandError:
            logger.exception(
                "Failed to restore base branch",
                extra={"base_branch": base_branch},
            )

    async def _run(self, *args: str) -> str:
        """Run one git command in the workspace root.

        Returns:
            The command's standard output.

        Raises:
            GitCommandError: On non-zero exit, timeout, or missing git.
        """
        command = list(args)
        try:
            process = await asyncio.create_subprocess_exec(
                "git",
                *command,
                cwd=str(self.root),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise GitCommandError(
                command, -1, f"timed out after {self.timeout_seconds}s"
            ) from exc
        except OSError as exc:
            raise GitCommandError(command, -1, f"failed to execute git: {exc}") from exc

        if process.returncode != 0:
            raise GitCommandError(
                command, process.returncode, stderr.decode(errors="replace").strip()
            )

        logger.debug("git command succeeded", extra={"command": command})
        return stdout.decode(errors="replace")
