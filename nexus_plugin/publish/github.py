"""Thin async wrapper over the ``gh`` CLI for registry operations."""

from __future__ import annotations

import base64
import logging
import re
from typing import Optional

import yaml

from nexus_plugin.publish.shell import CommandRunner
from nexus_plugin.types import ExistingEntry

logger = logging.getLogger(__name__)

# Read verbatim: yaml.safe_load turns unquoted timestamps into datetimes.
_CREATED_AT_RE = re.compile(r"^created_at:[ \t]*(['\"]?)(.+?)\1[ \t]*$", re.MULTILINE)


class GitHubCli:
    """Registry operations against ``<owner>/<repo>`` and the user's fork."""

    def __init__(self, runner: CommandRunner, owner: str, repo: str, default_branch: str = "main"):
        self._runner = runner
        self.owner = owner
        self.repo = repo
        self.default_branch = default_branch

    @property
    def upstream(self) -> str:
        return f"{self.owner}/{self.repo}"

    def fork_of(self, user: str) -> str:
        return f"{user}/{self.repo}"

    async def is_authenticated(self) -> bool:
        return (await self._runner.try_run(["gh", "auth", "status"])).ok

    async def current_user(self) -> str:
        return await self._runner.run(["gh", "api", "user", "--jq", ".login"])

    async def ensure_fork(self) -> None:
        # gh exits non-zero when the fork already exists.
        await self._runner.try_run(["gh", "repo", "fork", self.upstream, "--clone=false"])

    async def sync_fork(self, user: str) -> None:
        await self._runner.try_run(["gh", "repo", "sync", self.fork_of(user)])

    async def fetch_entry(self, path: str) -> Optional[ExistingEntry]:
        """Return the registry file at ``path`` on upstream, or None if absent."""
        contents = f"repos/{self.upstream}/contents/{path}"
        fetched = await self._runner.try_run(["gh", "api", contents, "--jq", ".content"])
        if not fetched.ok or not fetched.output:
            return None

        try:
            content = base64.b64decode(fetched.output).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            logger.warning("Registry entry %s is not decodable: %s", path, exc)
            return None

        sha = await self._runner.try_run(["gh", "api", contents, "--jq", ".sha"])

        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as exc:
            logger.warning("Registry entry %s is not valid YAML: %s", path, exc)
            data = {}
        if not isinstance(data, dict):
            data = {}

        categories = data.get("categories") or []
        match = _CREATED_AT_RE.search(content) if data.get("created_at") else None
        created_at = match.group(2) if match else None
        return ExistingEntry(
            content=content,
            sha=sha.output if sha.ok else None,
            created_at=created_at,
            categories=[str(c) for c in categories] if isinstance(categories, list) else [],
        )

    async def create_branch(self, user: str, branch: str) -> None:
        """(Re)create ``branch`` on the user's fork from the default branch head."""
        fork = self.fork_of(user)
        base_sha = await self._runner.run([
            "gh", "api", f"repos/{fork}/git/ref/heads/{self.default_branch}",
            "--jq", ".object.sha",
        ])
        # Stale branch from an earlier attempt; absence is fine.
        await self._runner.try_run([
            "gh", "api", f"repos/{fork}/git/refs/heads/{branch}", "-X", "DELETE",
        ])
        await self._runner.run([
            "gh", "api", f"repos/{fork}/git/refs",
            "-f", f"ref=refs/heads/{branch}",
            "-f", f"sha={base_sha}",
        ])

    async def put_file(
        self,
        user: str,
        branch: str,
        path: str,
        content: str,
        message: str,
        update: bool = False,
    ) -> None:
        """Commit ``content`` to ``path`` on ``branch`` of the user's fork."""
        fork = self.fork_of(user)
        args = [
            "gh", "api", f"repos/{fork}/contents/{path}", "-X", "PUT",
            "-f", f"message={message}",
            "-f", f"content={base64.b64encode(content.encode('utf-8')).decode('ascii')}",
            "-f", f"branch={branch}",
        ]
        if update:
            file_sha = await self._runner.run([
                "gh", "api", f"repos/{fork}/contents/{path}?ref={branch}", "--jq", ".sha",
            ])
            args += ["-f", f"sha={file_sha}"]
        await self._runner.run(args)

    async def open_pull_request(self, user: str, branch: str, title: str, body_file: str) -> str:
        return await self._runner.run([
            "gh", "pr", "create",
            "--repo", self.upstream,
            "--head", f"{user}:{branch}",
            "--title", title,
            "--body-file", body_file,
        ])

    async def enable_auto_merge(self, pr_url: str) -> None:
        await self._runner.try_run(["gh", "pr", "merge", "--auto", "--squash", "--delete-branch", pr_url])
