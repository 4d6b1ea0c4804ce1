"""Publisher — validate a plugin and open a registry pull request for it."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import httpx
from rich.console import Console
from rich.markup import escape

from nexus_plugin.config import NexusPluginConfig, config as default_config
from nexus_plugin.exceptions import PublishError
from nexus_plugin.manifest import ManifestLoaded, ManifestValidator, load_manifest
from nexus_plugin.prompts import InputSource, parse_csv
from nexus_plugin.publish import registry
from nexus_plugin.publish.docker import resolve_image_digest
from nexus_plugin.publish.github import GitHubCli
from nexus_plugin.publish.shell import CommandRunner
from nexus_plugin.reporter import render_report
from nexus_plugin.types import ExistingEntry, PublishResult, RegistryEntry

logger = logging.getLogger(__name__)


class Publisher:
    """Runs the publish workflow for the plugin in ``workdir``.

    The workflow is strictly sequential and stops at the first failing step
    with a :class:`PublishError` carrying a machine-readable ``code``:

        validation_failed, gh_auth_failed, missing_flags,
        manifest_fetch_failed, image_digest_unavailable

    Failures of the git operations themselves surface as ``CommandError``.
    Progress lines are printed only for interactive sources; scripted runs
    stay silent apart from the validation record.
    """

    def __init__(
        self,
        source: InputSource,
        console: Optional[Console] = None,
        cfg: Optional[NexusPluginConfig] = None,
        runner: Optional[CommandRunner] = None,
        workdir: Optional[Path] = None,
    ):
        self._source = source
        self._console = console or Console()
        self._config = cfg or default_config
        self._runner = runner or CommandRunner(timeout=self._config.command_timeout)
        self._workdir = workdir or Path.cwd()
        self._github = GitHubCli(
            self._runner,
            owner=self._config.registry_owner,
            repo=self._config.registry_repo,
            default_branch=self._config.registry_default_branch,
        )

    def _step(self, message: str) -> None:
        if self._source.interactive:
            self._console.print(f"  {message}\n")

    def _ok(self, message: str) -> None:
        self._step(f"[green]✔[/green] {escape(message)}")

    async def publish(self) -> PublishResult:
        self._step("[bold]nexus-plugin publish[/bold] — Publish to the community registry")

        # ── 1. Validate ──────────────────────────────────────────────────────
        self._step("Step 1: Validating manifest...")
        report = ManifestValidator().validate(self._workdir)
        if not render_report(report, json_mode=not self._source.interactive, console=self._console):
            raise PublishError("Fix validation errors before publishing.", code="validation_failed")

        loaded = load_manifest(self._workdir)
        if not isinstance(loaded, ManifestLoaded):
            raise PublishError(loaded.message, code="validation_failed")
        manifest = loaded.document

        # ── 2. GitHub CLI ────────────────────────────────────────────────────
        self._step("Step 2: Checking GitHub CLI...")
        if not await self._github.is_authenticated():
            raise PublishError(
                "GitHub CLI (gh) is not installed or not authenticated.",
                code="gh_auth_failed",
                hint="Install: https://cli.github.com\nThen run: gh auth login",
            )
        self._ok("gh authenticated")

        self._step("Step 3: Ensuring registry fork...")
        await self._github.ensure_fork()
        self._ok("Fork ready")
        user = await self._github.current_user()

        # ── 3. Existing entry ────────────────────────────────────────────────
        self._step("Step 4: Checking registry...")
        yaml_path = registry.entry_path(manifest["id"])
        existing = await self._github.fetch_entry(yaml_path)
        is_update = existing is not None
        if is_update:
            self._step("[yellow]➔[/yellow] Existing entry found — this will be a version update")
        else:
            self._ok("New plugin")

        # ── 4. Metadata ──────────────────────────────────────────────────────
        manifest_url, categories = self._gather_metadata(manifest, user, existing)

        # ── 5. Manifest hash ─────────────────────────────────────────────────
        self._step("Step 5: Computing manifest hash...")
        try:
            manifest_sha256 = await registry.fetch_manifest_sha256(
                manifest_url, timeout=self._config.manifest_fetch_timeout
            )
        except httpx.HTTPError as exc:
            raise PublishError(
                f"Could not fetch manifest from {manifest_url}: {exc}",
                code="manifest_fetch_failed",
                hint="Make sure the manifest URL is correct and publicly accessible.",
            ) from exc
        self._ok(f"manifest_sha256: {manifest_sha256[:16]}...")

        # ── 6. Image digest ──────────────────────────────────────────────────
        self._step("Step 6: Resolving Docker image digest...")
        image_digest = await resolve_image_digest(
            self._runner, manifest["image"], pull_timeout=self._config.docker_pull_timeout
        )
        if not image_digest:
            raise PublishError(
                f"Could not resolve digest for {manifest['image']}. "
                "The image must be built and pushed before publishing.",
                code="image_digest_unavailable",
                hint="Push your image first, then re-run publish.",
            )
        self._ok(f"image_digest: {image_digest[:23]}...")

        # ── 7. Registry entry ────────────────────────────────────────────────
        entry = registry.build_entry(
            manifest,
            user=user,
            categories=categories,
            manifest_url=manifest_url,
            manifest_sha256=manifest_sha256,
            image_digest=image_digest,
            existing=existing,
            default_license=self._config.default_license,
        )
        entry_yaml = registry.render_entry_yaml(entry)
        if self._source.interactive:
            self._console.print("  [bold]Registry entry:[/bold]\n")
            for line in entry_yaml.splitlines():
                self._console.print(f"    {escape(line)}")
            self._console.print()

        # ── 8. Branch + commit ───────────────────────────────────────────────
        branch = registry.branch_name(entry.id, entry.version, is_update)
        self._step(f'Step 7: Creating branch "{escape(branch)}" on fork...')
        await self._github.sync_fork(user)
        await self._github.create_branch(user, branch)
        self._ok("Branch created")

        self._step("Step 8: Committing plugin entry...")
        await self._github.put_file(
            user,
            branch,
            yaml_path,
            entry_yaml,
            message=registry.commit_message(entry, is_update),
            update=is_update,
        )
        self._ok(f"Committed {yaml_path}")

        # ── 9. Pull request ──────────────────────────────────────────────────
        self._step("Step 9: Opening pull request...")
        pr_url = await self._open_pull_request(user, branch, entry, is_update)

        if user == self._config.registry_owner:
            self._step("Step 10: Enabling auto-merge...")
            await self._github.enable_auto_merge(pr_url)

        logger.info("Opened registry PR %s for %s %s", pr_url, entry.id, entry.version)
        return PublishResult(
            pr_url=pr_url,
            branch=branch,
            id=entry.id,
            version=entry.version,
            is_update=is_update,
            image_digest=image_digest,
            manifest_sha256=manifest_sha256,
        )

    def _gather_metadata(
        self, manifest: dict, user: str, existing: Optional[ExistingEntry]
    ) -> tuple[str, list[str]]:
        source = self._source
        if not source.interactive and not source.provided("manifest_url"):
            raise PublishError(
                "--manifest-url is required in non-interactive mode", code="missing_flags"
            )

        manifest_url = source.text(
            "manifest_url",
            "Raw GitHub URL to your plugin.json",
            registry.default_manifest_url(user, manifest["id"]),
        )

        categories = parse_csv(source.provided("categories"))
        if not categories and existing is not None and existing.categories:
            categories = list(existing.categories)
            source.note(f"Using existing categories: {', '.join(categories)}")
        if not categories:
            categories = source.choose_many("categories", "Categories:", registry.CATEGORIES)
        return manifest_url, categories or [registry.DEFAULT_CATEGORY]

    async def _open_pull_request(
        self, user: str, branch: str, entry: RegistryEntry, is_update: bool
    ) -> str:
        # Body goes through a file so backticks and pipes survive unquoted.
        fd, body_file = tempfile.mkstemp(prefix="nexus-publish-pr-", suffix=".md")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(registry.pull_request_body(entry, is_update))
            return await self._github.open_pull_request(
                user, branch, registry.pull_request_title(entry, is_update), body_file
            )
        finally:
            try:
                os.unlink(body_file)
            except OSError:
                logger.debug("Could not remove PR body file %s", body_file)
