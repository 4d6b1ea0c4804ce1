"""Registry entry construction: hashes, YAML, branch names and PR text."""

from __future__ import annotations

import hashlib
import re
from datetime import datetime, timezone
from typing import Optional

import httpx
import yaml

from nexus_plugin.types import ExistingEntry, RegistryEntry

CATEGORIES: tuple[str, ...] = (
    "productivity",
    "developer-tools",
    "monitoring",
    "automation",
    "fun",
    "utilities",
    "ai",
    "ai-tools",
    "security",
)
DEFAULT_CATEGORY = "utilities"


def entry_path(plugin_id: str) -> str:
    return f"plugins/{plugin_id}.yaml"


def plugin_slug(plugin_id: str) -> str:
    """Last dotted segment of the id: ``com.me.weather`` → ``weather``."""
    return plugin_id.split(".")[-1]


def branch_name(plugin_id: str, version: str, is_update: bool) -> str:
    action = "update" if is_update else "add"
    return f"{action}-{plugin_id.replace('.', '-')}-{version.replace('.', '-')}"


def default_manifest_url(user: str, plugin_id: str, branch: str = "main") -> str:
    return (
        f"https://raw.githubusercontent.com/{user}/nexus-{plugin_slug(plugin_id)}"
        f"/{branch}/plugin.json"
    )


async def fetch_manifest_sha256(url: str, timeout: float = 15.0) -> str:
    """Download ``url`` and return the hex SHA-256 of its body.

    Raises:
        httpx.HTTPError: On network failure, timeout or a non-2xx status.
    """
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        resp = await client.get(url)
        resp.raise_for_status()
        return hashlib.sha256(resp.content).hexdigest()


def build_entry(
    manifest: dict,
    user: str,
    categories: list[str],
    manifest_url: str,
    manifest_sha256: str,
    image_digest: str,
    existing: Optional[ExistingEntry] = None,
    default_license: str = "MIT",
    now: Optional[datetime] = None,
) -> RegistryEntry:
    """Combine the manifest with publish-time facts into a registry entry.

    ``created_at`` is carried over from an existing entry so updates keep
    the original listing date.
    """
    homepage = manifest.get("homepage") or ""
    if existing is not None and existing.created_at:
        created_at = existing.created_at
    else:
        now = now or datetime.now(timezone.utc)
        created_at = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    return RegistryEntry(
        author=manifest.get("author") or user,
        author_url=re.sub(r"/[^/]+$", "", homepage) if homepage else f"https://github.com/{user}",
        categories=categories,
        created_at=created_at,
        description=manifest["description"],
        homepage=homepage or f"https://github.com/{user}/nexus-{plugin_slug(manifest['id'])}",
        id=manifest["id"],
        image=manifest["image"],
        image_digest=image_digest,
        license=manifest.get("license") or default_license,
        manifest_sha256=manifest_sha256,
        manifest_url=manifest_url,
        name=manifest["name"],
        version=manifest["version"],
    )


def render_entry_yaml(entry: RegistryEntry) -> str:
    data = entry.model_dump(exclude_none=True)
    return yaml.safe_dump(data, sort_keys=True, default_flow_style=False, allow_unicode=True)


def commit_message(entry: RegistryEntry, is_update: bool) -> str:
    if is_update:
        return f"Update plugins/{entry.id} to {entry.version}"
    return f"Add plugins/{entry.id} {entry.version}"


def pull_request_title(entry: RegistryEntry, is_update: bool) -> str:
    if is_update:
        return f"Update plugin: {entry.name} {entry.version}"
    return f"Add plugin: {entry.name}"


def pull_request_body(entry: RegistryEntry, is_update: bool) -> str:
    target = f"to v{entry.version}" if is_update else "to the community registry"
    return "\n".join([
        f"{'Updates' if is_update else 'Adds'} **{entry.name}** (`{entry.id}`) {target}.",
        "",
        "| Field | Value |",
        "|-------|-------|",
        f"| Image | `{entry.image}` |",
        f"| Version | {entry.version} |",
        f"| License | {entry.license} |",
        f"| Manifest | {entry.manifest_url} |",
        f"| Image Digest | `{entry.image_digest[:19]}...` |",
        f"| Manifest SHA | `{entry.manifest_sha256[:16]}...` |",
        "",
        "Submitted via `nexus-plugin publish`",
    ])
