"""Plugin project generator for ``nexus-plugin init``."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Optional

from nexus_plugin.config import config
from nexus_plugin.exceptions import ScaffoldError
from nexus_plugin.manifest.rules import PERMISSION_CHOICES
from nexus_plugin.prompts import InputSource
from nexus_plugin.scaffold import templates
from nexus_plugin.types import ScaffoldOptions, ScaffoldResult

logger = logging.getLogger(__name__)

# Relative path → renderer. Order is the order files are reported in.
_FILES: dict[str, Callable[[ScaffoldOptions], str]] = {
    "plugin.json": templates.render_plugin_json,
    "Dockerfile": templates.render_dockerfile,
    ".gitignore": templates.render_gitignore,
    "src/server.js": templates.render_server_js,
    "src/public/index.html": templates.render_index_html,
    ".github/workflows/docker.yml": templates.render_docker_workflow,
}


def slugify(value: str) -> str:
    """``'My Cool Plugin!'`` → ``'my-cool-plugin'``."""
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def author_slug(author: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", author.lower()) or "author"


def default_plugin_id(name: str, author: str) -> str:
    return f"com.{author_slug(author)}.{slugify(name)}"


def parse_port(value: object, fallback: Optional[int] = None) -> int:
    """Parse a port answer; anything non-numeric or non-positive falls back."""
    fallback = config.default_port if fallback is None else fallback
    try:
        port = int(str(value).strip())
    except (TypeError, ValueError):
        return fallback
    return port if port > 0 else fallback


def gather_options(source: InputSource) -> ScaffoldOptions:
    """Collect every scaffold input from ``source``.

    Flags already supplied (``--id``, ``--out``) are honoured in both modes;
    everything else is asked for, or defaulted when scripted.
    """
    name = source.text("name", "Plugin name", "My Plugin")
    if not name:
        raise ScaffoldError("Plugin name must not be empty.")
    author = source.text("author", "Author name")
    description = source.text("description", "Description", config.default_description)
    port = parse_port(source.text("port", "UI port", str(config.default_port)))

    slug = slugify(name)
    if not slug:
        raise ScaffoldError(
            f"Plugin name '{name}' has no usable characters. Use letters or digits."
        )
    plugin_id = str(source.provided("id") or default_plugin_id(name, author))
    source.note(f"Plugin ID: {plugin_id}")

    permissions = source.choose_many("permissions", "Permissions:", PERMISSION_CHOICES)
    include_mcp = source.confirm("mcp", "Include MCP tools skeleton?", True)
    include_settings = source.confirm("settings", "Include settings skeleton?", True)

    return ScaffoldOptions(
        id=plugin_id,
        name=name,
        slug=slug,
        author=author,
        description=description,
        port=port,
        permissions=permissions,
        include_mcp=include_mcp,
        include_settings=include_settings,
        out_dir=str(source.provided("out") or slug),
    )


def scaffold_plugin(options: ScaffoldOptions, base_dir: Optional[Path] = None) -> ScaffoldResult:
    """Write the plugin project described by ``options``.

    Args:
        options: Resolved scaffold inputs.
        base_dir: Directory ``options.out_dir`` is relative to. Defaults to cwd.

    Returns:
        ScaffoldResult listing the created files (relative to the project).

    Raises:
        ScaffoldError: If the target directory already exists.
    """
    root = (base_dir or Path.cwd()) / options.out_dir
    if root.exists():
        raise ScaffoldError(
            f'Directory "{options.out_dir}" already exists.', details={"dir": str(root)}
        )

    for rel_path, render in _FILES.items():
        target = root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(render(options), encoding="utf-8")
        logger.debug("Wrote %s", target)

    logger.info("Scaffolded plugin %s in %s", options.id, root)
    return ScaffoldResult(dir=options.out_dir, id=options.id, files=list(_FILES))
