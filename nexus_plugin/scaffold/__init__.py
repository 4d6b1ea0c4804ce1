"""Plugin project scaffolding — public API surface."""

from nexus_plugin.scaffold.scaffolder import (
    author_slug,
    default_plugin_id,
    gather_options,
    parse_port,
    scaffold_plugin,
    slugify,
)

__all__ = [
    "author_slug",
    "default_plugin_id",
    "gather_options",
    "parse_port",
    "scaffold_plugin",
    "slugify",
]
