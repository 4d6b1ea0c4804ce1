"""plugin.json loading and validation — public API surface."""

from nexus_plugin.manifest.loader import (
    LoadFailure,
    LoadResult,
    ManifestLoaded,
    load_manifest,
    resolve_manifest_path,
)
from nexus_plugin.manifest.validator import ManifestValidator, validate_manifest

__all__ = [
    "LoadFailure",
    "LoadResult",
    "ManifestLoaded",
    "load_manifest",
    "resolve_manifest_path",
    "ManifestValidator",
    "validate_manifest",
]
