"""nexus-plugin — Developer tooling for Nexus plugins.

Usage:
    from nexus_plugin import validate_manifest

    report = validate_manifest("./my-plugin")
    if not report.ok:
        print(report.failures())
"""

from nexus_plugin.types import (
    ResultLevel, CheckResult, ValidationReport,
    ScaffoldOptions, ScaffoldResult,
    RegistryEntry, ExistingEntry, PublishResult,
)
from nexus_plugin.exceptions import (
    NexusPluginError, ScaffoldError, PublishError, CommandError,
)
from nexus_plugin.manifest import ManifestValidator, load_manifest, validate_manifest
from nexus_plugin.reporter import render_report
from nexus_plugin.version import __version__

__all__ = [
    "ResultLevel", "CheckResult", "ValidationReport",
    "ScaffoldOptions", "ScaffoldResult",
    "RegistryEntry", "ExistingEntry", "PublishResult",
    "NexusPluginError", "ScaffoldError", "PublishError", "CommandError",
    "ManifestValidator", "load_manifest", "validate_manifest",
    "render_report",
    "__version__",
]
