"""ManifestValidator — rule checks over a plugin.json document."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Union

from nexus_plugin.manifest import rules
from nexus_plugin.manifest.loader import LoadFailure, ManifestLoaded, load_manifest
from nexus_plugin.types import CheckResult, ResultLevel, ValidationReport

logger = logging.getLogger(__name__)


class _Results:
    """Ordered accumulator, private to a single validation run."""

    def __init__(self) -> None:
        self.items: list[CheckResult] = []

    def passed(self, message: str) -> None:
        self.items.append(CheckResult(level=ResultLevel.PASS, message=message))

    def failed(self, message: str) -> None:
        self.items.append(CheckResult(level=ResultLevel.FAIL, message=message))

    def warned(self, message: str) -> None:
        self.items.append(CheckResult(level=ResultLevel.WARN, message=message))

    def check(self, condition: bool, pass_message: str, fail_message: str) -> bool:
        if condition:
            self.passed(pass_message)
        else:
            self.failed(fail_message)
        return condition


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _present(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


class ManifestValidator:
    """Validates a plugin manifest file and reports every defect in one pass.

    The validator never prints and never raises: loading problems become a
    single fail result, rule violations become fail results, and advisory
    findings become warnings. Rendering is the reporter's job.
    """

    def validate(self, target: Union[str, Path]) -> ValidationReport:
        """Load ``target`` and run the rule pass if loading succeeded.

        Args:
            target: A plugin directory or a path to the manifest file itself.
        """
        loaded = load_manifest(target)
        if isinstance(loaded, LoadFailure):
            logger.debug("Manifest load failed: %s", loaded.message)
            return ValidationReport(
                file=str(loaded.path),
                results=(CheckResult(level=ResultLevel.FAIL, message=loaded.message),),
            )
        return self.validate_document(loaded)

    def validate_document(self, loaded: ManifestLoaded) -> ValidationReport:
        """Run every check over an already-loaded manifest.

        Checks (in order):
            1. Required fields
            2. Length limits
            3. Bidirectional override characters
            4. Icon URL scheme
            5. Image digest format
            6. Permissions
            7. MCP tools
            8. Extensions
            9. Settings
            10. Sibling Dockerfile (warning only)
        """
        manifest = loaded.document
        results = _Results()

        self._check_required(manifest, results)
        self._check_lengths(manifest, results)
        self._check_bidi(manifest, results)
        self._check_icon(manifest, results)
        self._check_image_digest(manifest, results)
        self._check_permissions(manifest, results)
        self._check_mcp_tools(manifest, results)
        self._check_extensions(manifest, results)
        self._check_settings(manifest, results)
        self._check_dockerfile(loaded.path, results)

        report = ValidationReport(file=str(loaded.path), results=tuple(results.items))
        logger.debug(
            "Validated %s: %d error(s), %d warning(s)", loaded.path, report.errors, report.warnings
        )
        return report

    # ── 1. Required fields ────────────────────────────────────────────────

    def _check_required(self, manifest: dict, results: _Results) -> None:
        for field in rules.REQUIRED_STRING_FIELDS:
            results.check(_present(manifest.get(field)), f"{field} present", f"{field} is required")

        ui = manifest.get("ui")
        port = ui.get("port") if isinstance(ui, dict) else None
        results.check(
            _is_number(port) and port > 0,
            f"ui.port = {port}",
            "ui.port must be a non-zero number",
        )

    # ── 2. Length limits ──────────────────────────────────────────────────

    def _check_lengths(self, manifest: dict, results: _Results) -> None:
        # Missing fields were already reported above.
        for field, limit in rules.LENGTH_LIMITS.items():
            value = manifest.get(field)
            if not _present(value):
                continue
            results.check(
                len(value) <= limit,
                f"{field} length ok",
                f"{field} too long ({len(value)}/{limit})",
            )

    # ── 3. Bidi override characters ───────────────────────────────────────

    def _check_bidi(self, manifest: dict, results: _Results) -> None:
        clean = True
        for field in rules.BIDI_SCANNED_FIELDS:
            if rules.has_bidi_chars(manifest.get(field)):
                results.failed(f"{field} contains bidirectional override characters")
                clean = False
        if clean:
            results.passed("no bidi override characters")

    # ── 4. Icon ───────────────────────────────────────────────────────────

    def _check_icon(self, manifest: dict, results: _Results) -> None:
        icon = manifest.get("icon")
        if icon is None:
            return
        results.check(
            isinstance(icon, str) and icon.startswith(rules.ICON_SCHEMES),
            "icon URL valid",
            "icon must be an http or https URL",
        )

    # ── 5. Image digest ───────────────────────────────────────────────────

    def _check_image_digest(self, manifest: dict, results: _Results) -> None:
        digest = manifest.get("image_digest")
        if digest is None:
            return
        results.check(
            rules.matches(rules.DIGEST_RE, digest),
            "image_digest format valid",
            'image_digest must be "sha256:" followed by 64 hex characters',
        )

    # ── 6. Permissions ────────────────────────────────────────────────────

    def _check_permissions(self, manifest: dict, results: _Results) -> None:
        permissions = manifest.get("permissions")
        if not isinstance(permissions, list):
            return
        valid = True
        for permission in permissions:
            if not rules.is_valid_permission(permission):
                results.failed(f'invalid permission: "{permission}"')
                valid = False
        if valid:
            results.passed(f"permissions valid ({len(permissions)})")

    # ── 7. MCP tools ──────────────────────────────────────────────────────

    def _check_mcp_tools(self, manifest: dict, results: _Results) -> None:
        mcp = manifest.get("mcp")
        tools = mcp.get("tools") if isinstance(mcp, dict) else None
        if not isinstance(tools, list):
            return

        seen: set[str] = set()
        valid = True
        for tool in tools:
            if not self._check_tool(tool if isinstance(tool, dict) else {}, seen, results):
                valid = False

        if valid and tools:
            results.passed(f"MCP tools valid ({len(tools)})")

    def _check_tool(self, tool: dict, seen: set[str], results: _Results) -> bool:
        name = tool.get("name")
        if not rules.matches(rules.TOOL_NAME_RE, name):
            results.failed(f'MCP tool name "{name}" invalid (must be [a-z0-9_], 1-100 chars)')
            return False
        if name in seen:
            results.failed(f'duplicate MCP tool name: "{name}"')
            return False
        seen.add(name)

        valid = True
        description = tool.get("description")
        if not _present(description):
            results.failed(f'MCP tool "{name}" must have a description')
            valid = False
        elif len(description) > rules.TOOL_DESCRIPTION_MAX:
            results.failed(
                f'MCP tool "{name}" description exceeds {rules.TOOL_DESCRIPTION_MAX} characters'
            )
            valid = False
        elif rules.has_bidi_chars(description):
            results.failed(f'MCP tool "{name}" description contains bidi overrides')
            valid = False

        schema = tool.get("input_schema")
        if not (isinstance(schema, dict) and schema.get("type") == "object"):
            results.failed(f'MCP tool "{name}" input_schema must have "type": "object" at root')
            valid = False

        permissions = tool.get("permissions")
        if isinstance(permissions, list):
            for permission in permissions:
                if not rules.is_valid_permission(permission):
                    results.failed(f'MCP tool "{name}" has invalid permission: "{permission}"')
                    valid = False
        return valid

    # ── 8. Extensions ─────────────────────────────────────────────────────

    def _check_extensions(self, manifest: dict, results: _Results) -> None:
        extensions = manifest.get("extensions")
        if not isinstance(extensions, dict):
            return

        valid = True
        for ext_id, operations in extensions.items():
            if not rules.matches(rules.EXTENSION_ID_RE, ext_id):
                results.failed(f'extension ID "{ext_id}" must match [a-z0-9_-], 1-100 chars')
                valid = False
                continue
            if not isinstance(operations, list) or not operations:
                results.failed(f'extension "{ext_id}" must declare at least one operation')
                valid = False
                continue
            for op in operations:
                if not rules.matches(rules.EXTENSION_ID_RE, op):
                    results.failed(
                        f'extension "{ext_id}" operation "{op}" must match [a-z0-9_-], 1-100 chars'
                    )
                    valid = False

        if valid and extensions:
            results.passed(f"extensions valid ({len(extensions)})")

    # ── 9. Settings ───────────────────────────────────────────────────────

    def _check_settings(self, manifest: dict, results: _Results) -> None:
        settings = manifest.get("settings")
        if not isinstance(settings, list):
            return

        valid = True
        allowed = "/".join(rules.SETTING_TYPES)
        for setting in settings:
            setting = setting if isinstance(setting, dict) else {}
            key = setting.get("key")
            if not _present(key):
                results.failed("setting missing key")
                valid = False
                continue

            setting_type = setting.get("type")
            if setting_type not in rules.SETTING_TYPES:
                results.failed(
                    f'setting "{key}" has invalid type "{setting_type}" (must be {allowed})'
                )
                valid = False

            options = setting.get("options")
            if setting_type == "select" and not (isinstance(options, list) and options):
                results.failed(f'setting "{key}" type "select" requires a non-empty options array')
                valid = False

        if valid and settings:
            results.passed(f"settings valid ({len(settings)})")

    # ── 10. Dockerfile ────────────────────────────────────────────────────

    def _check_dockerfile(self, manifest_path: Path, results: _Results) -> None:
        try:
            found = (manifest_path.parent / rules.DOCKERFILE_NAME).is_file()
        except OSError:
            found = False
        if found:
            results.passed("Dockerfile found")
        else:
            results.warned(f"no Dockerfile found next to {rules.MANIFEST_FILENAME}")


def validate_manifest(target: Union[str, Path]) -> ValidationReport:
    """Validate the manifest at ``target`` (directory or file)."""
    return ManifestValidator().validate(target)
