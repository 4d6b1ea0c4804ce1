"""Manifest validation tests.

Tests cover:
    - Phase 0 loading (not found, unreadable, invalid JSON, non-object root)
    - Path resolution (directory, file, nonexistent path)
    - Required fields and length limits
    - Bidi override detection
    - Icon scheme and image digest format
    - Permissions (known tokens, ext: namespace, invalid tokens)
    - MCP tools, extensions, settings
    - Dockerfile warning
    - Report aggregation and idempotence
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import minimal_manifest, write_manifest
from nexus_plugin.manifest import (
    LoadFailure,
    ManifestLoaded,
    ManifestValidator,
    load_manifest,
    resolve_manifest_path,
    validate_manifest,
)
from nexus_plugin.manifest.rules import PERMISSION_CHOICES, is_valid_permission
from nexus_plugin.types import ResultLevel

RLO = "\u202e"
VALID_DIGEST = "sha256:" + "a" * 64


def _validate(tmp_path, dockerfile=True, **overrides):
    write_manifest(tmp_path, minimal_manifest(**overrides), dockerfile=dockerfile)
    return ManifestValidator().validate(tmp_path)


def _messages(report, level=None):
    return [r.message for r in report.results if level is None or r.level is level]


def _tool(name="get_weather", **overrides):
    tool = {
        "name": name,
        "description": "Look up the weather.",
        "input_schema": {"type": "object", "properties": {}},
    }
    tool.update(overrides)
    return tool


# ─── Phase 0: loading ─────────────────────────────────────────────────────────


class TestLoadManifest:
    def test_missing_file(self, tmp_path):
        result = load_manifest(tmp_path)
        assert isinstance(result, LoadFailure)
        assert result.message == "plugin.json not found"

    def test_invalid_json(self, tmp_path):
        write_manifest(tmp_path, "{not json")
        result = load_manifest(tmp_path)
        assert isinstance(result, LoadFailure)
        assert result.message.startswith("Invalid JSON: ")

    def test_non_object_root(self, tmp_path):
        write_manifest(tmp_path, "[1, 2, 3]")
        result = load_manifest(tmp_path)
        assert isinstance(result, LoadFailure)
        assert result.message == "plugin.json must contain a JSON object"

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_standard_constants_rejected(self, tmp_path, constant):
        write_manifest(tmp_path, f'{{"id": "com.a.b", "ui": {{"port": {constant}}}}}')
        result = load_manifest(tmp_path)
        assert isinstance(result, LoadFailure)
        assert result.message.startswith("Invalid JSON: ")
        assert constant in result.message

    def test_stat_permission_error(self, tmp_path):
        write_manifest(tmp_path, minimal_manifest())
        with patch.object(Path, "is_file", side_effect=PermissionError("denied")):
            result = load_manifest(tmp_path)
        assert isinstance(result, LoadFailure)
        assert result.message == "Cannot read plugin.json: denied"

    def test_undecodable_file(self, tmp_path):
        (tmp_path / "plugin.json").write_bytes(b'{"id": "\xff\xfe"}')
        result = load_manifest(tmp_path)
        assert isinstance(result, LoadFailure)
        assert result.message.startswith("Cannot read plugin.json: ")

    def test_loaded_document(self, tmp_path):
        write_manifest(tmp_path, minimal_manifest())
        result = load_manifest(tmp_path)
        assert isinstance(result, ManifestLoaded)
        assert result.document["id"] == "com.a.b"
        assert result.path == (tmp_path / "plugin.json").resolve()


class TestResolveManifestPath:
    def test_directory(self, tmp_path):
        assert resolve_manifest_path(tmp_path) == tmp_path.resolve() / "plugin.json"

    def test_existing_file(self, tmp_path):
        path = tmp_path / "custom.json"
        path.write_text("{}")
        assert resolve_manifest_path(path) == path.resolve()

    def test_nonexistent_treated_as_directory(self, tmp_path):
        missing = tmp_path / "nope"
        assert resolve_manifest_path(missing) == missing.resolve() / "plugin.json"

    def test_accepts_string(self, tmp_path):
        assert resolve_manifest_path(str(tmp_path)).name == "plugin.json"


class TestLoadFailureReport:
    def test_not_found_single_fail(self, tmp_path):
        report = ManifestValidator().validate(tmp_path)
        assert not report.ok
        assert report.errors == 1
        assert report.warnings == 0
        assert _messages(report) == ["plugin.json not found"]

    def test_invalid_json_single_fail(self, tmp_path):
        write_manifest(tmp_path, "{", dockerfile=True)
        report = ManifestValidator().validate(tmp_path)
        assert len(report.results) == 1
        assert report.results[0].level is ResultLevel.FAIL
        assert report.results[0].message.startswith("Invalid JSON")

    def test_validate_explicit_file(self, tmp_path):
        path = write_manifest(tmp_path, minimal_manifest(), dockerfile=True)
        report = ManifestValidator().validate(path)
        assert report.ok
        assert report.file == str(path.resolve())

    def test_unstatable_manifest_single_fail(self, tmp_path):
        write_manifest(tmp_path, minimal_manifest(), dockerfile=True)
        with patch.object(Path, "is_file", side_effect=PermissionError("denied")):
            report = ManifestValidator().validate(tmp_path)
        assert _messages(report) == ["Cannot read plugin.json: denied"]
        assert report.results[0].level is ResultLevel.FAIL


# ─── End-to-end ───────────────────────────────────────────────────────────────


class TestEndToEnd:
    def test_minimal_manifest_without_dockerfile(self, tmp_path):
        report = _validate(tmp_path, dockerfile=False)
        assert report.ok is True
        assert report.errors == 0
        assert report.warnings == 1
        assert _messages(report, ResultLevel.WARN) == ["no Dockerfile found next to plugin.json"]

    def test_minimal_manifest_with_dockerfile(self, tmp_path):
        report = _validate(tmp_path)
        assert report.ok
        assert report.warnings == 0
        assert "Dockerfile found" in _messages(report, ResultLevel.PASS)

    def test_unstatable_dockerfile_warns(self, tmp_path):
        write_manifest(tmp_path, minimal_manifest(), dockerfile=True)
        real_is_file = Path.is_file

        def is_file(path):
            if path.name == "Dockerfile":
                raise PermissionError("denied")
            return real_is_file(path)

        with patch.object(Path, "is_file", autospec=True, side_effect=is_file):
            report = ManifestValidator().validate(tmp_path)
        assert report.ok
        assert _messages(report, ResultLevel.WARN) == ["no Dockerfile found next to plugin.json"]

    def test_missing_image_and_bogus_permission(self, tmp_path):
        manifest = minimal_manifest(permissions=["bogus"])
        del manifest["image"]
        write_manifest(tmp_path, manifest)
        report = ManifestValidator().validate(tmp_path)
        assert report.ok is False
        assert report.errors >= 2
        fails = report.failures()
        assert "image is required" in fails
        assert 'invalid permission: "bogus"' in fails

    def test_icon_scheme(self, tmp_path):
        report = _validate(tmp_path, icon="ftp://x")
        assert "icon must be an http or https URL" in report.failures()

        report = _validate(tmp_path, icon="https://x")
        assert "icon URL valid" in _messages(report, ResultLevel.PASS)
        assert report.ok

    def test_result_order(self, tmp_path):
        report = _validate(tmp_path)
        messages = _messages(report)
        assert messages[:7] == [
            "id present",
            "name present",
            "version present",
            "description present",
            "author present",
            "image present",
            "ui.port = 80",
        ]
        assert messages[-1] == "Dockerfile found"

    def test_module_function(self, plugin_dir):
        assert validate_manifest(plugin_dir).ok


# ─── Required fields & lengths ────────────────────────────────────────────────


class TestRequiredFields:
    @pytest.mark.parametrize("field", ["id", "name", "version", "description", "author", "image"])
    def test_single_missing_field(self, tmp_path, field):
        manifest = minimal_manifest()
        del manifest[field]
        write_manifest(tmp_path, manifest, dockerfile=True)
        report = ManifestValidator().validate(tmp_path)
        assert report.ok is False
        assert report.failures() == [f"{field} is required"]

    def test_missing_port(self, tmp_path):
        manifest = minimal_manifest()
        del manifest["ui"]
        write_manifest(tmp_path, manifest, dockerfile=True)
        report = ManifestValidator().validate(tmp_path)
        assert report.failures() == ["ui.port must be a non-zero number"]

    @pytest.mark.parametrize("port", [0, -1, True, "80", None])
    def test_bad_port(self, tmp_path, port):
        report = _validate(tmp_path, ui={"port": port})
        assert report.failures() == ["ui.port must be a non-zero number"]

    def test_empty_author_counts_as_missing(self, tmp_path):
        report = _validate(tmp_path, author="")
        assert report.failures() == ["author is required"]

    def test_non_string_field_is_missing(self, tmp_path):
        report = _validate(tmp_path, version=1)
        assert "version is required" in report.failures()


class TestLengthLimits:
    def test_lengths_ok(self, tmp_path):
        report = _validate(tmp_path)
        passes = _messages(report, ResultLevel.PASS)
        for field in ("id", "name", "version", "description", "author", "image"):
            assert f"{field} length ok" in passes

    def test_name_too_long(self, tmp_path):
        report = _validate(tmp_path, name="n" * 101)
        assert report.failures() == ["name too long (101/100)"]

    def test_limit_is_inclusive(self, tmp_path):
        report = _validate(tmp_path, version="v" * 50, image="i" * 200)
        assert report.ok

    def test_description_counts_code_points(self, tmp_path):
        report = _validate(tmp_path, description="é" * 2000)
        assert report.ok

    def test_missing_field_has_no_length_entry(self, tmp_path):
        manifest = minimal_manifest()
        del manifest["id"]
        write_manifest(tmp_path, manifest)
        report = ManifestValidator().validate(tmp_path)
        assert not any(m.startswith("id length") or m.startswith("id too long") for m in _messages(report))


# ─── Bidi ─────────────────────────────────────────────────────────────────────


class TestBidi:
    def test_clean_manifest(self, tmp_path):
        report = _validate(tmp_path)
        assert "no bidi override characters" in _messages(report, ResultLevel.PASS)

    def test_one_fail_per_field(self, tmp_path):
        report = _validate(tmp_path, name=f"Evil{RLO}", author="me\u2066")
        assert report.failures() == [
            "name contains bidirectional override characters",
            "author contains bidirectional override characters",
        ]
        assert "no bidi override characters" not in _messages(report)

    @pytest.mark.parametrize("char", ["\u200e", "\u200f", "\u202a", "\u202e", "\u2066", "\u2069"])
    def test_every_range_detected(self, tmp_path, char):
        report = _validate(tmp_path, description=f"a{char}b")
        assert report.failures() == ["description contains bidirectional override characters"]

    def test_neighbouring_chars_allowed(self, tmp_path):
        report = _validate(tmp_path, description="a\u200db c\u2065")
        assert report.ok


# ─── Icon & digest ────────────────────────────────────────────────────────────


class TestImageDigest:
    def test_valid(self, tmp_path):
        report = _validate(tmp_path, image_digest=VALID_DIGEST)
        assert "image_digest format valid" in _messages(report, ResultLevel.PASS)

    @pytest.mark.parametrize("digest", [
        "sha256:" + "A" * 64,
        "sha256:" + "a" * 63,
        "sha256:" + "a" * 65,
        "md5:" + "a" * 64,
        "x" + VALID_DIGEST,
        42,
    ])
    def test_invalid(self, tmp_path, digest):
        report = _validate(tmp_path, image_digest=digest)
        assert report.failures() == ['image_digest must be "sha256:" followed by 64 hex characters']

    def test_null_skipped(self, tmp_path):
        report = _validate(tmp_path, image_digest=None, icon=None)
        assert not any("image_digest" in m or "icon" in m for m in _messages(report))


# ─── Permissions ──────────────────────────────────────────────────────────────


class TestPermissions:
    def test_all_known_tokens(self, tmp_path):
        report = _validate(tmp_path, permissions=list(PERMISSION_CHOICES))
        assert f"permissions valid ({len(PERMISSION_CHOICES)})" in _messages(report, ResultLevel.PASS)

    def test_ext_prefix(self, tmp_path):
        report = _validate(tmp_path, permissions=["ext:weather:read", "docker:read"])
        assert "permissions valid (2)" in _messages(report, ResultLevel.PASS)

    def test_empty_list(self, tmp_path):
        report = _validate(tmp_path, permissions=[])
        assert "permissions valid (0)" in _messages(report, ResultLevel.PASS)

    def test_each_invalid_named(self, tmp_path):
        report = _validate(tmp_path, permissions=["docker:read", "root", "network"])
        assert report.failures() == ['invalid permission: "root"', 'invalid permission: "network"']
        assert not any(m.startswith("permissions valid") for m in _messages(report))

    def test_not_a_list_skipped(self, tmp_path):
        report = _validate(tmp_path, permissions="docker:read")
        assert report.ok
        assert not any("permission" in m for m in _messages(report))

    def test_is_valid_permission(self):
        assert is_valid_permission("system:info")
        assert is_valid_permission("ext:")
        assert not is_valid_permission("EXT:thing")
        assert not is_valid_permission(None)


# ─── MCP tools ────────────────────────────────────────────────────────────────


class TestMcpTools:
    def test_valid_tools(self, tmp_path):
        report = _validate(tmp_path, mcp={"tools": [_tool("a"), _tool("b")]})
        assert "MCP tools valid (2)" in _messages(report, ResultLevel.PASS)

    def test_duplicate_pair_reported_once(self, tmp_path):
        tools = [_tool("a"), _tool("b"), _tool("a"), _tool("c")]
        report = _validate(tmp_path, mcp={"tools": tools})
        assert report.failures() == ['duplicate MCP tool name: "a"']

    def test_invalid_name_skips_rest(self, tmp_path):
        report = _validate(tmp_path, mcp={"tools": [_tool("Bad-Name", description="", input_schema={})]})
        assert report.failures() == [
            'MCP tool name "Bad-Name" invalid (must be [a-z0-9_], 1-100 chars)'
        ]

    def test_name_too_long(self, tmp_path):
        report = _validate(tmp_path, mcp={"tools": [_tool("a" * 101)]})
        assert report.errors == 1

    def test_missing_description(self, tmp_path):
        report = _validate(tmp_path, mcp={"tools": [_tool(description="")]})
        assert report.failures() == ['MCP tool "get_weather" must have a description']

    def test_description_too_long(self, tmp_path):
        report = _validate(tmp_path, mcp={"tools": [_tool(description="d" * 2001)]})
        assert report.failures() == ['MCP tool "get_weather" description exceeds 2000 characters']

    def test_description_bidi(self, tmp_path):
        report = _validate(tmp_path, mcp={"tools": [_tool(description=f"safe{RLO}")]})
        assert report.failures() == ['MCP tool "get_weather" description contains bidi overrides']

    def test_schema_root_must_be_object(self, tmp_path):
        report = _validate(tmp_path, mcp={"tools": [_tool(input_schema={"type": "array"})]})
        assert report.failures() == [
            'MCP tool "get_weather" input_schema must have "type": "object" at root'
        ]

    def test_tool_permissions(self, tmp_path):
        tool = _tool(permissions=["docker:read", "sudo", "ext:x"])
        report = _validate(tmp_path, mcp={"tools": [tool]})
        assert report.failures() == ['MCP tool "get_weather" has invalid permission: "sudo"']

    def test_sub_checks_are_independent(self, tmp_path):
        tool = _tool(description="", input_schema=None, permissions=["bad"])
        report = _validate(tmp_path, mcp={"tools": [tool]})
        assert report.errors == 3

    def test_empty_tools_no_entry(self, tmp_path):
        report = _validate(tmp_path, mcp={"tools": []})
        assert not any("MCP" in m for m in _messages(report))

    def test_non_object_tool(self, tmp_path):
        report = _validate(tmp_path, mcp={"tools": ["get_weather"]})
        assert report.failures() == ['MCP tool name "None" invalid (must be [a-z0-9_], 1-100 chars)']


# ─── Extensions ───────────────────────────────────────────────────────────────


class TestExtensions:
    def test_valid(self, tmp_path):
        report = _validate(tmp_path, extensions={"git": ["status", "log"], "web-search": ["query"]})
        assert "extensions valid (2)" in _messages(report, ResultLevel.PASS)

    def test_invalid_id_skips_operations(self, tmp_path):
        report = _validate(tmp_path, extensions={"Git!": ["BAD OP"]})
        assert report.failures() == ['extension ID "Git!" must match [a-z0-9_-], 1-100 chars']

    def test_empty_operations(self, tmp_path):
        report = _validate(tmp_path, extensions={"git": []})
        assert report.failures() == ['extension "git" must declare at least one operation']

    def test_non_array_operations(self, tmp_path):
        report = _validate(tmp_path, extensions={"git": "status"})
        assert report.failures() == ['extension "git" must declare at least one operation']

    def test_each_invalid_operation(self, tmp_path):
        report = _validate(tmp_path, extensions={"git": ["status", "Push", "x y"]})
        assert report.failures() == [
            'extension "git" operation "Push" must match [a-z0-9_-], 1-100 chars',
            'extension "git" operation "x y" must match [a-z0-9_-], 1-100 chars',
        ]

    def test_empty_mapping_no_entry(self, tmp_path):
        report = _validate(tmp_path, extensions={})
        assert not any("extension" in m for m in _messages(report))


# ─── Settings ─────────────────────────────────────────────────────────────────


class TestSettings:
    def test_valid(self, tmp_path):
        settings = [
            {"key": "greeting", "type": "string"},
            {"key": "units", "type": "select", "options": ["metric", "imperial"]},
        ]
        report = _validate(tmp_path, settings=settings)
        assert "settings valid (2)" in _messages(report, ResultLevel.PASS)

    def test_missing_key(self, tmp_path):
        report = _validate(tmp_path, settings=[{"type": "bogus"}])
        assert report.failures() == ["setting missing key"]

    def test_invalid_type(self, tmp_path):
        report = _validate(tmp_path, settings=[{"key": "k", "type": "date"}])
        assert report.failures() == [
            'setting "k" has invalid type "date" (must be string/number/boolean/select)'
        ]

    @pytest.mark.parametrize("extra", [{}, {"options": []}, {"options": "a,b"}])
    def test_select_without_options_names_key(self, tmp_path, extra):
        report = _validate(tmp_path, settings=[{"key": "units", "type": "select", **extra}])
        assert report.failures() == ['setting "units" type "select" requires a non-empty options array']

    def test_empty_settings_no_entry(self, tmp_path):
        report = _validate(tmp_path, settings=[])
        assert not any("setting" in m for m in _messages(report))


# ─── Report ───────────────────────────────────────────────────────────────────


class TestValidationReport:
    def test_counts(self, tmp_path):
        report = _validate(tmp_path, dockerfile=False, icon="ftp://x", permissions=["nope"])
        assert report.errors == 2
        assert report.warnings == 1
        assert report.ok is False

    def test_record_shape(self, tmp_path):
        report = _validate(tmp_path)
        record = report.to_record()
        assert set(record) == {"file", "ok", "errors", "warnings", "results"}
        assert record["results"][0] == {"level": "pass", "message": "id present"}

    def test_idempotent_json(self, tmp_path):
        write_manifest(tmp_path, minimal_manifest(permissions=["bogus"], icon="ftp://x"))
        first = ManifestValidator().validate(tmp_path).to_json()
        second = ManifestValidator().validate(tmp_path).to_json()
        assert first == second

    def test_json_keeps_unicode(self, tmp_path):
        report = _validate(tmp_path, permissions=["météo"])
        assert 'invalid permission: \\"météo\\"' in report.to_json()
        assert json.loads(report.to_json())["ok"] is False

    def test_report_is_frozen(self, tmp_path):
        report = _validate(tmp_path)
        with pytest.raises(Exception):
            report.file = "other"
