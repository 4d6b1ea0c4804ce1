"""Test fixtures: manifest builders, plugin directories, quiet consoles.

All tests should use these fixtures for consistency.
"""

import io
import json
from pathlib import Path

import pytest
from rich.console import Console

from nexus_plugin.config import NexusPluginConfig


def minimal_manifest(**overrides) -> dict:
    """Smallest manifest that passes every rule."""
    data = {
        "id": "com.a.b",
        "name": "X",
        "version": "1.0.0",
        "description": "d",
        "author": "me",
        "image": "img:tag",
        "ui": {"port": 80},
    }
    data.update(overrides)
    return data


def write_manifest(directory: Path, manifest, dockerfile: bool = False) -> Path:
    """Write ``manifest`` (dict, or raw text) as plugin.json under ``directory``."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "plugin.json"
    text = manifest if isinstance(manifest, str) else json.dumps(manifest, ensure_ascii=False)
    path.write_text(text, encoding="utf-8")
    if dockerfile:
        (directory / "Dockerfile").write_text("FROM node:20-alpine\n")
    return path


def make_console() -> Console:
    """Recording console with no colour and no wrapping surprises."""
    return Console(file=io.StringIO(), width=200, color_system=None)


def console_text(console: Console) -> str:
    return console.file.getvalue()


@pytest.fixture
def plugin_dir(tmp_path):
    """A valid plugin directory (manifest + Dockerfile)."""
    directory = tmp_path / "plugin"
    write_manifest(directory, minimal_manifest(), dockerfile=True)
    return directory


@pytest.fixture
def test_config():
    """Configuration with safe defaults and short timeouts."""
    return NexusPluginConfig(
        registry_owner="nexus-org",
        registry_repo="registry",
        command_timeout=5.0,
        docker_pull_timeout=5.0,
        manifest_fetch_timeout=5.0,
    )
