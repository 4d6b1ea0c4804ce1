"""Phase 0 of validation: locate, read and parse plugin.json.

Loading is fail-fast. The result is either a parsed document or a single
failure message, and only a loaded document enters the rule pass.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel

from nexus_plugin.manifest.rules import MANIFEST_FILENAME

logger = logging.getLogger(__name__)


class ManifestLoaded(BaseModel):
    model_config = {"frozen": True}

    path: Path
    document: dict[str, Any]


class LoadFailure(BaseModel):
    model_config = {"frozen": True}

    path: Path
    message: str


LoadResult = Union[ManifestLoaded, LoadFailure]


def resolve_manifest_path(target: Union[str, Path]) -> Path:
    """Map a CLI target to the manifest file it designates.

    A directory (or a path that does not exist) designates
    ``<target>/plugin.json``; an existing file designates itself.
    """
    resolved = Path(target).resolve()
    try:
        if resolved.is_dir():
            return resolved / MANIFEST_FILENAME
        if resolved.exists():
            return resolved
    except OSError:
        pass
    return resolved / MANIFEST_FILENAME


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def load_manifest(target: Union[str, Path]) -> LoadResult:
    path = resolve_manifest_path(target)

    try:
        found = path.is_file()
    except OSError as exc:
        return LoadFailure(path=path, message=f"Cannot read {MANIFEST_FILENAME}: {exc}")
    if not found:
        return LoadFailure(path=path, message=f"{MANIFEST_FILENAME} not found")

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return LoadFailure(path=path, message=f"Cannot read {MANIFEST_FILENAME}: {exc}")

    try:
        document = json.loads(raw, parse_constant=_reject_constant)
    except ValueError as exc:
        return LoadFailure(path=path, message=f"Invalid JSON: {exc}")

    if not isinstance(document, dict):
        return LoadFailure(path=path, message=f"{MANIFEST_FILENAME} must contain a JSON object")

    logger.debug("Loaded manifest %s (%d top-level keys)", path, len(document))
    return ManifestLoaded(path=path, document=document)
