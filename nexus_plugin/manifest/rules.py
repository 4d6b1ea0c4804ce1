"""Static rule table for plugin.json validation.

Shared by the validator and the scaffolder so the permission vocabulary
offered at ``init`` time is the one enforced at ``validate`` time.
"""

from __future__ import annotations

import re
from types import MappingProxyType

MANIFEST_FILENAME = "plugin.json"
DOCKERFILE_NAME = "Dockerfile"

# Ordered: the scaffolder presents these as numbered choices.
PERMISSION_CHOICES: tuple[str, ...] = (
    "system:info",
    "filesystem:read",
    "filesystem:write",
    "process:list",
    "docker:read",
    "docker:manage",
    "network:local",
    "network:internet",
)
VALID_PERMISSIONS: frozenset[str] = frozenset(PERMISSION_CHOICES)
EXTERNAL_PERMISSION_PREFIX = "ext:"

REQUIRED_STRING_FIELDS: tuple[str, ...] = ("id", "name", "version", "description", "author", "image")

LENGTH_LIMITS: MappingProxyType[str, int] = MappingProxyType({
    "id": 100,
    "name": 100,
    "version": 50,
    "description": 2000,
    "author": 100,
    "image": 200,
})

BIDI_SCANNED_FIELDS: tuple[str, ...] = ("name", "description", "author")
BIDI_CHARS_RE = re.compile("[\u200e\u200f\u202a-\u202e\u2066-\u2069]")

ICON_SCHEMES: tuple[str, ...] = ("http://", "https://")
DIGEST_RE = re.compile(r"sha256:[0-9a-f]{64}")

TOOL_NAME_RE = re.compile(r"[a-z0-9_]{1,100}")
TOOL_DESCRIPTION_MAX = 2000
EXTENSION_ID_RE = re.compile(r"[a-z0-9_-]{1,100}")

SETTING_TYPES: tuple[str, ...] = ("string", "number", "boolean", "select")


def is_valid_permission(permission: object) -> bool:
    """A permission is a known token or an ``ext:``-namespaced one."""
    if not isinstance(permission, str):
        return False
    return permission in VALID_PERMISSIONS or permission.startswith(EXTERNAL_PERMISSION_PREFIX)


def has_bidi_chars(value: object) -> bool:
    return isinstance(value, str) and BIDI_CHARS_RE.search(value) is not None


def matches(pattern: re.Pattern, value: object) -> bool:
    """Full-string match; non-strings never match."""
    return isinstance(value, str) and pattern.fullmatch(value) is not None
