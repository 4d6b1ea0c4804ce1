"""Shared types and enums. Everything imports from here."""

import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, computed_field


# ── Enums ──────────────────────────────────────────────────────────────

class ResultLevel(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"   # advisory, never affects success


# ── Validation ─────────────────────────────────────────────────────────

class CheckResult(BaseModel):
    """Outcome of a single manifest check."""
    model_config = {"frozen": True}

    level: ResultLevel
    message: str


class ValidationReport(BaseModel):
    """Ordered results of one validation run against one manifest file."""
    model_config = {"frozen": True}

    file: str                           # resolved manifest path
    results: tuple[CheckResult, ...] = ()

    @computed_field
    @property
    def errors(self) -> int:
        return sum(1 for r in self.results if r.level is ResultLevel.FAIL)

    @computed_field
    @property
    def warnings(self) -> int:
        return sum(1 for r in self.results if r.level is ResultLevel.WARN)

    @computed_field
    @property
    def ok(self) -> bool:
        return self.errors == 0

    def failures(self) -> list[str]:
        return [r.message for r in self.results if r.level is ResultLevel.FAIL]

    def to_record(self) -> dict[str, Any]:
        """Structured form consumed by CI tooling."""
        return {
            "file": self.file,
            "ok": self.ok,
            "errors": self.errors,
            "warnings": self.warnings,
            "results": [{"level": r.level.value, "message": r.message} for r in self.results],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_record(), ensure_ascii=False)


# ── Scaffolding ────────────────────────────────────────────────────────

class ScaffoldOptions(BaseModel):
    """Everything the templates need to render a new plugin project."""
    id: str
    name: str
    slug: str
    author: str = ""
    description: str = "A Nexus plugin"
    port: int = Field(default=80, gt=0)
    permissions: list[str] = Field(default_factory=list)
    include_mcp: bool = True
    include_settings: bool = True
    out_dir: str


class ScaffoldResult(BaseModel):
    dir: str
    id: str
    files: list[str]


# ── Publishing ─────────────────────────────────────────────────────────

class RegistryEntry(BaseModel):
    """One ``plugins/<id>.yaml`` file in the community registry."""
    author: str
    author_url: Optional[str] = None
    categories: list[str]
    created_at: str                     # ISO-8601 UTC, preserved across updates
    description: str
    homepage: str
    id: str
    image: str
    image_digest: str
    license: str
    manifest_sha256: str
    manifest_url: str
    name: str
    status: str = "active"
    version: str


class ExistingEntry(BaseModel):
    """Registry file already present for this plugin id."""
    content: str
    sha: Optional[str] = None           # git blob sha, needed to overwrite
    created_at: Optional[str] = None
    categories: list[str] = Field(default_factory=list)


class PublishResult(BaseModel):
    ok: bool = True
    pr_url: str
    branch: str
    id: str
    version: str
    is_update: bool
    image_digest: str
    manifest_sha256: str
