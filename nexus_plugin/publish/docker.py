"""Container image digest resolution via the ``docker`` CLI."""

from __future__ import annotations

import logging
import re
from typing import Optional

from nexus_plugin.publish.shell import CommandRunner

logger = logging.getLogger(__name__)

_DIGEST_RE = re.compile(r"sha256:[0-9a-f]{64}")
_INSPECT_FORMAT = "{{index .RepoDigests 0}}"


def extract_digest(text: str) -> Optional[str]:
    match = _DIGEST_RE.search(text)
    return match.group(0) if match else None


async def resolve_image_digest(
    runner: CommandRunner,
    image: str,
    pull_timeout: Optional[float] = None,
) -> Optional[str]:
    """Return ``sha256:<hex>`` for ``image``, pulling it if not present locally.

    Returns None when the image cannot be inspected or pulled.
    """
    inspect = ["docker", "inspect", "--format", _INSPECT_FORMAT, image]

    local = await runner.try_run(inspect)
    digest = extract_digest(local.output) if local.ok else None
    if digest:
        return digest

    logger.info("No local repo digest for %s, pulling", image)
    pulled = await runner.try_run(["docker", "pull", image], timeout=pull_timeout)
    if not pulled.ok:
        return None

    remote = await runner.try_run(inspect)
    return extract_digest(remote.output) if remote.ok else None
