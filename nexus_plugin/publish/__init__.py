"""Registry publishing — public API surface."""

from nexus_plugin.publish.publisher import Publisher
from nexus_plugin.publish.shell import CommandOutcome, CommandRunner

__all__ = ["Publisher", "CommandOutcome", "CommandRunner"]
