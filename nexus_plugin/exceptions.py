"""Typed exception hierarchy. Every error nexus-plugin can raise."""


class NexusPluginError(Exception):
    """Base exception for all nexus-plugin errors."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


class ScaffoldError(NexusPluginError):
    """Plugin project could not be generated (missing input, target exists)."""
    pass


class PublishError(NexusPluginError):
    """A publish step failed. ``code`` is the machine-readable error key."""
    def __init__(self, message: str, code: str = "publish_failed", hint: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.code = code
        self.hint = hint

    def to_record(self) -> dict:
        return {"error": self.code, "message": str(self)}


class CommandError(NexusPluginError):
    """An external process (gh, docker) exited non-zero or timed out."""
    def __init__(self, command: list[str], returncode: int = -1, stderr: str = "", **kwargs):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"Command '{' '.join(command[:3])}' failed ({returncode}): {stderr.strip()[:500]}",
            **kwargs,
        )
