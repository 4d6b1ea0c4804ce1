"""CLI configuration. All env vars defined here with defaults."""

from pydantic_settings import BaseSettings


class NexusPluginConfig(BaseSettings):
    # ── App ──
    log_level: str = "WARNING"

    # ── Registry ──
    registry_owner: str = "imdanibytes"
    registry_repo: str = "registry"
    registry_default_branch: str = "main"
    image_registry: str = "ghcr.io"

    # ── Timeouts (seconds) ──
    command_timeout: float = 60.0               # gh / docker inspect
    docker_pull_timeout: float = 300.0
    manifest_fetch_timeout: float = 15.0

    # ── Scaffold defaults ──
    default_port: int = 80
    default_description: str = "A Nexus plugin"
    default_license: str = "MIT"
    min_nexus_version: str = "0.3.0"

    model_config = {"env_prefix": "NEXUS_PLUGIN_", "env_file": ".env", "extra": "ignore"}


config = NexusPluginConfig()


__all__ = ["NexusPluginConfig", "config"]
