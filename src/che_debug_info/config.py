"""Configuration and environment for the debug info collector."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from che_debug_info.errors import PreconditionError


class Settings(BaseSettings):
    """Collector settings loaded from environment and .env."""

    model_config = SettingsConfigDict(
        env_prefix="CHE_DEBUG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Kubernetes
    kubeconfig: Path | None = Field(
        default=None,
        description="Path to kubeconfig; uses KUBECONFIG env or default location if unset",
    )
    context: str | None = Field(default=None, description="Kubernetes context to use")
    catalog_namespace: str = Field(
        default="openshift-operators",
        description="Namespace where OLM copies ClusterServiceVersions for global operators",
    )

    # Workspace debug start
    poll_interval_seconds: float = Field(
        default=3.0,
        gt=0.0,
        description="Seconds between DevWorkspace phase checks",
    )
    poll_attempts: int = Field(
        default=60,
        ge=1,
        description="Max number of DevWorkspace phase checks before giving up",
    )


def get_settings() -> Settings:
    """Return validated settings instance."""
    try:
        return Settings()
    except ValidationError as e:
        raise PreconditionError(f"Invalid CHE_DEBUG_* configuration: {e}") from e
