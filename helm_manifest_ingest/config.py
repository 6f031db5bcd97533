"""Application configuration and settings."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

from helm_manifest_ingest.arn import normalize_account_id
from helm_manifest_ingest.models import DeploymentMetadata, ParseResult

DEFAULT_RELEASE_NAME = "helm-release"
DEFAULT_NAMESPACE = "default"
DEFAULT_CHART_NAME = "helm-chart"


def parse_csv(raw: str | None) -> list[str]:
    """Split a comma separated option, dropping blanks."""
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env(name: str) -> str:
    return os.environ.get(name, "")


class Settings(BaseModel):
    """Runtime settings resolved from env vars and CLI flags."""

    # Identity overrides; these beat anything found in the manifest.
    region: str = Field(default_factory=lambda: _env("HELM_INGEST_REGION"))
    cluster: str = Field(default_factory=lambda: _env("HELM_INGEST_CLUSTER"))
    account_id: str = Field(
        default_factory=lambda: _env("HELM_INGEST_ACCOUNT_ID"),
        description="Cloud account id. Dashes and spaces are stripped.",
    )

    # Release context
    release_name: str = Field(default_factory=lambda: _env("HELM_INGEST_RELEASE_NAME"))
    namespace: str = Field(default_factory=lambda: _env("HELM_INGEST_NAMESPACE"))

    # Filters
    resource_type_filter: list[str] = Field(
        default_factory=lambda: parse_csv(_env("HELM_INGEST_RESOURCE_TYPES")),
        description="Only keep resources of these kinds. Empty = all kinds.",
    )
    namespace_filter: list[str] = Field(
        default_factory=lambda: parse_csv(_env("HELM_INGEST_NAMESPACES")),
        description="Only keep resources in these namespaces. Empty = all namespaces.",
    )

    # Output
    output_format: str = "text"  # text | json
    verbose: bool = False

    def overrides(self) -> DeploymentMetadata:
        return DeploymentMetadata(
            region=self.region or None,
            cluster=self.cluster or None,
            account_id=normalize_account_id(self.account_id),
        )

    def resolved_release_name(self, parsed: ParseResult) -> str:
        return self.release_name or parsed.release_name or DEFAULT_RELEASE_NAME

    def resolved_namespace(self, parsed: ParseResult) -> str:
        return self.namespace or parsed.namespace or DEFAULT_NAMESPACE

    def chart_name(self, parsed: ParseResult) -> str:
        return parsed.release_name or DEFAULT_CHART_NAME
