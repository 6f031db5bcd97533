"""Render validated resources back into one multi-document YAML manifest."""

from __future__ import annotations

import yaml

from helm_manifest_ingest.models import KubernetesResource

DOCUMENT_SEPARATOR = "---\n"


def dump_resource(resource: KubernetesResource) -> str:
    """Serialise one resource, keeping its own field order."""
    return yaml.safe_dump(
        resource.raw,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def dump_manifest(resources: list[KubernetesResource]) -> str:
    """Join every resource into a ``---`` separated manifest, in order."""
    return DOCUMENT_SEPARATOR.join(dump_resource(r) for r in resources)
