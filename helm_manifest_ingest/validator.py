"""Keep only candidates that are deployable Kubernetes resources."""

from __future__ import annotations

import logging
from typing import Any

from helm_manifest_ingest.errors import NoValidResourcesError
from helm_manifest_ingest.models import KubernetesResource, as_str
from helm_manifest_ingest.observer import Observer, resolve_observer

logger = logging.getLogger(__name__)


def is_resource(candidate: Any) -> bool:
    """A resource is a mapping with non-empty ``apiVersion`` and ``kind`` strings."""
    if not isinstance(candidate, dict):
        return False
    return bool(as_str(candidate.get("apiVersion")) and as_str(candidate.get("kind")))


def _describe(candidate: Any) -> str:
    if isinstance(candidate, dict):
        keys = ", ".join(str(k) for k in candidate) or "none"
        return f"mapping with keys: {keys}"
    return type(candidate).__name__


def validate_resources(
    candidates: list[Any], observer: Observer | None = None
) -> list[KubernetesResource]:
    """Filter *candidates* down to resources, preserving order.

    Raises :class:`NoValidResourcesError` if nothing qualifies.
    """
    obs = resolve_observer(observer)
    resources: list[KubernetesResource] = []
    for candidate in candidates:
        if is_resource(candidate):
            resources.append(KubernetesResource(raw=candidate))
        else:
            obs.debug(f"Skipping document without apiVersion/kind: {_describe(candidate)}")

    if not resources:
        raise NoValidResourcesError()

    obs.info(f"✓ Parsed {len(resources)} Kubernetes resources")
    return resources
