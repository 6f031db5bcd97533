"""Entry points: raw text in, canonical manifest and metadata out."""

from __future__ import annotations

import logging

from helm_manifest_ingest.models import DeploymentMetadata, IngestResult, ParseResult
from helm_manifest_ingest.normalizer import normalize_manifest_body, normalize_structured
from helm_manifest_ingest.observer import Observer, resolve_observer
from helm_manifest_ingest.resolver import resolve_metadata
from helm_manifest_ingest.serializer import dump_manifest
from helm_manifest_ingest.splitter import split_input
from helm_manifest_ingest.validator import validate_resources

logger = logging.getLogger(__name__)


def parse(raw_input: str, observer: Observer | None = None) -> ParseResult:
    """Parse a Helm dry-run transcript or structured payload.

    Raises a :class:`~helm_manifest_ingest.errors.ManifestParseError`
    subclass on failure; partial results are never returned.
    """
    obs = resolve_observer(observer)
    split = split_input(raw_input, obs)

    if split.release is not None:
        candidates = normalize_manifest_body(split.release.manifest_body, obs)
    else:
        candidates = normalize_structured(split.structured)

    resources = validate_resources(candidates, obs)
    release = split.release
    return ParseResult(
        manifest_yaml=dump_manifest(resources),
        user_supplied_values=release.user_supplied_values if release else None,
        release_name=release.release_name if release else None,
        namespace=release.namespace if release else None,
        resources=resources,
    )


def ingest(
    raw_input: str,
    observer: Observer | None = None,
    overrides: DeploymentMetadata | None = None,
) -> IngestResult:
    """Parse *raw_input* and resolve deployment metadata from the result."""
    obs = resolve_observer(observer)
    parsed = parse(raw_input, obs)
    metadata = resolve_metadata(
        parsed.resources,
        user_supplied_values=parsed.user_supplied_values,
        observer=obs,
        overrides=overrides,
    )
    return IngestResult(parsed=parsed, metadata=metadata)
