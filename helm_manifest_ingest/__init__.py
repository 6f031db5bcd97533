"""Ingest rendered Helm manifests and resolve cluster identity metadata."""

from helm_manifest_ingest.core import ingest, parse
from helm_manifest_ingest.errors import (
    EmptyInputError,
    InvalidFormatError,
    ManifestParseError,
    ManifestSectionMissingError,
    NoValidResourcesError,
    UnsupportedShapeError,
)
from helm_manifest_ingest.models import IngestResult, KubernetesResource, MetadataRecord, ParseResult
from helm_manifest_ingest.resolver import resolve_metadata

__version__ = "0.1.0"

__all__ = [
    "EmptyInputError",
    "IngestResult",
    "InvalidFormatError",
    "KubernetesResource",
    "ManifestParseError",
    "ManifestSectionMissingError",
    "MetadataRecord",
    "NoValidResourcesError",
    "ParseResult",
    "UnsupportedShapeError",
    "ingest",
    "parse",
    "resolve_metadata",
]
