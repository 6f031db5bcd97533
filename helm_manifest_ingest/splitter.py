"""Split raw input into a structured payload or a Helm dry-run transcript.

``helm install --dry-run --debug`` prints a transcript such as::

    NAME: demo-release
    LAST DEPLOYED: Mon Jan  1 00:00:00 2024
    NAMESPACE: staging
    STATUS: pending-install
    USER-SUPPLIED VALUES:
    region: us-east-1

    COMPUTED VALUES:
    ...
    HOOKS:
    MANIFEST:
    ---
    # Source: demo/templates/deployment.yaml
    apiVersion: apps/v1
    ...

Anything else is treated as a structured payload: a JSON object or array,
or a plain rendered YAML stream as ``helm template`` emits it.
"""

from __future__ import annotations

import datetime
import json
import logging
import re
from dataclasses import dataclass
from typing import Any

import yaml

from helm_manifest_ingest.errors import (
    EmptyInputError,
    InvalidFormatError,
    ManifestSectionMissingError,
    UnsupportedShapeError,
)
from helm_manifest_ingest.models import ParsedRelease
from helm_manifest_ingest.observer import Observer, resolve_observer

logger = logging.getLogger(__name__)

NAME_MARKER = re.compile(r"^NAME:[ \t]*(.*?)[ \t]*$", re.MULTILINE)
NAMESPACE_MARKER = re.compile(r"^NAMESPACE:[ \t]*(.*?)[ \t]*$", re.MULTILINE)
VALUES_HEADER = re.compile(r"^USER-SUPPLIED VALUES:[ \t]*(.*)$", re.MULTILINE)
MANIFEST_HEADER = re.compile(r"^MANIFEST:[ \t]*$", re.MULTILINE)
NOTES_HEADER = re.compile(r"^NOTES:[ \t]*$", re.MULTILINE)
# Top-level transcript headers are upper-case words followed by a bare colon,
# e.g. "COMPUTED VALUES:" or "HOOKS:".  Underscores are excluded so that
# values such as "AWS_REGION:" are not mistaken for headers.
SECTION_HEADER = re.compile(r"^[A-Z][A-Z-]*(?: [A-Z][A-Z-]*)*:[ \t]*$", re.MULTILINE)

TRANSCRIPT_MARKERS = (NAME_MARKER, NAMESPACE_MARKER, VALUES_HEADER, MANIFEST_HEADER)

_SCALAR_TYPES = (str, int, float, bool, datetime.date)


@dataclass
class SplitResult:
    """Outcome of splitting: exactly one of the two payload fields is used."""

    structured: Any = None
    release: ParsedRelease | None = None

    @property
    def is_transcript(self) -> bool:
        return self.release is not None


def looks_like_transcript(text: str) -> bool:
    """True when *text* carries any line-anchored dry-run section marker."""
    return any(marker.search(text) for marker in TRANSCRIPT_MARKERS)


def _first_value(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    if not match:
        return None
    return match.group(1).strip() or None


def _values_section(text: str) -> str | None:
    header = VALUES_HEADER.search(text)
    if not header:
        return None
    inline = header.group(1).strip()
    body_start = header.end()
    end = SECTION_HEADER.search(text, body_start)
    body = text[body_start : end.start() if end else len(text)]
    body = body.strip("\n")
    if inline:
        body = f"{inline}\n{body}" if body else inline
    return body if body.strip() else None


def _manifest_section(text: str) -> str | None:
    header = MANIFEST_HEADER.search(text)
    if not header:
        return None
    body_start = header.end()
    notes = NOTES_HEADER.search(text, body_start)
    return text[body_start : notes.start() if notes else len(text)].lstrip("\n")


def split_transcript(text: str) -> ParsedRelease:
    """Extract release name, namespace, user values and the manifest body.

    Raises :class:`ManifestSectionMissingError` when there is no
    ``MANIFEST:`` section.
    """
    manifest = _manifest_section(text)
    if manifest is None:
        raise ManifestSectionMissingError()
    return ParsedRelease(
        release_name=_first_value(NAME_MARKER, text),
        namespace=_first_value(NAMESPACE_MARKER, text),
        user_supplied_values=_values_section(text),
        manifest_body=manifest,
    )


def _decode_json(text: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except ValueError:
        return False, None


def _decode_yaml_stream(text: str) -> list[Any]:
    try:
        docs = [doc for doc in yaml.safe_load_all(text) if doc is not None]
    except yaml.YAMLError as exc:
        raise InvalidFormatError(str(exc).replace("\n", " ")) from exc

    if docs and all(isinstance(doc, _SCALAR_TYPES) for doc in docs):
        raise InvalidFormatError("input is neither JSON nor a YAML mapping or sequence")

    flattened: list[Any] = []
    for doc in docs:
        if isinstance(doc, list):
            flattened.extend(doc)
        else:
            flattened.append(doc)
    return flattened


def split_input(raw_input: str, observer: Observer | None = None) -> SplitResult:
    """Decide the input format and pull out release-level context."""
    obs = resolve_observer(observer)
    if raw_input is None or not raw_input.strip():
        raise EmptyInputError()
    raw_input = raw_input.replace("\r\n", "\n")

    ok, decoded = _decode_json(raw_input)
    if ok:
        if isinstance(decoded, (dict, list)):
            obs.debug(f"Decoded structured JSON payload ({type(decoded).__name__})")
            return SplitResult(structured=decoded)
        raise UnsupportedShapeError("null" if decoded is None else type(decoded).__name__)

    if looks_like_transcript(raw_input):
        release = split_transcript(raw_input)
        obs.debug(
            f"Split dry-run transcript: release={release.release_name} "
            f"namespace={release.namespace} "
            f"values={len(release.user_supplied_values or '')} chars"
        )
        return SplitResult(release=release)

    docs = _decode_yaml_stream(raw_input)
    obs.debug(f"Decoded YAML stream with {len(docs)} documents")
    return SplitResult(structured=docs)
