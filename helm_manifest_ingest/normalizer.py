"""Turn decoded payloads or manifest text into an ordered list of candidates."""

from __future__ import annotations

import logging
import re
from typing import Any

import yaml

from helm_manifest_ingest.observer import Observer, resolve_observer

logger = logging.getLogger(__name__)

# "---" alone on a line, optionally followed by a comment such as
# "--- # Source: chart/templates/service.yaml".
DOCUMENT_SEPARATOR = re.compile(r"^---[ \t]*(?:#.*)?\r?$", re.MULTILINE)


def _expand_lists(candidates: list[Any]) -> list[Any]:
    """Inline the ``items`` of ``kind: List`` wrappers, keeping order."""
    expanded: list[Any] = []
    for candidate in candidates:
        if (
            isinstance(candidate, dict)
            and candidate.get("kind") == "List"
            and isinstance(candidate.get("items"), list)
        ):
            expanded.extend(candidate["items"])
        else:
            expanded.append(candidate)
    return expanded


def normalize_structured(value: Any) -> list[Any]:
    """A single object becomes a one-element list; a list is kept as is.

    Non-object list elements are passed through untouched so that the
    validator can drop them.
    """
    if isinstance(value, list):
        return _expand_lists(list(value))
    return _expand_lists([value])


def split_documents(body: str) -> list[str]:
    """Split a manifest body on document separators, dropping blank segments."""
    return [segment for segment in DOCUMENT_SEPARATOR.split(body) if segment.strip()]


def normalize_manifest_body(body: str, observer: Observer | None = None) -> list[Any]:
    """Decode every document of a manifest body independently.

    A segment that does not decode is skipped with a warning instead of
    failing the whole parse; comment-only segments decode to nothing and
    are skipped.
    """
    obs = resolve_observer(observer)
    segments = split_documents(body)
    obs.info(f"Found {len(segments)} YAML documents in manifest")

    candidates: list[Any] = []
    for index, segment in enumerate(segments):
        try:
            doc = yaml.safe_load(segment)
        except yaml.YAMLError as exc:
            obs.warning(f"Failed to parse YAML document #{index + 1}: {exc}")
            continue
        if doc is None:
            obs.debug(f"Skipping empty YAML document #{index + 1}")
            continue
        candidates.append(doc)
    return _expand_lists(candidates)
