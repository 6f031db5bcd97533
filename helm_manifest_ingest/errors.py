"""Errors raised while ingesting a Helm manifest.

Every error is terminal: the parse is aborted and no partial result is
returned.  Message text is stable so that tooling can match on it.
"""

from __future__ import annotations


class ManifestParseError(ValueError):
    """Base class for every ingestion failure."""

    kind = "ManifestParseError"


class EmptyInputError(ManifestParseError):
    """The input was empty or whitespace only."""

    kind = "EmptyInput"

    def __init__(self) -> None:
        super().__init__("Input is empty")


class InvalidFormatError(ManifestParseError):
    """The structured payload could not be decoded at all."""

    kind = "InvalidFormat"

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to parse YAML input: {detail}")
        self.detail = detail


class UnsupportedShapeError(ManifestParseError):
    """The payload decoded, but to something other than an object or array."""

    kind = "UnsupportedShape"

    def __init__(self, type_name: str) -> None:
        super().__init__(
            "Unsupported input shape: expected an object or an array of objects, "
            f"got {type_name}"
        )
        self.type_name = type_name


class ManifestSectionMissingError(ManifestParseError):
    """A dry-run transcript carried no MANIFEST section."""

    kind = "ManifestSectionMissing"

    def __init__(self) -> None:
        super().__init__("No MANIFEST section found in Helm dry-run output")


class NoValidResourcesError(ManifestParseError):
    """No candidate carried both ``apiVersion`` and ``kind``."""

    kind = "NoValidResources"

    def __init__(self) -> None:
        super().__init__(
            'No valid Kubernetes resources found. Each resource must have "kind" '
            'and "apiVersion" fields'
        )
