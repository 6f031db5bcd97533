"""Diagnostics side channel for the ingestion engine.

The engine never writes to global state on its own; progress counts and
warnings go to an :class:`Observer` handed in by the caller.  When none is
given, :class:`LoggingObserver` forwards everything to :mod:`logging`.
"""

from __future__ import annotations

import logging
from typing import Protocol


class Observer(Protocol):
    """Receives advisory messages emitted while a manifest is ingested."""

    def debug(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...


class LoggingObserver:
    """Forward diagnostics to a standard library logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("helm_manifest_ingest")

    def debug(self, message: str) -> None:
        self.logger.debug("%s", message)

    def info(self, message: str) -> None:
        self.logger.info("%s", message)

    def warning(self, message: str) -> None:
        self.logger.warning("%s", message)


class RecordingObserver:
    """Keep every message in memory, e.g. to surface them in a report."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def debug(self, message: str) -> None:
        self.messages.append(("debug", message))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def by_level(self, level: str) -> list[str]:
        return [msg for lvl, msg in self.messages if lvl == level]


def resolve_observer(observer: Observer | None) -> Observer:
    return observer if observer is not None else LoggingObserver()
