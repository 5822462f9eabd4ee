#!/usr/bin/env python3
"""Diagnostic records, content fingerprints and per-build error grouping."""

import hashlib
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Set

from typeguard import typechecked


IDENTIFIER_PLACEHOLDER = "`<identifier>`"
LINE_BUCKET_SIZE = 10


@typechecked
@dataclass(frozen=True)
class ParsedError:
    """Normalized error diagnostic"""

    message: str
    file: str = ""
    line: int = 0
    column: int = 0
    code: str = "unknown"

    def __str__(self) -> str:
        return f"[{self.code}] {self.file}:{self.line} - {self.message}"

    @property
    def location(self) -> str:
        return f"{self.file}:{self.line}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@typechecked
@dataclass(frozen=True)
class ParsedWarning:
    """Normalized warning diagnostic"""

    message: str
    file: str = ""
    line: int = 0
    column: int = 0
    code: str = "unknown"

    def __str__(self) -> str:
        return f"[{self.code}] {self.file}:{self.line} - {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def normalize_message(message: str) -> str:
    """Collapse backtick-quoted identifiers so `foo` and `bar` compare equal.

    Whitespace runs become single spaces as a side effect of tokenizing.
    """
    return " ".join(
        IDENTIFIER_PLACEHOLDER if token.startswith("`") and token.endswith("`") else token
        for token in message.split()
    )


def fingerprint(error: ParsedError) -> str:
    """SHA-256 hex digest identifying a class of equivalent errors.

    The hash covers the normalized message, then the file path and the line's
    ten-line bucket when they are known. Errors a few lines apart in one file
    collapse together; errors with no file are matched on message alone.
    """
    hasher = hashlib.sha256()
    hasher.update(normalize_message(error.message).encode("utf-8"))
    if error.file:
        hasher.update(error.file.encode("utf-8"))
        if error.line > 0:
            hasher.update(str(error.line // LINE_BUCKET_SIZE).encode("utf-8"))
    return hasher.hexdigest()


@dataclass
class ErrorGroup:
    """All errors sharing one fingerprint within a build.

    ``count`` always equals ``len(variations)``; both only grow.
    """

    primary_error: ParsedError
    fingerprint: str = ""
    variations: List[ParsedError] = field(default_factory=lambda: [])
    count: int = 0
    first_seen: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    locations: Set[str] = field(default_factory=lambda: set())

    def add_variation(self, error: ParsedError) -> None:
        self.variations.append(error)
        self.count += 1
        if error.file:
            self.locations.add(error.location)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fingerprint": self.fingerprint,
            "primary_error": self.primary_error.to_dict(),
            "count": self.count,
            "first_seen": self.first_seen,
            "locations": sorted(self.locations),
        }


class ErrorDeduplicator:
    """Folds errors into ErrorGroups keyed by fingerprint.

    One instance per build invocation; state accumulates across process()
    calls and is discarded with the instance.
    """

    def __init__(self) -> None:
        self._groups: Dict[str, ErrorGroup] = {}

    def fingerprint(self, error: ParsedError) -> str:
        return fingerprint(error)

    def add(self, error: ParsedError) -> ErrorGroup:
        """Fold a single error into its group and return that group."""
        key = fingerprint(error)
        group = self._groups.get(key)
        if group is None:
            group = ErrorGroup(primary_error=error, fingerprint=key)
            self._groups[key] = group
        group.add_variation(error)
        return group

    def process(self, errors: Iterable[ParsedError]) -> List[ErrorGroup]:
        """Fold *errors* into the table and return every group seen so far.

        Groups are ordered by count, most frequent first.
        """
        for error in errors:
            self.add(error)
        return self.groups()

    def groups(self) -> List[ErrorGroup]:
        return sorted(self._groups.values(), key=lambda g: g.count, reverse=True)

    def __len__(self) -> int:
        return len(self._groups)
