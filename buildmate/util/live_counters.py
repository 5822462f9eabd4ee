"""Build progress counters shared between the stdout reader and the UI ticker."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CounterSnapshot:
    errors: int
    warnings: int
    artifacts: int


class LiveCounters:
    """Monotonic error/warning/artifact counters.

    Single writer (the stdout reader), any number of readers. Each counter is a
    plain int rebound on increment, so a reader sees either the old or the new
    value and never a torn one. The three counters are independent: a snapshot
    is not guaranteed to be consistent across them, which is fine for display.
    """

    __slots__ = ("_errors", "_warnings", "_artifacts")

    def __init__(self) -> None:
        self._errors = 0
        self._warnings = 0
        self._artifacts = 0

    def record_error(self) -> int:
        self._errors += 1
        return self._errors

    def record_warning(self) -> int:
        self._warnings += 1
        return self._warnings

    def record_artifact(self) -> int:
        self._artifacts += 1
        return self._artifacts

    @property
    def errors(self) -> int:
        return self._errors

    @property
    def warnings(self) -> int:
        return self._warnings

    @property
    def artifacts(self) -> int:
        return self._artifacts

    def snapshot(self) -> CounterSnapshot:
        return CounterSnapshot(self._errors, self._warnings, self._artifacts)
