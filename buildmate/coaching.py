#!/usr/bin/env python3
"""Build outcome summary and one-shot coaching tips."""

from dataclasses import dataclass, field
from typing import List, Optional, Set, Union

from typeguard import typechecked


@typechecked
@dataclass(frozen=True)
class BuildOutcome:
    """Summary of one build handed to coaching and reporters"""

    elapsed: float  # seconds
    warning_count: int
    error_count: int
    has_recurring_errors: bool
    success: bool


@dataclass(frozen=True)
class SlowBuild:
    threshold_seconds: float

    def matches(self, outcome: BuildOutcome) -> bool:
        return outcome.elapsed > self.threshold_seconds


@dataclass(frozen=True)
class ManyWarnings:
    threshold: int

    def matches(self, outcome: BuildOutcome) -> bool:
        return outcome.warning_count > self.threshold


@dataclass(frozen=True)
class RecurringErrors:
    def matches(self, outcome: BuildOutcome) -> bool:
        return outcome.has_recurring_errors


@dataclass(frozen=True)
class LargeErrorCount:
    threshold: int

    def matches(self, outcome: BuildOutcome) -> bool:
        return outcome.error_count > self.threshold


BuildCondition = Union[SlowBuild, ManyWarnings, RecurringErrors, LargeErrorCount]


@dataclass(frozen=True)
class CoachingTip:
    id: str
    condition: BuildCondition
    message: str
    # Not consulted when choosing a tip; tips fire in catalog order.
    priority: int = 0


def default_tips(
    slow_build_seconds: float = 30.0,
    many_warnings_threshold: int = 20,
    large_error_threshold: int = 10,
) -> List[CoachingTip]:
    return [
        CoachingTip(
            id="slow_build",
            condition=SlowBuild(slow_build_seconds),
            message="💡 Long build? Try `cargo check` while iterating, or a faster linker such as mold or lld",
            priority=5,
        ),
        CoachingTip(
            id="many_warnings",
            condition=ManyWarnings(many_warnings_threshold),
            message="💡 Many warnings? `cargo fix --allow-dirty` can apply the mechanical ones for you",
            priority=3,
        ),
        CoachingTip(
            id="recurring_error",
            condition=RecurringErrors(),
            message="💡 Recurring error? Run `buildmate history errors` to see how often it has come up",
            priority=8,
        ),
        CoachingTip(
            id="many_errors",
            condition=LargeErrorCount(large_error_threshold),
            message="💡 Many errors? Focus on the first few - they often cascade",
            priority=6,
        ),
    ]


@dataclass
class CoachingEngine:
    """Fires at most one tip per call and each tip at most once per instance."""

    tips: List[CoachingTip] = field(default_factory=default_tips)
    shown_tips: Set[str] = field(default_factory=lambda: set())

    def check_and_show_tip(self, outcome: BuildOutcome) -> Optional[str]:
        for tip in self.tips:
            if tip.id not in self.shown_tips and tip.condition.matches(outcome):
                self.shown_tips.add(tip.id)
                return tip.message
        return None
