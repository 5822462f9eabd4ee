#!/usr/bin/env python3
"""Heuristic ordering of build errors, most actionable first."""

import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from buildmate.diagnostics import ParsedError


BASE_SCORE = 5.0


@dataclass(frozen=True)
class PriorityWeights:
    never_seen_before: float = 10.0
    blocking_compilation: float = 8.0
    has_quick_fix: float = -2.0
    frequently_ignored: float = -5.0
    in_dependency: float = -3.0
    test_only: float = -1.0


def _is_dependency_path(path: str) -> bool:
    return "/dependencies/" in path


def _is_test_path(path: str) -> bool:
    if "/tests/" in path:
        return True
    stem, _ = os.path.splitext(os.path.basename(path))
    return stem.endswith("_test")


class ErrorPrioritizer:
    """Scores errors and sorts them by descending score.

    Stateless between calls. There is no cross-build memory, so every error
    receives the never-seen-before bonus; ``blocking_compilation`` and
    ``frequently_ignored`` have no signal to drive them yet and stay unused.
    """

    def __init__(self, weights: Optional[PriorityWeights] = None) -> None:
        self.weights = weights or PriorityWeights()

    def has_known_fix(self, error: ParsedError) -> bool:
        return False

    def score(self, error: ParsedError) -> float:
        score = BASE_SCORE + self.weights.never_seen_before
        if self.has_known_fix(error):
            score += self.weights.has_quick_fix
        path = error.file.replace("\\", "/")
        if _is_dependency_path(path):
            score += self.weights.in_dependency
        if _is_test_path(path):
            score += self.weights.test_only
        return score

    def score_all(self, errors: List[ParsedError]) -> List[Tuple[ParsedError, float]]:
        return [(error, self.score(error)) for error in errors]

    def sort(self, errors: List[ParsedError]) -> List[ParsedError]:
        """Return *errors* reordered by descending score; equal scores keep input order."""
        scored = self.score_all(errors)
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return [error for error, _ in scored]
