#!/usr/bin/env python3
"""Custom exceptions for build failures that need to bubble up to callers."""

import subprocess
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class FailureInfo:
    """Information about a single failed operation"""

    name: str
    command: str | list[str]
    return_code: int
    output: str
    error_type: str = "build_failure"


class BuildMateException(Exception):
    """Base exception for buildmate failures"""

    def __init__(self, message: str, failures: Optional[List[FailureInfo]] = None):
        super().__init__(message)
        self.failures = failures or []
        self.message = message

    def get_failure_summary(self) -> str:
        """Message followed by one line per recorded failure"""
        if not self.failures:
            return self.message

        summary = [self.message]
        summary.append(f"\nFailures ({len(self.failures)}):")
        for failure in self.failures:
            summary.append(
                f"  - {failure.name}: {failure.error_type} - {failure.output}"
            )

        return "\n".join(summary)


class ProcessSpawnError(BuildMateException):
    """The compiler process could not be started. Fatal for the invocation."""

    def __init__(self, command: list[str], reason: str):
        cmd_str = subprocess.list2cmdline(command)
        super().__init__(
            f"Failed to start {cmd_str}: {reason}",
            [
                FailureInfo(
                    name=command[0] if command else "<empty>",
                    command=command,
                    return_code=-1,
                    output=reason,
                    error_type="spawn_failure",
                )
            ],
        )
        self.command = command
        self.reason = reason


@dataclass
class CollaboratorFailure:
    """An advisory post-build step that failed without affecting the build result"""

    collaborator: str
    error: str
    exception_type: str = field(default="Exception")

    def __str__(self) -> str:
        return f"{self.collaborator} failed ({self.exception_type}): {self.error}"
