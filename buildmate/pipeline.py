#!/usr/bin/env python3
"""
Build event pipeline: runs one compiler invocation end to end.

Two execution contexts consume the child's output:

- the calling thread reads stdout line by line, decodes each line into a
  BuildEvent and folds it into the accumulated lists, the deduplicator and
  the live counters;
- a StderrDrain thread forwards stderr to the terminal verbatim.

They share nothing but the LiveCounters, which only the stdout reader writes.
When stdout reaches EOF the drain is joined, the child is reaped, and the
accumulated state is turned into a BuildResult.
"""

import io
import logging
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, List, Optional

from buildmate.coaching import BuildOutcome, CoachingEngine
from buildmate.diagnostics import (
    ErrorDeduplicator,
    ErrorGroup,
    ParsedError,
    ParsedWarning,
)
from buildmate.events import (
    BuildEvent,
    BuildScriptExecuted,
    CompilerArtifact,
    CompilerMessage,
    MessageLevel,
    decode_event,
)
from buildmate.prioritizer import ErrorPrioritizer
from buildmate.util.exceptions import ProcessSpawnError
from buildmate.util.live_counters import LiveCounters
from buildmate.util.process_tree import ProcessWatcher, terminate_process
from buildmate.util.progress_display import NullProgressDisplay, ProgressDisplay
from buildmate.util.stderr_drain import StderrDrain


logger = logging.getLogger(__name__)

MESSAGE_FORMAT_FLAG = "--message-format=json"


@dataclass
class BuildResult:
    """Everything one build produced, ready for reporting"""

    outcome: BuildOutcome
    returncode: int
    errors: List[ParsedError] = field(default_factory=lambda: [])
    warnings: List[ParsedWarning] = field(default_factory=lambda: [])
    artifacts: List[CompilerArtifact] = field(default_factory=lambda: [])
    build_scripts: List[BuildScriptExecuted] = field(default_factory=lambda: [])
    prioritized_errors: List[ParsedError] = field(default_factory=lambda: [])
    error_groups: List[ErrorGroup] = field(default_factory=lambda: [])
    tip: Optional[str] = None
    timed_out: bool = False


def build_command(compiler: str, args: List[str]) -> List[str]:
    """Compiler command line with structured output requested exactly once."""
    command = [compiler, *args]
    if not any(a.startswith("--message-format") for a in args):
        command.append(MESSAGE_FORMAT_FLAG)
    return command


class BuildEventPipeline:
    """Runs a compiler subprocess and turns its event stream into a BuildResult.

    Collaborators are per-invocation instances passed in (or created fresh);
    nothing here is process-global.
    """

    def __init__(
        self,
        command: List[str],
        cwd: Optional[Path] = None,
        env: Optional[dict[str, str]] = None,
        counters: Optional[LiveCounters] = None,
        deduplicator: Optional[ErrorDeduplicator] = None,
        prioritizer: Optional[ErrorPrioritizer] = None,
        coach: Optional[CoachingEngine] = None,
        display: Optional[ProgressDisplay] = None,
        stderr_sink: Optional[IO[bytes]] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.command = command
        self.cwd = str(cwd) if cwd is not None else None
        self.env = env
        self.counters = counters or LiveCounters()
        self.deduplicator = deduplicator or ErrorDeduplicator()
        self.prioritizer = prioritizer or ErrorPrioritizer()
        self.coach = coach or CoachingEngine()
        self.display = display or NullProgressDisplay(self.counters)
        self.stderr_sink = stderr_sink
        self.timeout = timeout

        self.errors: List[ParsedError] = []
        self.warnings: List[ParsedWarning] = []
        self.artifacts: List[CompilerArtifact] = []
        self.build_scripts: List[BuildScriptExecuted] = []

    def _spawn(self) -> subprocess.Popen[bytes]:
        logger.debug(f"Spawning: {subprocess.list2cmdline(self.command)}")
        try:
            return subprocess.Popen(
                self.command,
                cwd=self.cwd,
                env=self.env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            raise ProcessSpawnError(self.command, str(e)) from e

    def dispatch(self, event: BuildEvent) -> None:
        """Route one decoded event into the accumulated build state."""
        if isinstance(event, CompilerMessage):
            if event.level is MessageLevel.ERROR:
                error = event.to_error()
                self.errors.append(error)
                self.deduplicator.process([error])
                self.counters.record_error()
            elif event.level is MessageLevel.WARNING:
                self.warnings.append(event.to_warning())
                self.counters.record_warning()
        elif isinstance(event, CompilerArtifact):
            self.artifacts.append(event)
            self.counters.record_artifact()
        elif isinstance(event, BuildScriptExecuted):
            self.build_scripts.append(event)
            self.counters.record_artifact()

    def consume(self, stream: IO[str]) -> None:
        """Decode and dispatch every line of *stream* in order."""
        for line in stream:
            event = decode_event(line)
            if event is None:
                continue
            self.dispatch(event)

    def _join_drain(self, drain: StderrDrain) -> None:
        if not drain.join():
            logger.error(f"Failed to join stderr reader: {drain.error}")
        else:
            logger.debug(f"Forwarded {drain.bytes_forwarded} bytes of compiler stderr")

    def run(self) -> BuildResult:
        """Run the build to completion.

        Raises:
            ProcessSpawnError: the compiler could not be started.
        """
        start_time = time.monotonic()
        proc = self._spawn()
        assert proc.stdout is not None and proc.stderr is not None

        drain = StderrDrain(proc.stderr, sink=self.stderr_sink)
        drain.start()

        watcher: Optional[ProcessWatcher] = None
        if self.timeout is not None:
            watcher = ProcessWatcher(proc, self.timeout)
            watcher.start()

        stdout = io.TextIOWrapper(proc.stdout, encoding="utf-8", errors="replace")
        self.display.start_display()
        try:
            self.consume(stdout)
        except BaseException as e:
            if isinstance(e, KeyboardInterrupt):
                logger.warning("Interrupted, stopping build")
            # Reap on every exit path so no child or pipe outlives the invocation
            terminate_process(proc)
            proc.wait()
            drain.join(timeout=1.0)
            raise
        finally:
            self.display.stop_display()
            try:
                stdout.close()
            except (ValueError, OSError) as e:
                logger.debug(f"Closing stdout pipe failed: {e}")
            if watcher is not None:
                watcher.stop()

        elapsed = time.monotonic() - start_time
        self._join_drain(drain)
        returncode = proc.wait()
        timed_out = watcher is not None and watcher.fired

        outcome = BuildOutcome(
            elapsed=elapsed,
            warning_count=len(self.warnings),
            error_count=len(self.errors),
            has_recurring_errors=bool(self.errors) and self.counters.errors > 1,
            success=returncode == 0 and not timed_out,
        )
        tip = self.coach.check_and_show_tip(outcome)

        return BuildResult(
            outcome=outcome,
            returncode=returncode,
            errors=list(self.errors),
            warnings=list(self.warnings),
            artifacts=list(self.artifacts),
            build_scripts=list(self.build_scripts),
            prioritized_errors=self.prioritizer.sort(self.errors),
            error_groups=self.deduplicator.groups(),
            tip=tip,
            timed_out=timed_out,
        )
