#!/usr/bin/env python3
"""Live build progress displays driven by LiveCounters."""

import logging
import sys
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.text import Text

from buildmate.util.live_counters import CounterSnapshot, LiveCounters


logger = logging.getLogger(__name__)


STAGE_MESSAGES: List[str] = [
    "🔍 Analyzing dependencies...",
    "📦 Loading crates...",
    "🔨 Compiling dependencies...",
    "⚙️ Building project...",
    "🔗 Linking targets...",
    "🧹 Sweeping up compilation artifacts...",
    "🚀 Finalizing build...",
]


@dataclass
class DisplayConfig:
    """Configuration for progress display output."""

    format_type: str = "rich"  # "rich", "ascii", "none"
    update_interval: float = 0.1
    stage_interval: float = 2.0  # Seconds between stage message rotations
    status_interval: float = 2.0  # Seconds between ASCII status lines


def format_counters(snapshot: CounterSnapshot) -> str:
    return (
        f"🔴 {snapshot.errors} errors, ⚠️ {snapshot.warnings} warnings, "
        f"📁 {snapshot.artifacts} units"
    )


class ProgressDisplay(ABC):
    """Abstract base class for build progress displays.

    The display thread only reads the counters; it never touches the event
    lists, so it needs no coordination with the stdout reader.
    """

    def __init__(
        self,
        counters: LiveCounters,
        title: str = "",
        config: Optional[DisplayConfig] = None,
    ):
        self.counters = counters
        self.title = title
        self.config = config or DisplayConfig()
        self._display_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._start_time = time.monotonic()

    def stage_message(self, now: Optional[float] = None) -> str:
        """Rotating stage message for the elapsed time."""
        elapsed = (now if now is not None else time.monotonic()) - self._start_time
        index = int(elapsed / self.config.stage_interval) % len(STAGE_MESSAGES)
        return STAGE_MESSAGES[index]

    @abstractmethod
    def render(self, tick: int) -> None:
        """Draw the current state once."""

    def begin(self) -> None:
        return None

    def end(self) -> None:
        return None

    def start_display(self) -> None:
        """Start the display in a background thread."""
        if self._display_thread and self._display_thread.is_alive():
            return

        self._start_time = time.monotonic()
        self._stop_event.clear()
        try:
            self.begin()
        except Exception as e:
            logger.warning(f"Progress display failed to start: {e}")
            return
        self._display_thread = threading.Thread(
            target=self._display_loop, name="ProgressDisplay", daemon=True
        )
        self._display_thread.start()

    def stop_display(self) -> None:
        """Stop the display thread and finalize output."""
        if self._display_thread:
            self._stop_event.set()
            self._display_thread.join(timeout=1.0)
            self._display_thread = None
            try:
                self.end()
            except Exception as e:
                logger.warning(f"Progress display failed to stop cleanly: {e}")

    def _display_loop(self) -> None:
        tick = 0
        while not self._stop_event.is_set():
            try:
                self.render(tick)
            except Exception as e:
                logger.warning(f"Display update error: {e}")
            tick += 1
            self._stop_event.wait(self.config.update_interval)


class NullProgressDisplay(ProgressDisplay):
    """Display that draws nothing; used for tests and non-interactive runs."""

    def render(self, tick: int) -> None:
        return None

    def start_display(self) -> None:
        return None

    def stop_display(self) -> None:
        return None


class ASCIIProgressDisplay(ProgressDisplay):
    """Plain periodic status lines for dumb terminals and CI logs."""

    _spinner_chars = ["|", "/", "-", "\\"]

    def __init__(
        self,
        counters: LiveCounters,
        title: str = "",
        config: Optional[DisplayConfig] = None,
    ):
        super().__init__(counters, title, config or DisplayConfig(format_type="ascii"))
        self._last_status_time = 0.0

    def render(self, tick: int) -> None:
        now = time.monotonic()
        if now - self._last_status_time < self.config.status_interval:
            return
        self._last_status_time = now
        spinner_char = self._spinner_chars[tick % len(self._spinner_chars)]
        elapsed = now - self._start_time
        print(
            f"{spinner_char} [{elapsed:5.1f}s] {format_counters(self.counters.snapshot())}",
            flush=True,
        )


class RichProgressDisplay(ProgressDisplay):
    """Single live spinner line with a rotating stage message and counters."""

    def __init__(
        self,
        counters: LiveCounters,
        title: str = "",
        config: Optional[DisplayConfig] = None,
        console: Optional[Console] = None,
    ):
        super().__init__(counters, title, config or DisplayConfig(format_type="rich"))
        # stdout is idle during a build since the event stream is consumed here
        self._console = console or Console(highlight=False)
        self._spinner = Spinner("dots", style="green")
        self._live: Optional[Live] = None

    def _compose(self) -> Text:
        elapsed = time.monotonic() - self._start_time
        text = Text()
        if self.title:
            text.append(f"🚢 {self.title} ", style="cyan")
        text.append(f"{self.stage_message()} ", style="blue")
        text.append(format_counters(self.counters.snapshot()))
        text.append(f"  {elapsed:.1f}s", style="dim")
        return text

    def begin(self) -> None:
        self._spinner.update(text=self._compose())
        self._live = Live(
            self._spinner,
            console=self._console,
            refresh_per_second=max(1, int(1 / self.config.update_interval)),
            transient=True,
            redirect_stderr=False,
        )
        self._live.start()

    def render(self, tick: int) -> None:
        self._spinner.update(text=self._compose())

    def end(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None


def create_progress_display(
    counters: LiveCounters, display_type: str, title: str = ""
) -> ProgressDisplay:
    """Factory for the configured display, downgrading when stdout is not a TTY."""
    if display_type == "none":
        return NullProgressDisplay(counters, title)
    if display_type == "rich" and sys.stdout.isatty():
        try:
            return RichProgressDisplay(counters, title)
        except Exception as e:
            logger.warning(f"Rich display creation failed, falling back to ASCII: {e}")
    return ASCIIProgressDisplay(counters, title)
