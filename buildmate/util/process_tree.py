#!/usr/bin/env python3
"""Process-tree termination and the optional build watchdog."""

import _thread
import logging
import subprocess
import threading
import time
import traceback
from typing import Any, Optional

import psutil


logger = logging.getLogger(__name__)


def kill_children(pid: int, grace_period: float = 3.0) -> None:
    """Terminate every descendant of *pid*, escalating to kill.

    cargo fans out into rustc, build scripts and linkers; killing only the
    cargo pid would leave those orphaned and holding the pipes open. The
    process itself is left alone so its owner can reap it.
    """
    try:
        children = psutil.Process(pid).children(recursive=True)
    except psutil.NoSuchProcess:
        return

    for child in children:
        try:
            child.terminate()
        except psutil.NoSuchProcess:
            pass

    _, alive = psutil.wait_procs(children, timeout=grace_period)

    for child in alive:
        try:
            child.kill()
        except psutil.NoSuchProcess:
            pass


def terminate_process(proc: subprocess.Popen[Any], grace_period: float = 3.0) -> None:
    """Stop a Popen child and all its descendants.

    The child itself is signalled and waited on through *proc* so that
    ``proc.returncode`` keeps the real exit status.
    """
    if proc.poll() is not None:
        return
    kill_children(proc.pid, grace_period)
    try:
        proc.terminate()
        proc.wait(grace_period)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()
    except ProcessLookupError:
        pass  # Process already gone


class ProcessWatcher:
    """Background watcher that kills a process tree once a deadline passes.

    Only started when a timeout is configured; without one the build runs to
    completion however long it takes.
    """

    def __init__(
        self,
        proc: subprocess.Popen[Any],
        timeout: float,
        poll_interval: float = 0.1,
    ) -> None:
        self._proc = proc
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.fired = False

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._run, name=f"BuildWatcher-{self._proc.pid}", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)

    def _run(self) -> None:
        thread_name = threading.current_thread().name
        deadline = time.monotonic() + self._timeout
        try:
            while not self._stop.is_set():
                if self._proc.poll() is not None:
                    return
                if time.monotonic() > deadline:
                    logger.warning(
                        f"Build exceeded {self._timeout:.0f}s timeout, killing pid {self._proc.pid}"
                    )
                    self.fired = True
                    terminate_process(self._proc)
                    return
                self._stop.wait(self._poll_interval)
        except KeyboardInterrupt:
            print(f"Thread {thread_name} caught KeyboardInterrupt")
            traceback.print_exc()
            _thread.interrupt_main()
            raise
        except Exception as e:
            logger.error(f"Watcher thread error in {thread_name}: {e}")
