"""Dedicated reader that forwards a child's stderr to the terminal as it arrives."""

import _thread
import logging
import sys
import threading
import traceback
from typing import IO, Optional


logger = logging.getLogger(__name__)


class StderrDrain:
    """Drains a process's stderr pipe on its own thread.

    Bytes are copied to *sink* unmodified and flushed per line so compiler
    progress ("Compiling foo v0.1.0") shows up live. Nothing is parsed and no
    state is shared with the stdout reader: the two streams are independent
    and are never merged.
    """

    def __init__(
        self,
        stream: IO[bytes],
        sink: Optional[IO[bytes]] = None,
        name: str = "StderrDrain",
    ) -> None:
        self._stream = stream
        self._sink = sink
        self._name = name
        self._thread: Optional[threading.Thread] = None
        self.error: Optional[BaseException] = None
        self.bytes_forwarded = 0

    def _resolve_sink(self) -> IO[bytes]:
        if self._sink is not None:
            return self._sink
        return sys.stderr.buffer

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name=self._name, daemon=True)
        self._thread.start()

    def run(self) -> None:
        """Copy lines until EOF, then close the pipe."""
        try:
            sink = self._resolve_sink()
            for line in iter(self._stream.readline, b""):
                sink.write(line)
                sink.flush()
                self.bytes_forwarded += len(line)
        except KeyboardInterrupt:
            thread_name = threading.current_thread().name
            print(f"Thread {thread_name} caught KeyboardInterrupt")
            traceback.print_exc()
            _thread.interrupt_main()
            raise
        except (ValueError, OSError) as e:
            # Closed descriptors during shutdown land here
            self.error = e
        except Exception as e:
            self.error = e
            logger.error(f"{self._name} failed: {e}")
        finally:
            try:
                self._stream.close()
            except (ValueError, OSError) as err:
                logger.debug(f"{self._name}: closing stderr pipe failed: {err}")

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the drain to finish.

        Returns False when the thread is still alive after *timeout* or when
        the copy loop ended with an I/O error.
        """
        if self._thread is None:
            return self.error is None
        self._thread.join(timeout)
        if self._thread.is_alive():
            self.error = TimeoutError(
                f"{self._name} still running after {timeout} seconds"
            )
            return False
        return self.error is None
