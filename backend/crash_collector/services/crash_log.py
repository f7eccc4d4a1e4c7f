"""
Append-only crash log.

Every raw payload is written verbatim, one per line, before it is parsed, so
malformed reports are still kept for later inspection.
"""

import os
import threading
from pathlib import Path

from crash_collector.exceptions import LogWriteError


class CrashLog:
    """
    Thread-safe appender for the crash log file.

    All workers share one instance. Writes are serialised by a lock and each
    entry goes out in a single write() followed by fsync, so a successful
    append() means the whole line is on disk and no two entries interleave.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def append(self, payload: str) -> None:
        """
        Append one payload plus a trailing newline, creating the file if needed.

        Raises:
            LogWriteError: if the file cannot be opened, written or synced.
        """
        line = payload + "\n"
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as fh:
                    fh.write(line)
                    fh.flush()
                    os.fsync(fh.fileno())
            except OSError as e:
                raise LogWriteError(
                    f"Could not write crash to {self.path}: {e}"
                ) from e
