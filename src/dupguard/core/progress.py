"""
core/progress.py
Thread-safe progress accounting for a single scan.

Counters are updated under a lock by the hashing workers; the resulting
ScanProgress snapshot is delivered to the callback outside the lock.
"""

import logging
import threading
import time
from typing import Callable, Optional

from dupguard.core.models import COMPLETION_MARKER, ScanProgress, ScanState

logger = logging.getLogger(__name__)


def estimate_remaining(elapsed: float, processed: int, total: int) -> float:
    """Linear extrapolation: elapsed / processed * (total - processed)."""
    if processed <= 0 or total <= processed:
        return 0.0
    return elapsed / processed * (total - processed)


class ProgressTracker:
    """
    Accumulates processed files/bytes and emits ScanProgress events.

    files_processed counts first-stage digests only, bytes_processed counts every
    byte read by either hashing stage.
    """

    def __init__(self,
                 on_progress: Optional[Callable[[ScanProgress], None]] = None,
                 clock: Callable[[], float] = time.monotonic):
        self._on_progress = on_progress
        self._clock = clock
        self._lock = threading.Lock()
        self._start = clock()
        self.stage = ScanState.IDLE
        self.files_processed = 0
        self.bytes_processed = 0
        self.total_files = 0
        self.total_bytes = 0
        self.duplicates_found = 0

    def set_totals(self, total_files: int, total_bytes: int) -> None:
        with self._lock:
            self.total_files = total_files
            self.total_bytes = total_bytes

    def set_stage(self, stage: ScanState) -> None:
        with self._lock:
            self.stage = stage

    def set_duplicates(self, count: int) -> None:
        with self._lock:
            self.duplicates_found = count

    def enumerated(self, files_found: int) -> None:
        """Reports traversal progress; nothing has been hashed yet."""
        with self._lock:
            snapshot = ScanProgress(
                files_processed=0,
                total_files=files_found,
                bytes_processed=0,
                total_bytes=0,
                current_path="",
                elapsed=self._clock() - self._start,
                estimated_remaining=0.0,
                stage=ScanState.ENUMERATING,
            )
        self._emit(snapshot)

    def record(self, path: str, bytes_read: int, counts_as_file: bool) -> None:
        """Called by a worker after each digest computation."""
        with self._lock:
            if counts_as_file:
                self.files_processed += 1
            self.bytes_processed += bytes_read
            snapshot = self._snapshot(path)
        self._emit(snapshot)

    def complete(self) -> None:
        """Final event: processed equals total and the path is the completion marker."""
        with self._lock:
            self.files_processed = self.total_files
            self.bytes_processed = self.total_bytes
            snapshot = self._snapshot(COMPLETION_MARKER)
        self._emit(snapshot)

    def _snapshot(self, path: str) -> ScanProgress:
        elapsed = self._clock() - self._start
        return ScanProgress(
            files_processed=self.files_processed,
            total_files=self.total_files,
            bytes_processed=self.bytes_processed,
            total_bytes=self.total_bytes,
            current_path=path,
            elapsed=elapsed,
            estimated_remaining=estimate_remaining(elapsed, self.files_processed, self.total_files),
            stage=self.stage,
            duplicates_found=self.duplicates_found,
        )

    def _emit(self, snapshot: ScanProgress) -> None:
        if self._on_progress is None:
            return
        try:
            self._on_progress(snapshot)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")
