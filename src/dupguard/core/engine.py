"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/engine.py
Pipeline-based duplicate detection.

    enumerate → size buckets → partial digests (optional) → full digests → groups

Only full-digest matches are published. Cancellation is cooperative: whatever
buckets were completely hashed before the stop are still returned.
"""

import logging
import os
import time
from typing import Callable, Dict, List, Optional, Sequence

from dupguard.core.errors import ScanAbortError
from dupguard.core.grouper import FileGrouperImpl
from dupguard.core.hasher import HasherImpl, select_algorithm
from dupguard.core.interfaces import DuplicateFinder, FileScanner, Hasher
from dupguard.core.models import CandidateFile, DuplicateGroup, ScanOptions, ScanProgress, ScanState, ScanStats
from dupguard.core.progress import ProgressTracker
from dupguard.core.scanner import TreeWalker
from dupguard.core.stages import FullHashResult, FullHashStage, GroupingStage, PartialHashStage, SizeStage

logger = logging.getLogger(__name__)


class DuplicateEngine(DuplicateFinder):
    """
    Coordinates the scan stages and tracks the scan state.

    The hasher is built per scan from options.hash_algorithm unless one is injected.
    No state carries over between scan() calls apart from `state`.
    """

    def __init__(self,
                 walker: Optional[FileScanner] = None,
                 hasher: Optional[Hasher] = None,
                 grouper: Optional[FileGrouperImpl] = None):
        self.walker = walker or TreeWalker()
        self.hasher = hasher
        self.grouper = grouper or FileGrouperImpl()
        self.state = ScanState.IDLE
        self.candidate_count = 0

    def scan(self,
             roots: Sequence[str],
             options: ScanOptions,
             stopped_flag: Optional[Callable[[], bool]] = None,
             on_progress: Optional[Callable[[ScanProgress], None]] = None,
             on_duplicate_found: Optional[Callable[[DuplicateGroup], None]] = None,
             stats: Optional[ScanStats] = None) -> List[DuplicateGroup]:
        """
        Finds groups of byte-identical files under the given roots.

        Args:
            roots: Directories to scan; duplicates across roots are reported.
            options: Traversal, exclusion and hashing options.
            stopped_flag: Returns True once the scan should stop.
            on_progress: Receives ScanProgress snapshots, possibly from worker threads.
            on_duplicate_found: Receives each confirmed group once.
            stats: Optional statistics collector filled per stage.
        Returns:
            Confirmed duplicate groups, largest files first.
        Raises:
            ScanAbortError: invalid roots or an unexpected failure outside per-file work.
        """
        stats = stats if stats is not None else ScanStats()
        self.state = ScanState.IDLE
        self.candidate_count = 0
        self._validate_roots(roots)

        total_start_time = time.time()
        try:
            hasher = self.hasher or HasherImpl(select_algorithm(options.hash_algorithm))
            stats.algorithm = hasher.algorithm_name()
            tracker = ProgressTracker(on_progress)
            groups = self._run(roots, options, hasher, tracker, stopped_flag, on_duplicate_found, stats)
        except ScanAbortError:
            self.state = ScanState.IDLE
            raise
        except Exception as e:
            self.state = ScanState.IDLE
            logger.error(f"Scan aborted: {e}")
            raise ScanAbortError(f"Scan aborted: {e}") from e
        finally:
            stats.total_time = time.time() - total_start_time

        logger.debug(f"Scan finished in state {self.state.value} with {len(groups)} groups")
        return groups

    def _run(self, roots, options, hasher, tracker, stopped_flag, on_duplicate_found, stats) -> List[DuplicateGroup]:
        def stopped() -> bool:
            return bool(stopped_flag and stopped_flag())

        # 1. Enumerating
        self._enter(ScanState.ENUMERATING, tracker)
        start_time = time.time()
        files = self._enumerate(roots, options, stopped_flag, tracker)
        self.candidate_count = len(files)
        stats.update_stage("enumerate", 0, len(files), time.time() - start_time)
        if stopped():
            return self._cancel([])

        tracker.set_totals(len(files), sum(f.size for f in files))

        # 2. Bucketing
        self._enter(ScanState.BUCKETING, tracker)
        start_time = time.time()
        buckets = SizeStage(self.grouper).process(files)
        stats.update_stage("size", len(buckets), sum(len(b) for b in buckets), time.time() - start_time)
        if stopped():
            return self._cancel([])

        # 3. Partial hashing
        if options.use_partial_hash:
            self._enter(ScanState.PARTIAL_HASHING, tracker)
            start_time = time.time()
            stage = PartialHashStage(hasher, self.grouper, options.partial_hash_bytes, options.worker_count)
            buckets = stage.process(buckets, stopped_flag, tracker)
            stats.update_stage("partial", len(buckets), sum(len(b) for b in buckets), time.time() - start_time)
            if stopped():
                return self._cancel([])

        # 4. Full hashing
        self._enter(ScanState.FULL_HASHING, tracker)
        start_time = time.time()
        full_result: FullHashResult = FullHashStage(hasher, options.worker_count).process(
            buckets, stopped_flag, tracker, counts_as_file=not options.use_partial_hash
        )
        stats.update_stage("full", len(full_result.digests),
                           sum(len(v) for v in full_result.digests.values()), time.time() - start_time)
        cancelled = stopped()

        # 5. Grouping (settled buckets only, so a cancelled scan still returns confirmed groups)
        self._enter(ScanState.GROUPING, tracker)
        start_time = time.time()
        groups = GroupingStage(self.grouper).process(full_result, on_duplicate_found)
        stats.update_stage("grouping", len(groups), sum(g.file_count for g in groups), time.time() - start_time)
        tracker.set_duplicates(len(groups))

        if cancelled:
            return self._cancel(groups)

        self.state = ScanState.COMPLETED
        tracker.set_stage(ScanState.COMPLETED)
        tracker.complete()
        return groups

    def _enter(self, state: ScanState, tracker: ProgressTracker) -> None:
        logger.debug(f"Entering {state.value}")
        self.state = state
        tracker.set_stage(state)

    def _cancel(self, groups: List[DuplicateGroup]) -> List[DuplicateGroup]:
        logger.info(f"Scan cancelled during {self.state.value}; returning {len(groups)} confirmed groups")
        self.state = ScanState.CANCELLED
        return groups

    def _enumerate(self, roots, options, stopped_flag, tracker: ProgressTracker) -> List[CandidateFile]:
        """Walks every root, drops files already reached through an overlapping root, assigns sequence numbers."""
        def on_walk_progress(stage: str, found: int, _total) -> None:
            tracker.enumerated(found)

        files = self.walker.walk(roots, options, stopped_flag, on_walk_progress)

        unique: Dict[str, CandidateFile] = {}
        for file in files:
            unique.setdefault(file.location, file)

        result = list(unique.values())
        for index, file in enumerate(result):
            file.sequence = index
            file.partial_digest = None
            file.full_digest = None

        if len(result) != len(files):
            logger.debug(f"Dropped {len(files) - len(result)} paths reached through overlapping roots")
        return result

    @staticmethod
    def _validate_roots(roots: Sequence[str]) -> None:
        if not roots:
            raise ScanAbortError("No root directories given")

        for root in roots:
            if not root or not str(root).strip():
                raise ScanAbortError("Root directory path is empty")
            if not os.path.exists(root):
                raise ScanAbortError(f"Directory {root} does not exist.")
            if not os.path.isdir(root):
                raise ScanAbortError(f"Not a directory: {root}")
