"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/stages.py
Pipeline stages of the duplicate detection engine.

CLASS HIERARCHY
---------------
SizeStage         : Buckets candidates by exact size (no I/O)
HashStageBase     : Shared thread-pool plumbing for the hashing stages
PartialHashStage  : Splits size buckets by a digest of the leading bytes
FullHashStage     : Confirms candidates with a whole-content digest

STAGE CONTRACTS
---------------
  • Buckets are plain lists of CandidateFile, each holding 2+ files of one size
  • Hashing runs in a bounded ThreadPoolExecutor, one pool per stage
  • Every unit checks stopped_flag before starting; running units finish
  • A file whose digest fails is logged and dropped, the stage carries on
  • Progress goes through the shared ProgressTracker after every digest
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from dupguard.core.errors import HashError, OperationCancelled
from dupguard.core.grouper import FileGrouperImpl
from dupguard.core.interfaces import Hasher
from dupguard.core.models import CandidateFile, DuplicateGroup
from dupguard.core.progress import ProgressTracker

logger = logging.getLogger(__name__)

Bucket = List[CandidateFile]


class SizeStage:
    def __init__(self, grouper: FileGrouperImpl):
        self.grouper = grouper

    def process(self, files: List[CandidateFile]) -> List[Bucket]:
        """
        Group by file size.
        Returns buckets with 2+ files of the same non-zero size.
        """
        return list(self.grouper.group_by_size(files).values())


class HashStageBase:
    """
    Runs one hashing unit per file on a thread pool.
    Subclasses implement _hash_file, which returns the digest and bytes read.
    """

    stage_name = "hash"

    def __init__(self, hasher: Hasher, max_workers: int = 1):
        self.hasher = hasher
        self.max_workers = max(1, max_workers)

    def _hash_file(self, file: CandidateFile, stopped_flag) -> Tuple[str, int]:
        raise NotImplementedError

    def _store(self, file: CandidateFile, digest: Optional[str]) -> None:
        raise NotImplementedError

    def _run_unit(self,
                  file: CandidateFile,
                  stopped_flag: Optional[Callable[[], bool]],
                  tracker: Optional[ProgressTracker],
                  counts_as_file: bool) -> bool:
        """
        Hashes one file. Returns True if the file was attempted (hashed or failed),
        False if it was skipped because cancellation was observed.
        """
        if stopped_flag and stopped_flag():
            return False

        try:
            digest, bytes_read = self._hash_file(file, stopped_flag)
        except OperationCancelled:
            self._store(file, None)
            return False
        except HashError as e:
            logger.warning(f"{self.stage_name}: {e}")
            self._store(file, None)
            return True

        self._store(file, digest)
        if tracker is not None:
            tracker.record(file.path, bytes_read, counts_as_file)
        return True

    def _run_all(self,
                 files: List[CandidateFile],
                 stopped_flag: Optional[Callable[[], bool]],
                 tracker: Optional[ProgressTracker],
                 counts_as_file: bool,
                 on_done: Optional[Callable[[CandidateFile, bool], None]] = None) -> None:
        if not files:
            return

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {
                pool.submit(self._run_unit, file, stopped_flag, tracker, counts_as_file): file
                for file in files
            }
            for future in as_completed(futures):
                attempted = future.result()
                if on_done is not None:
                    on_done(futures[future], attempted)


class PartialHashStage(HashStageBase):
    stage_name = "Partial hash"

    def __init__(self, hasher: Hasher, grouper: FileGrouperImpl, byte_count: int, max_workers: int = 1):
        super().__init__(hasher, max_workers)
        self.grouper = grouper
        self.byte_count = byte_count

    def _hash_file(self, file: CandidateFile, stopped_flag) -> Tuple[str, int]:
        digest = self.hasher.partial_digest(file.path, self.byte_count)
        return digest, min(self.byte_count, file.size)

    def _store(self, file: CandidateFile, digest: Optional[str]) -> None:
        file.partial_digest = digest

    def process(self,
                buckets: List[Bucket],
                stopped_flag: Optional[Callable[[], bool]] = None,
                tracker: Optional[ProgressTracker] = None) -> List[Bucket]:
        """
        Computes partial digests for every bucket member, then splits each bucket
        by digest and drops subgroups with fewer than 2 files.
        """
        files = [f for bucket in buckets for f in bucket]
        self._run_all(files, stopped_flag, tracker, counts_as_file=True)

        refined: List[Bucket] = []
        for bucket in buckets:
            refined.extend(self.grouper.group_by_partial_digest(bucket).values())
        return refined


@dataclass
class FullHashResult:
    """
    Output of the full-hash stage.

    digests maps (size, full digest) to the files that produced it;
    unsettled_sizes holds sizes with at least one member left unattempted.
    """
    digests: Dict[Tuple[int, str], List[CandidateFile]] = field(default_factory=dict)
    unsettled_sizes: Set[int] = field(default_factory=set)

    def settled_digests(self) -> Dict[Tuple[int, str], List[CandidateFile]]:
        return {key: files for key, files in self.digests.items() if key[0] not in self.unsettled_sizes}


class FullHashStage(HashStageBase):
    stage_name = "Full hash"

    def __init__(self, hasher: Hasher, max_workers: int = 1):
        super().__init__(hasher, max_workers)

    def _hash_file(self, file: CandidateFile, stopped_flag) -> Tuple[str, int]:
        return self.hasher.full_digest(file.path, stopped_flag), file.size

    def _store(self, file: CandidateFile, digest: Optional[str]) -> None:
        file.full_digest = digest

    def process(self,
                buckets: List[Bucket],
                stopped_flag: Optional[Callable[[], bool]] = None,
                tracker: Optional[ProgressTracker] = None,
                counts_as_file: bool = False) -> FullHashResult:
        result = FullHashResult()
        lock = threading.Lock()
        skipped: Set[int] = set()

        def on_done(file: CandidateFile, attempted: bool) -> None:
            with lock:
                if not attempted:
                    skipped.add(file.size)
                    return
                if file.full_digest:
                    result.digests.setdefault((file.size, file.full_digest), []).append(file)

        files = [f for bucket in buckets for f in bucket]
        self._run_all(files, stopped_flag, tracker, counts_as_file, on_done)

        result.unsettled_sizes = skipped
        if skipped:
            logger.debug(f"Full hash left {len(skipped)} size buckets unsettled")
        return result


class GroupingStage:
    """Publishes every settled (size, digest) bucket with 2+ members as a DuplicateGroup."""

    def __init__(self, grouper: FileGrouperImpl):
        self.grouper = grouper

    def process(self,
                result: FullHashResult,
                on_duplicate_found: Optional[Callable[[DuplicateGroup], None]] = None) -> List[DuplicateGroup]:
        groups = self.grouper.build_groups(result.settled_digests())
        if on_duplicate_found is not None:
            for group in groups:
                try:
                    on_duplicate_found(group)
                except Exception as e:
                    logger.warning(f"Duplicate callback failed: {e}")
        return groups
