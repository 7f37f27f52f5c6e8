"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the duplicate detection system.
These protocols enforce structural typing using Python's `typing.Protocol` so that
collaborators can be swapped or mocked in tests.

Key Components:
---------------
- KnownFolders: Platform well-known directories consulted by the path classifier.
- HashAlgorithm / Digest: Pluggable digest strategy (XXH3-128, SHA-256).
- Hasher: Interface for computing partial and full digests of files.
- FileScanner: Interface for walking directory trees into candidate files.
- DuplicateFinder: Interface for the main engine coordinating all stages.
"""

from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from dupguard.core.models import CandidateFile, DuplicateGroup, ScanOptions, ScanProgress, ScanStats

StoppedFlag = Callable[[], bool]
ProgressCallback = Callable[[ScanProgress], None]
DuplicateCallback = Callable[[DuplicateGroup], None]


# ===== Interfaces =====

class KnownFolders(Protocol):
    """
    Source of the directories treated as system-reserved.
    Each method returns a path string; implementations must fall back to defaults
    rather than fail.
    """
    def os_dir(self) -> str: ...
    def program_files_dirs(self) -> Tuple[str, ...]: ...
    def shared_app_data_dir(self) -> str: ...
    def volume_metadata_dir(self) -> str: ...
    def recycle_dir(self) -> str: ...


class Digest(Protocol):
    """Incremental digest object (hashlib-compatible subset)."""
    def update(self, data: bytes) -> None: ...
    def hexdigest(self) -> str: ...


class HashAlgorithm(Protocol):
    """
    Interface for hash algorithms.

    Allows plugging in different hashing functions like XXH3 or SHA-256
    without affecting the rest of the pipeline.
    """
    name: str

    def new(self) -> Digest:
        """Returns a fresh incremental digest."""
        ...


class Hasher(Protocol):
    """Interface for hashing a file prefix or a whole file."""
    def partial_digest(self, path: str, byte_count: int) -> str: ...
    def full_digest(self, path: str, stopped_flag: Optional[StoppedFlag] = None) -> str: ...
    def algorithm_name(self) -> str: ...


class FileScanner(Protocol):
    """
    Interface for walking file systems and collecting candidate files.
    """
    def walk(
        self,
        roots: Sequence[str],
        options: ScanOptions,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[CandidateFile]:
        """
        Walk the given roots and return the files that survive exclusion filtering.

        Args:
            roots: Directories to traverse.
            options: Traversal and exclusion options.
            stopped_flag: Function that returns True if operation should be canceled.
            progress_callback: Optional callback (stage, files_found, None).
        """
        ...


class DuplicateFinder(Protocol):
    """
    Interface for the main duplicate detection engine.

    Coordinates enumeration → size buckets → partial digests → full digests → groups.
    """
    def scan(
        self,
        roots: Sequence[str],
        options: ScanOptions,
        stopped_flag: Optional[StoppedFlag] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_duplicate_found: Optional[DuplicateCallback] = None,
        stats: Optional[ScanStats] = None
    ) -> List[DuplicateGroup]:
        ...
