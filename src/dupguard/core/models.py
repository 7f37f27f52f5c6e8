"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models and domain logic for file scanning and duplicate detection.
"""

import os
from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Dict, Iterable, Optional, Set, Tuple, Union

from dupguard.utils.convert_utils import ConvertUtils


def location_key(path: str) -> str:
    return os.path.normcase(os.path.realpath(path))


# =============================
# Enums
# =============================

class ScanState(Enum):
    """
    Lifecycle of a single scan. CANCELLED is reachable from any non-terminal state.
    """
    IDLE = "Idle"
    ENUMERATING = "Enumerating"
    BUCKETING = "Bucketing"
    PARTIAL_HASHING = "Partial Hashing"
    FULL_HASHING = "Full Hashing"
    GROUPING = "Grouping"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanState.COMPLETED, ScanState.CANCELLED)

    def __repr__(self) -> str:
        return self.value


class FileAttributes(IntFlag):
    """
    Native file attribute flags. Values mirror the Windows FILE_ATTRIBUTE_* bits so
    `st_file_attributes` can be used as-is; POSIX platforms synthesize HIDDEN/READONLY.
    """
    NORMAL = 0
    READONLY = 0x1
    HIDDEN = 0x2
    SYSTEM = 0x4
    ARCHIVE = 0x20
    TEMPORARY = 0x100
    OFFLINE = 0x1000


class ExclusionReason(str, Enum):
    SYSTEM = "system file"
    HIDDEN = "hidden file"
    SIZE = "file size out of range"
    EXCLUDED_EXTENSION = "excluded extension"
    UNLISTED_EXTENSION = "extension not in include list"


class HashAlgorithmChoice(str, Enum):
    AUTO = "auto"
    XXH3_128 = "xxh3_128"
    SHA256 = "sha256"


# ======================
#  Core Data Models
# ======================

@dataclass(eq=False)
class CandidateFile:
    """
    Represents a single file on the file system.
    Identity is the path, compared case-insensitively; content never takes part in equality.
    """
    path: str
    size: int  # in bytes
    created_at: float = 0.0
    modified_at: float = 0.0
    attributes: FileAttributes = FileAttributes.NORMAL
    partial_digest: Optional[str] = None
    full_digest: Optional[str] = None
    excluded: bool = False
    exclusion_reason: Optional[ExclusionReason] = None
    name: Optional[str] = None
    extension: Optional[str] = None
    sequence: int = 0  # Discovery order, assigned by the engine

    def __post_init__(self):
        """Automatically extract basename and extension from path if not provided."""
        if self.size < 0:
            raise ValueError(f"File size cannot be negative: {self.size}")

        if self.name is None:
            self.name = os.path.basename(self.path)

        if self.extension is None:
            _, ext = os.path.splitext(self.name)
            self.extension = ext.lower()  # ".JPG" → ".jpg"

    @property
    def identity(self) -> str:
        return self.path.casefold()

    @property
    def location(self) -> str:
        """Where the file lives on disk; distinct for names that differ only in case on case-sensitive systems."""
        return location_key(self.path)

    @property
    def is_hidden(self) -> bool:
        return bool(self.attributes & FileAttributes.HIDDEN)

    @property
    def is_system(self) -> bool:
        return bool(self.attributes & FileAttributes.SYSTEM)

    def __eq__(self, other):
        if not isinstance(other, CandidateFile):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self):
        return hash(self.identity)

    def __repr__(self):
        return f"<CandidateFile path={self.path}, size={self.size}>"


@dataclass(frozen=True)
class DuplicateGroup:
    """
    A confirmed set of byte-identical files.
    All members share one size and one full digest; a group always holds 2+ files.
    """
    digest: str
    files: Tuple[CandidateFile, ...]

    def __post_init__(self):
        files = tuple(self.files)
        object.__setattr__(self, "files", files)

        if len(files) < 2:
            raise ValueError("A duplicate group needs at least two files")
        if len({f.size for f in files}) != 1:
            raise ValueError("Cannot group files with different sizes")
        if any(f.full_digest is not None and f.full_digest != self.digest for f in files):
            raise ValueError("Cannot group files with different digests")

    @property
    def size(self) -> int:
        """Size of a single member."""
        return self.files[0].size

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files)

    @property
    def potential_savings(self) -> int:
        """Bytes freed by keeping only the most recently modified member."""
        return self.total_size - self.newest_file().size

    def newest_file(self) -> CandidateFile:
        return max(self.files, key=lambda f: f.modified_at)

    def oldest_file(self) -> CandidateFile:
        return min(self.files, key=lambda f: f.modified_at)

    def without(self, paths: Iterable[str]) -> Optional['DuplicateGroup']:
        """
        Returns a copy of the group without the given paths,
        or None if fewer than two members remain.
        """
        removed = {location_key(p) for p in paths}
        remaining = [f for f in self.files if f.location not in removed]
        if len(remaining) < 2:
            return None
        return DuplicateGroup(digest=self.digest, files=tuple(remaining))

    def __repr__(self):
        return f"<DuplicateGroup digest={self.digest[:12]}, count={self.file_count}>"


COMPLETION_MARKER = "Complete"


@dataclass(frozen=True)
class ScanProgress:
    """Snapshot of scan progress, delivered to the progress callback."""
    files_processed: int
    total_files: int
    bytes_processed: int
    total_bytes: int
    current_path: str
    elapsed: float  # seconds
    estimated_remaining: float  # seconds
    stage: ScanState = ScanState.IDLE
    duplicates_found: int = 0

    @property
    def is_complete(self) -> bool:
        return self.current_path == COMPLETION_MARKER

    @property
    def percent(self) -> float:
        if self.total_files <= 0:
            return 100.0
        return self.files_processed / self.total_files * 100

    @property
    def status(self) -> str:
        return f"Processing {self.files_processed}/{self.total_files} files"


class ScanStats:
    """
    Statistics collected during a scan.
    """
    def __init__(self):
        self.total_time: float = 0.0
        self.algorithm: str = ""
        self.stage_stats: Dict[str, Dict[str, Union[int, float]]] = {}

    def update_stage(
            self,
            stage_name: str,
            groups_found: int,
            files_processed: int,
            duration: float
    ) -> None:
        if stage_name not in self.stage_stats:
            self.stage_stats[stage_name] = {
                "groups": 0,
                "files": 0,
                "time": 0.0
            }
        self.stage_stats[stage_name]["groups"] += groups_found
        self.stage_stats[stage_name]["files"] += files_processed
        self.stage_stats[stage_name]["time"] += duration

    def print_summary(self) -> str:
        lines = [
            "Scan Statistics:",
            f"Hash algorithm: {self.algorithm or 'n/a'}",
            f"Total Execution Time: {self.total_time:.3f}s\n",
            "Stage: GROUPS / FILES / TIME"
        ]

        for stage, data in self.stage_stats.items():
            if data["groups"] > 0 or data["time"] > 0:
                lines.append(f"{stage}: {data['groups']} / {data['files']} / {data['time']:.3f}s")

        return "\n".join(lines)


"""
DTO for scan options with built-in validation.
Interface-agnostic. Used by the engine, the command layer and the CLI.
"""

def _normalize_extensions(extensions: Iterable[str]) -> Set[str]:
    # Ensure they start with dot and are lowercase
    normalized = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if ext and not ext.startswith('.'):
            ext = f".{ext}"
        if ext:
            normalized.add(ext)
    return normalized


@dataclass
class ScanOptions:
    """Options recognized by the traversal and the duplicate engine."""
    include_subdirectories: bool = True
    exclude_system_files: bool = True
    exclude_hidden_files: bool = True
    min_file_size: int = 1024
    max_file_size: Optional[int] = None  # None means unbounded
    excluded_extensions: Set[str] = field(default_factory=set)
    included_extensions: Set[str] = field(default_factory=set)
    use_partial_hash: bool = True
    partial_hash_size_kb: int = 64
    max_threads: int = field(default_factory=lambda: os.cpu_count() or 1)
    low_resource_mode: bool = False
    hash_algorithm: HashAlgorithmChoice = HashAlgorithmChoice.AUTO

    def __post_init__(self):
        """Validate options immediately after creation."""
        if self.min_file_size < 0:
            raise ValueError("Minimum size cannot be negative")

        if self.max_file_size is not None and self.max_file_size < self.min_file_size:
            raise ValueError("Maximum size cannot be less than minimum size")

        if self.partial_hash_size_kb <= 0:
            raise ValueError("Partial hash size must be positive")

        if self.max_threads < 1:
            raise ValueError("At least one worker thread is required")

        self.hash_algorithm = HashAlgorithmChoice(self.hash_algorithm)
        self.excluded_extensions = _normalize_extensions(self.excluded_extensions)
        self.included_extensions = _normalize_extensions(self.included_extensions)

    @property
    def partial_hash_bytes(self) -> int:
        return self.partial_hash_size_kb * 1024

    @property
    def worker_count(self) -> int:
        """Effective pool size; low-resource mode caps parallel I/O."""
        if self.low_resource_mode:
            return min(self.max_threads, 2)
        return self.max_threads

    def size_in_range(self, size: int) -> bool:
        if size < self.min_file_size:
            return False
        if self.max_file_size is not None and size > self.max_file_size:
            return False
        return True

    @staticmethod
    def from_human_readable(
            min_size_str: str = "1KB",
            max_size_str: str = "",
            included_extensions_str: str = "",
            excluded_extensions_str: str = "",
            **kwargs
    ) -> 'ScanOptions':
        """
        Factory method to create options from human-readable inputs.
        Useful for CLI argument parsing or config conversion.
        An empty max size means unbounded.
        """
        min_size = ConvertUtils.human_to_bytes(min_size_str)
        max_size = ConvertUtils.human_to_bytes(max_size_str) if max_size_str.strip() else None

        def split(value: str) -> Set[str]:
            return {ext.strip() for ext in value.split(",") if ext.strip()} if value else set()

        return ScanOptions(
            min_file_size=min_size,
            max_file_size=max_size,
            included_extensions=split(included_extensions_str),
            excluded_extensions=split(excluded_extensions_str),
            **kwargs
        )
