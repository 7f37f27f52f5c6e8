"""
Core duplicate detection engine: traversal, hashing, grouping and pipeline orchestration.

This package contains the performance-critical foundation of dupguard:
- SystemPathClassifier: recognizes OS-reserved directories
- ExclusionFilter: applies the configured exclusion rules to a file
- TreeWalker: iterative directory traversal
- HasherImpl + XXH3Algorithm / Sha256Algorithm: partial and full content digests
- DuplicateEngine: multi-stage pipeline (size → partial digest → full digest → groups)
- Models: CandidateFile, DuplicateGroup, ScanOptions and progress/statistics objects

Everything here is pure Python with no presentation dependencies.
"""

from .classifier import PosixKnownFolders, SystemPathClassifier, WindowsKnownFolders, default_known_folders
from .engine import DuplicateEngine
from .errors import EnumerationError, HashError, OperationCancelled, ScanAbortError
from .filters import ExclusionFilter
from .grouper import FileGrouperImpl
from .hasher import HasherImpl, Sha256Algorithm, XXH3Algorithm, select_algorithm
from .models import (
    COMPLETION_MARKER, CandidateFile, DuplicateGroup, ExclusionReason, FileAttributes,
    HashAlgorithmChoice, ScanOptions, ScanProgress, ScanState, ScanStats)
from .progress import ProgressTracker
from .scanner import TreeWalker

__all__ = [
    "COMPLETION_MARKER",
    "CandidateFile",
    "DuplicateEngine",
    "DuplicateGroup",
    "EnumerationError",
    "ExclusionFilter",
    "ExclusionReason",
    "FileAttributes",
    "FileGrouperImpl",
    "HashAlgorithmChoice",
    "HashError",
    "HasherImpl",
    "OperationCancelled",
    "PosixKnownFolders",
    "ProgressTracker",
    "ScanAbortError",
    "ScanOptions",
    "ScanProgress",
    "ScanState",
    "ScanStats",
    "Sha256Algorithm",
    "SystemPathClassifier",
    "TreeWalker",
    "WindowsKnownFolders",
    "XXH3Algorithm",
    "default_known_folders",
    "select_algorithm",
]
