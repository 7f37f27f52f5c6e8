"""
DupGuard: exact duplicate file finder.

Core features:
- Exclusion-aware traversal (system locations, hidden files, size and extension filters)
- Size buckets → partial hash → full hash pipeline on a bounded thread pool
- XXH3-128 content hashing with a SHA-256 fallback
- Progress/ETA reporting and cooperative cancellation
- Safe deletion to system trash (via send2trash), JSON/CSV reports
"""

from importlib.metadata import PackageNotFoundError, version as _version

try:
    __version__ = _version("dupguard")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Public API, only what users should import directly
from dupguard.commands import ScanCommand
from dupguard.core import (
    CandidateFile, DuplicateEngine, DuplicateGroup, ScanAbortError, ScanOptions, ScanProgress, ScanState, ScanStats)
from dupguard.services import DuplicateService, FileService, ReportService
from dupguard.utils.convert_utils import ConvertUtils

__all__ = [
    "ScanCommand",
    "DuplicateEngine",
    "ScanOptions",
    "ScanProgress",
    "ScanState",
    "ScanStats",
    "ScanAbortError",
    "CandidateFile",
    "DuplicateGroup",
    "ConvertUtils",
    "DuplicateService",
    "FileService",
    "ReportService",
    "__version__",
]
