"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Implements directory traversal for duplicate detection.
Features:
- Iterative traversal with an explicit work stack (no recursion depth limits)
- Prunes system-reserved subtrees before descending into them
- Applies the exclusion filter to every file
- Skips unreadable entries with a warning; the walk never aborts
- Returns a List of candidate files
"""

import logging
import os
import stat
import time
from typing import Callable, List, Optional, Sequence

from dupguard.core.errors import EnumerationError
from dupguard.core.filters import ExclusionFilter
from dupguard.core.interfaces import FileScanner
from dupguard.core.models import CandidateFile, FileAttributes, ScanOptions

logger = logging.getLogger(__name__)


def attributes_from_stat(name: str, st: os.stat_result) -> FileAttributes:
    """
    Builds attribute flags from a stat result.
    Windows exposes native attributes; elsewhere hidden means a leading dot
    (or the BSD/macOS UF_HIDDEN flag) and read-only means no owner write bit.
    """
    native = getattr(st, "st_file_attributes", None)
    if native is not None:
        return FileAttributes(native & sum(FileAttributes))

    attributes = FileAttributes.NORMAL
    if name.startswith("."):
        attributes |= FileAttributes.HIDDEN
    if getattr(st, "st_flags", 0) & getattr(stat, "UF_HIDDEN", 0):
        attributes |= FileAttributes.HIDDEN
    if not st.st_mode & stat.S_IWUSR:
        attributes |= FileAttributes.READONLY
    return attributes


class TreeWalker(FileScanner):
    """
    Walks root directories and collects files that pass exclusion filtering.

    Attributes:
        exclusion_filter: Filter applied to every file found
        progress_interval: Number of files between progress callbacks
    """

    def __init__(self, exclusion_filter: Optional[ExclusionFilter] = None, progress_interval: int = 5000):
        self.exclusion_filter = exclusion_filter or ExclusionFilter()
        self.progress_interval = progress_interval

    @property
    def classifier(self):
        return self.exclusion_filter.classifier

    def walk(self,
             roots: Sequence[str],
             options: ScanOptions,
             stopped_flag: Optional[Callable[[], bool]] = None,
             progress_callback: Optional[Callable[[str, int, object], None]] = None) -> List[CandidateFile]:
        """
        Single-pass traversal with progress updates and debug logging.
        Returns the candidate files found under all roots, in traversal order.
        """
        logger.debug("Starting walk")
        logger.debug(f"Roots: {list(roots)}")
        logger.debug(f"Filters: min_size={options.min_file_size}, max_size={options.max_file_size}, "
                     f"include={sorted(options.included_extensions)}, exclude={sorted(options.excluded_extensions)}")

        found_files: List[CandidateFile] = []
        start_time = time.time()
        progress_counter = 0

        # Reversed so that the first root (and first subdirectory) is popped first
        pending: List[str] = [os.path.abspath(root) for root in reversed(roots)]

        while pending:
            # Check for cancellation at each directory level
            if stopped_flag and stopped_flag():
                logger.debug("Walk interrupted by user")
                break

            current_dir = pending.pop()
            if not current_dir.strip():
                continue

            if options.exclude_system_files and self.classifier.is_system_path(current_dir):
                logger.debug(f"Skipping system directory: {current_dir}")
                continue

            try:
                entries = self._list_directory(current_dir)
            except EnumerationError as e:
                logger.warning(str(e))
                continue

            subdirs = []
            for entry in entries:
                try:
                    if entry.is_symlink():
                        logger.debug(f"Skipping symbolic link: {entry.path}")
                        continue

                    if entry.is_dir(follow_symlinks=False):
                        subdirs.append(entry.path)
                        continue

                    if not entry.is_file(follow_symlinks=False):
                        continue
                except OSError as e:
                    logger.warning(f"Could not inspect {entry.path}: {e}")
                    continue

                try:
                    file = self._build_candidate(entry)
                except EnumerationError as e:
                    logger.warning(str(e))
                    continue

                excluded, _ = self.exclusion_filter.evaluate(file, options)
                if excluded:
                    continue

                found_files.append(file)
                progress_counter += 1

                # Update progress only when threshold reached
                if progress_callback and progress_counter >= self.progress_interval:
                    progress_callback("Enumerating", len(found_files), None)
                    progress_counter = 0

            if not options.include_subdirectories:
                continue

            for sub in reversed(subdirs):
                if options.exclude_system_files and self.classifier.is_system_path(sub):
                    logger.debug(f"Skipping system directory: {sub}")
                    continue
                pending.append(sub)

        # Final update for small datasets
        if progress_callback and progress_counter > 0:
            progress_callback("Enumerating", len(found_files), None)

        logger.debug(f"Total walk time: {time.time() - start_time:.2f} seconds")
        logger.debug(f"Walk completed. Found {len(found_files)} candidate files.")
        return found_files

    @staticmethod
    def _list_directory(path: str) -> List[os.DirEntry]:
        """Reads the immediate entries of a directory."""
        try:
            with os.scandir(path) as it:
                return list(it)
        except OSError as e:
            raise EnumerationError(e.errno, f"Failed to enumerate {path}: {e.strerror or e}", path) from e

    @staticmethod
    def _build_candidate(entry: os.DirEntry) -> CandidateFile:
        """Stats a directory entry and wraps it in a CandidateFile."""
        try:
            st = entry.stat(follow_symlinks=False)
        except OSError as e:
            raise EnumerationError(e.errno, f"Could not stat {entry.path}: {e.strerror or e}", entry.path) from e

        return CandidateFile(
            path=entry.path,
            size=st.st_size,
            created_at=getattr(st, "st_birthtime", st.st_ctime),
            modified_at=st.st_mtime,
            attributes=attributes_from_stat(entry.name, st),
        )
