"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/grouper.py
Groups candidate files by an already-computed key (size, partial digest)
and turns confirmed digest buckets into DuplicateGroup objects.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Tuple

from dupguard.core.models import CandidateFile, DuplicateGroup

logger = logging.getLogger(__name__)


class FileGrouperImpl:
    """
    Grouping helpers shared by the pipeline stages.
    Keys are read from the file, never computed here; hashing happens in the stages.
    """

    def group_by_size(self, files: Iterable[CandidateFile]) -> Dict[int, List[CandidateFile]]:
        """Groups files by their size. Empty files are never grouped."""
        return self._group_by(files, lambda f: f.size if f.size > 0 else None)

    def group_by_partial_digest(self, files: Iterable[CandidateFile]) -> Dict[str, List[CandidateFile]]:
        return self._group_by(files, lambda f: f.partial_digest)

    @staticmethod
    def build_groups(buckets: Dict[Tuple[int, str], List[CandidateFile]]) -> List[DuplicateGroup]:
        """
        Converts (size, digest) buckets into duplicate groups.
        Members keep discovery order; groups are ordered by descending file size.
        """
        groups = []
        for (size, digest), files in buckets.items():
            if len(files) < 2:
                continue
            members = sorted(files, key=lambda f: f.sequence)
            groups.append(DuplicateGroup(digest=digest, files=tuple(members)))

        groups.sort(key=lambda g: (-g.size, g.files[0].sequence))
        return groups

    @staticmethod
    def _group_by(files: Iterable[CandidateFile], key_func: Callable[[CandidateFile], Any]) -> Dict[Any, List[CandidateFile]]:
        """
        Helper method to group files by any key.
        Files whose key is None or "" are left out, as are groups with fewer than 2 files.
        """
        groups = defaultdict(list)
        skipped_files = 0
        for file in files:
            key = key_func(file)
            if key is None or key == "":
                skipped_files += 1
                continue
            groups[key].append(file)

        if skipped_files > 0:
            logger.debug(f"Skipped {skipped_files} files without a grouping key")

        return {key: group for key, group in groups.items() if len(group) >= 2}
