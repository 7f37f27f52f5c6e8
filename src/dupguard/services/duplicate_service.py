from typing import Iterable, List, Optional, Tuple

from dupguard.core.models import DuplicateGroup


class DuplicateService:
    @staticmethod
    def remove_files_from_groups(groups: List[DuplicateGroup], file_paths: Iterable[str]) -> List[DuplicateGroup]:
        """
        Removes files with the specified paths from all duplicate groups.

        Paths are compared by resolved location, so differently spelled paths to one file match.
        Groups left with fewer than 2 files are dissolved.

        Args:
            groups: Duplicate groups to update.
            file_paths: Paths of files that were deleted or should be dropped.

        Returns:
            A new list of groups; the input groups are not modified.
        """
        file_paths = list(file_paths)
        updated_groups = []
        for group in groups:
            remaining = group.without(file_paths)
            if remaining is not None:
                updated_groups.append(remaining)
        return updated_groups

    @staticmethod
    def keep_newest_file_per_group(groups: List[DuplicateGroup]) -> Tuple[List[str], List[DuplicateGroup]]:
        """
        Keeps the most recently modified file of each group and marks the rest for deletion.
        Returns:
            - List of file paths to be deleted
            - Updated list of duplicate groups (empty once every group is reduced to one file)
        """
        files_to_delete = []
        for group in groups:
            keep = group.newest_file()
            files_to_delete.extend(f.path for f in group.files if f is not keep)

        updated_groups = DuplicateService.remove_files_from_groups(groups, files_to_delete)
        return files_to_delete, updated_groups

    @staticmethod
    def filter_groups(groups: List[DuplicateGroup], search: Optional[str] = None,
                      extension: Optional[str] = None, min_size: int = 0) -> List[DuplicateGroup]:
        """
        Narrows a result list without touching the groups themselves.
        A group stays when at least one member passes every given condition:
        size >= min_size, matching extension, and search text found anywhere in the
        path (case-insensitive). Empty conditions match everything.
        """
        search = (search or "").strip().casefold()
        ext = (extension or "").strip().lower()
        if ext and not ext.startswith("."):
            ext = "." + ext

        def matches(file) -> bool:
            if file.size < min_size:
                return False
            if ext and file.extension != ext:
                return False
            if not search:
                return True
            return search in file.path.casefold()

        return [g for g in groups if any(matches(f) for f in g.files)]

    @staticmethod
    def total_savings(groups: List[DuplicateGroup]) -> int:
        """Bytes reclaimable if every group kept only its newest file."""
        return sum(g.potential_savings for g in groups)
