"""
Tests for duplicate group maintenance after deletions.
"""
from dupguard.core.models import CandidateFile, DuplicateGroup
from dupguard.services.duplicate_service import DuplicateService


def make_group(digest, *files):
    return DuplicateGroup(digest=digest, files=tuple(
        CandidateFile(path=path, size=100, modified_at=mtime, full_digest=digest) for path, mtime in files
    ))


class TestRemoveFilesFromGroups:
    def test_removes_paths_and_keeps_valid_groups(self):
        groups = [
            make_group("a", ("/a1", 1), ("/a2", 2), ("/a3", 3)),
            make_group("b", ("/b1", 1), ("/b2", 2)),
        ]
        updated = DuplicateService.remove_files_from_groups(groups, ["/a1", "/b1"])

        assert len(updated) == 1
        assert [f.path for f in updated[0].files] == ["/a2", "/a3"]
        assert groups[0].file_count == 3  # input untouched

    def test_matches_unnormalized_paths(self):
        groups = [make_group("a", ("/Data/One", 1), ("/Data/Two", 2), ("/Data/Three", 3))]
        updated = DuplicateService.remove_files_from_groups(groups, ["/Data/x/../One"])
        assert [f.path for f in updated[0].files] == ["/Data/Two", "/Data/Three"]

    def test_unknown_paths_change_nothing(self):
        groups = [make_group("a", ("/a1", 1), ("/a2", 2))]
        assert DuplicateService.remove_files_from_groups(groups, ["/zzz"]) == groups


class TestKeepNewest:
    def test_keeps_most_recently_modified(self):
        groups = [
            make_group("a", ("/old", 10), ("/newest", 30), ("/mid", 20)),
            make_group("b", ("/b_new", 5), ("/b_old", 1)),
        ]
        to_delete, remaining = DuplicateService.keep_newest_file_per_group(groups)

        assert sorted(to_delete) == ["/b_old", "/mid", "/old"]
        assert remaining == []

    def test_empty_input(self):
        assert DuplicateService.keep_newest_file_per_group([]) == ([], [])

    def test_total_savings(self):
        groups = [make_group("a", ("/a1", 1), ("/a2", 2), ("/a3", 3))]
        assert DuplicateService.total_savings(groups) == 200


class TestFilterGroups:
    def setup_method(self):
        self.photos = DuplicateGroup(digest="p", files=(
            CandidateFile(path="/home/Alice/Photos/beach.JPG", size=5000, full_digest="p"),
            CandidateFile(path="/backup/beach.jpg", size=5000, full_digest="p"),
        ))
        self.docs = DuplicateGroup(digest="d", files=(
            CandidateFile(path="/home/alice/docs/notes.txt", size=200, full_digest="d"),
            CandidateFile(path="/backup/notes.txt", size=200, full_digest="d"),
        ))
        self.groups = [self.photos, self.docs]

    def test_no_conditions_keeps_everything(self):
        assert DuplicateService.filter_groups(self.groups) == self.groups
        assert DuplicateService.filter_groups(self.groups, search="  ", extension="") == self.groups

    def test_search_is_case_insensitive_over_whole_path(self):
        assert DuplicateService.filter_groups(self.groups, search="ALICE") == self.groups
        assert DuplicateService.filter_groups(self.groups, search="photos") == [self.photos]
        assert DuplicateService.filter_groups(self.groups, search="nowhere") == []

    def test_extension_with_or_without_dot(self):
        assert DuplicateService.filter_groups(self.groups, extension="txt") == [self.docs]
        assert DuplicateService.filter_groups(self.groups, extension=".JPG") == [self.photos]

    def test_min_size(self):
        assert DuplicateService.filter_groups(self.groups, min_size=1000) == [self.photos]

    def test_conditions_must_hold_for_the_same_file(self):
        # "Photos" only appears in the path of a .JPG file
        assert DuplicateService.filter_groups(self.groups, search="Photos", extension="txt") == []
        assert DuplicateService.filter_groups(self.groups, search="backup", extension="txt") == [self.docs]
