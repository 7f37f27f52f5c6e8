"""
End-to-end tests for the duplicate engine on real temporary directory trees.
"""
import os
import threading

import pytest

from dupguard.core.engine import DuplicateEngine
from dupguard.core.errors import HashError, ScanAbortError
from dupguard.core.filters import ExclusionFilter
from dupguard.core.hasher import HasherImpl, Sha256Algorithm
from dupguard.core.models import COMPLETION_MARKER, ScanOptions, ScanState, ScanStats
from dupguard.core.scanner import TreeWalker


@pytest.fixture
def engine(neutral_classifier):
    return DuplicateEngine(walker=TreeWalker(ExclusionFilter(neutral_classifier)))


def group_sets(groups):
    return {g.digest: frozenset(os.path.basename(f.path) for f in g.files) for g in groups}


class TestDuplicateEngine:
    def test_reference_example(self, engine, temp_dir):
        """A and B match; C differs in content; D differs in size."""
        (temp_dir / "A").write_bytes(b"\x58" * 2048)
        (temp_dir / "B").write_bytes(b"\x58" * 2048)
        (temp_dir / "C").write_bytes(b"\x59" * 2048)
        (temp_dir / "D").write_bytes(b"\x58" * 4096)

        groups = engine.scan([str(temp_dir)], ScanOptions(min_file_size=1024))

        assert len(groups) == 1
        assert {os.path.basename(f.path) for f in groups[0].files} == {"A", "B"}
        assert engine.state == ScanState.COMPLETED

    def test_files_below_min_size_never_grouped(self, engine, temp_dir):
        (temp_dir / "x").write_bytes(b"q" * 512)
        (temp_dir / "y").write_bytes(b"q" * 512)
        assert engine.scan([str(temp_dir)], ScanOptions(min_file_size=1024)) == []

    def test_fixture_tree(self, engine, test_files, temp_dir):
        groups = engine.scan([str(temp_dir)], ScanOptions(min_file_size=1))
        sets = set(group_sets(groups).values())
        assert frozenset({"dup1_a.txt", "dup1_b.txt", "dup_in_subdir.txt"}) in sets
        assert frozenset({"dup2_a.bin", "dup2_b.bin"}) in sets
        assert len(groups) == 2

    def test_group_invariants(self, engine, test_files, temp_dir):
        for group in engine.scan([str(temp_dir)], ScanOptions(min_file_size=1)):
            assert group.file_count >= 2
            assert len({f.size for f in group.files}) == 1
            assert {f.full_digest for f in group.files} == {group.digest}
            sequences = [f.sequence for f in group.files]
            assert sequences == sorted(sequences)

    def test_empty_files_never_grouped(self, engine, temp_dir):
        (temp_dir / "e1").write_bytes(b"")
        (temp_dir / "e2").write_bytes(b"")
        assert engine.scan([str(temp_dir)], ScanOptions(min_file_size=0)) == []

    def test_shared_prefix_not_reported(self, engine, temp_dir):
        """Same first 64KB, different tail: never a duplicate, with or without partial hashing."""
        prefix = b"P" * 64 * 1024
        (temp_dir / "one").write_bytes(prefix + b"tail-1")
        (temp_dir / "two").write_bytes(prefix + b"tail-2")

        assert engine.scan([str(temp_dir)], ScanOptions(use_partial_hash=True)) == []
        assert engine.scan([str(temp_dir)], ScanOptions(use_partial_hash=False)) == []

    def test_partial_hash_does_not_change_result(self, engine, test_files, temp_dir):
        with_partial = engine.scan([str(temp_dir)], ScanOptions(min_file_size=1, partial_hash_size_kb=1))
        without_partial = engine.scan([str(temp_dir)], ScanOptions(min_file_size=1, use_partial_hash=False))
        assert group_sets(with_partial) == group_sets(without_partial)

    def test_idempotent(self, engine, test_files, temp_dir):
        first = engine.scan([str(temp_dir)], ScanOptions(min_file_size=1))
        second = engine.scan([str(temp_dir)], ScanOptions(min_file_size=1))
        assert group_sets(first) == group_sets(second)

    def test_algorithm_choice_changes_digest_not_groups(self, engine, test_files, temp_dir):
        xxh = engine.scan([str(temp_dir)], ScanOptions(min_file_size=1, hash_algorithm="xxh3_128"))
        sha = engine.scan([str(temp_dir)], ScanOptions(min_file_size=1, hash_algorithm="sha256"))
        assert set(group_sets(xxh).values()) == set(group_sets(sha).values())
        assert all(len(g.digest) == 64 for g in sha)
        assert all(len(g.digest) == 32 for g in xxh)

    def test_cross_root_duplicates(self, engine, temp_dir):
        left = temp_dir / "left"
        right = temp_dir / "right"
        left.mkdir()
        right.mkdir()
        (left / "copy.bin").write_bytes(b"r" * 4096)
        (right / "copy.bin").write_bytes(b"r" * 4096)

        groups = engine.scan([str(left), str(right)], ScanOptions())
        assert len(groups) == 1
        assert groups[0].files[0].path.startswith(str(left))

    def test_overlapping_roots_count_each_file_once(self, engine, test_files, temp_dir):
        groups = engine.scan([str(temp_dir), str(temp_dir / "subdir")], ScanOptions(min_file_size=1))
        for group in groups:
            paths = [f.path for f in group.files]
            assert len(paths) == len(set(paths))

    def test_case_variant_names_are_separate_files(self, engine, temp_dir):
        (temp_dir / "Photo.jpg").write_bytes(b"z" * 4096)
        (temp_dir / "photo.jpg").write_bytes(b"z" * 4096)
        if len(os.listdir(temp_dir)) != 2:
            pytest.skip("file system is case-insensitive")

        groups = engine.scan([str(temp_dir), str(temp_dir)], ScanOptions(min_file_size=1))

        assert engine.candidate_count == 2
        assert len(groups) == 1
        assert sorted(os.path.basename(f.path) for f in groups[0].files) == ["Photo.jpg", "photo.jpg"]

    def test_progress_events(self, engine, test_files, temp_dir):
        events = []
        engine.scan([str(temp_dir)], ScanOptions(min_file_size=1), on_progress=events.append)

        hashing = [e for e in events if e.stage != ScanState.ENUMERATING]
        assert hashing
        final = events[-1]
        assert final.current_path == COMPLETION_MARKER
        assert final.files_processed == final.total_files
        assert final.bytes_processed == final.total_bytes
        assert all(e.files_processed <= e.total_files for e in hashing)

    def test_duplicate_callback_receives_each_group_once(self, engine, test_files, temp_dir):
        found = []
        groups = engine.scan([str(temp_dir)], ScanOptions(min_file_size=1), on_duplicate_found=found.append)
        assert found == groups

    def test_stats_filled(self, engine, test_files, temp_dir):
        stats = ScanStats()
        engine.scan([str(temp_dir)], ScanOptions(min_file_size=1), stats=stats)
        assert stats.algorithm
        assert {"enumerate", "size", "partial", "full", "grouping"} <= set(stats.stage_stats)
        assert stats.total_time >= 0

    def test_injected_hasher_used(self, neutral_classifier, test_files, temp_dir):
        engine = DuplicateEngine(walker=TreeWalker(ExclusionFilter(neutral_classifier)),
                                 hasher=HasherImpl(Sha256Algorithm()))
        stats = ScanStats()
        engine.scan([str(temp_dir)], ScanOptions(min_file_size=1), stats=stats)
        assert stats.algorithm == "sha256"

    def test_low_resource_mode_same_result(self, engine, test_files, temp_dir):
        normal = engine.scan([str(temp_dir)], ScanOptions(min_file_size=1, max_threads=4))
        low = engine.scan([str(temp_dir)], ScanOptions(min_file_size=1, max_threads=4, low_resource_mode=True))
        assert group_sets(normal) == group_sets(low)


class TestCancellation:
    def test_cancel_before_start(self, engine, test_files, temp_dir):
        groups = engine.scan([str(temp_dir)], ScanOptions(min_file_size=1), stopped_flag=lambda: True)
        assert groups == []
        assert engine.state == ScanState.CANCELLED

    def test_cancel_during_full_hash_returns_subset(self, engine, temp_dir):
        for i in range(6):
            content = bytes([i]) * (2048 + i * 10)
            (temp_dir / f"a{i}").write_bytes(content)
            (temp_dir / f"b{i}").write_bytes(content)

        options = ScanOptions(use_partial_hash=False, max_threads=1)
        complete = group_sets(engine.scan([str(temp_dir)], options))
        assert len(complete) == 6

        stop = threading.Event()
        processed = []

        def on_progress(progress):
            if progress.stage == ScanState.FULL_HASHING:
                processed.append(progress.current_path)
                if len(processed) >= 5:
                    stop.set()

        partial = group_sets(engine.scan([str(temp_dir)], options, stopped_flag=stop.is_set, on_progress=on_progress))

        assert engine.state == ScanState.CANCELLED
        assert len(partial) < len(complete)
        for digest, members in partial.items():
            assert complete[digest] == members


class TestFailures:
    def test_no_roots(self, engine):
        with pytest.raises(ScanAbortError):
            engine.scan([], ScanOptions())

    def test_missing_root(self, engine, temp_dir):
        with pytest.raises(ScanAbortError, match="does not exist"):
            engine.scan([str(temp_dir / "nope")], ScanOptions())

    def test_root_is_file(self, engine, temp_dir):
        path = temp_dir / "file.txt"
        path.write_text("x")
        with pytest.raises(ScanAbortError, match="Not a directory"):
            engine.scan([str(path)], ScanOptions())

    def test_unexpected_failure_wrapped(self, temp_dir):
        class BrokenWalker:
            def walk(self, *args, **kwargs):
                raise KeyError("broken")

        with pytest.raises(ScanAbortError):
            DuplicateEngine(walker=BrokenWalker()).scan([str(temp_dir)], ScanOptions())

    def test_unreadable_file_dropped(self, engine, temp_dir, monkeypatch):
        (temp_dir / "a").write_bytes(b"k" * 2048)
        (temp_dir / "b").write_bytes(b"k" * 2048)
        (temp_dir / "c").write_bytes(b"k" * 2048)

        real_full = HasherImpl.full_digest

        def failing(self, path, stopped_flag=None):
            if path.endswith(os.sep + "c"):
                raise HashError(path, "Error reading full content")
            return real_full(self, path, stopped_flag)

        monkeypatch.setattr(HasherImpl, "full_digest", failing)
        groups = engine.scan([str(temp_dir)], ScanOptions())
        assert len(groups) == 1
        assert {os.path.basename(f.path) for f in groups[0].files} == {"a", "b"}
