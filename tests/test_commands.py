"""
Tests for the ScanCommand orchestrator.
"""
import pytest

from dupguard.commands import ScanCommand
from dupguard.core.engine import DuplicateEngine
from dupguard.core.errors import ScanAbortError
from dupguard.core.filters import ExclusionFilter
from dupguard.core.models import ScanOptions, ScanState, ScanStats
from dupguard.core.scanner import TreeWalker


@pytest.fixture
def command(neutral_classifier):
    return ScanCommand(DuplicateEngine(walker=TreeWalker(ExclusionFilter(neutral_classifier))))


class TestScanCommand:
    def test_returns_groups_and_stats(self, command, test_files, temp_dir):
        groups, stats = command.execute([str(temp_dir)], ScanOptions(min_file_size=1))
        assert len(groups) == 2
        assert isinstance(stats, ScanStats)
        assert "full" in stats.stage_stats
        assert command.state == ScanState.COMPLETED

    def test_progress_and_duplicate_callbacks(self, command, test_files, temp_dir):
        progress = []
        found = []
        groups, _ = command.execute(
            [str(temp_dir)],
            ScanOptions(min_file_size=1),
            progress_callback=progress.append,
            duplicate_callback=found.append,
        )
        assert progress
        assert found == groups

    def test_no_matching_files_raises(self, command, test_files, temp_dir):
        with pytest.raises(RuntimeError, match="No files found matching filters"):
            command.execute([str(temp_dir)], ScanOptions(included_extensions={".nothing"}))

    def test_cancelled_empty_scan_does_not_raise(self, command, test_files, temp_dir):
        groups, _ = command.execute([str(temp_dir)], ScanOptions(), stopped_flag=lambda: True)
        assert groups == []
        assert command.state == ScanState.CANCELLED

    def test_invalid_root_propagates(self, command, temp_dir):
        with pytest.raises(ScanAbortError):
            command.execute([str(temp_dir / "missing")], ScanOptions())
