"""
Shared fixtures for dupguard tests.
Creates isolated temporary directories with controlled test files.
"""
import pytest
import tempfile
from pathlib import Path
from typing import Dict
import sys

# Add src/ to sys.path so the 'dupguard' package is importable without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from dupguard.core.classifier import SystemPathClassifier  # noqa: E402


class EmptyKnownFolders:
    """Known-folder source that reserves nothing, so temp dirs are never system paths."""
    def os_dir(self): return ""
    def program_files_dirs(self): return ()
    def shared_app_data_dir(self): return ""
    def volume_metadata_dir(self): return ""
    def recycle_dir(self): return ""


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def neutral_classifier() -> SystemPathClassifier:
    return SystemPathClassifier(EmptyKnownFolders())


@pytest.fixture
def test_files(temp_dir) -> Dict[str, Path]:
    """
    Creates controlled test files for duplicate scenarios:
    - 3 identical 1KB files (two at top level, one in a subdirectory)
    - 2 identical 2KB files
    - 2 unique files (different sizes)
    - 1 empty file (never grouped)
    - 1 file with .tmp extension
    - 1 hidden file with duplicate content
    """
    files = {}

    # Duplicate set #1 (1KB of 'A')
    content_a = b"A" * 1024
    files["dup1_a"] = temp_dir / "dup1_a.txt"
    files["dup1_b"] = temp_dir / "dup1_b.txt"
    files["dup1_a"].write_bytes(content_a)
    files["dup1_b"].write_bytes(content_a)

    # Duplicate pair #2 (2KB of 'B')
    content_b = b"B" * 2048
    files["dup2_a"] = temp_dir / "dup2_a.bin"
    files["dup2_b"] = temp_dir / "dup2_b.bin"
    files["dup2_a"].write_bytes(content_b)
    files["dup2_b"].write_bytes(content_b)

    # Unique files
    files["unique1"] = temp_dir / "unique1.txt"
    files["unique1"].write_bytes(b"C" * 1500)
    files["unique2"] = temp_dir / "unique2.txt"
    files["unique2"].write_bytes(b"D" * 2500)

    # Empty file
    files["empty"] = temp_dir / "empty.txt"
    files["empty"].write_bytes(b"")

    # Extension-filtered file
    files["filtered"] = temp_dir / "ignore.tmp"
    files["filtered"].write_bytes(b"E" * 1024)

    # Hidden duplicate of content_b (dotfile)
    files["hidden"] = temp_dir / ".hidden_dup.bin"
    files["hidden"].write_bytes(content_b)

    # Subdirectory with duplicates
    subdir = temp_dir / "subdir"
    subdir.mkdir()
    files["sub_dup"] = subdir / "dup_in_subdir.txt"
    files["sub_dup"].write_bytes(content_a)

    return files
