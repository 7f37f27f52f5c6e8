"""
core/errors.py
Exception types raised by the traversal, hashing and engine layers.
"""


class EnumerationError(OSError):
    """A directory or file could not be listed or stat'd. Recovered by the walker."""


class HashError(RuntimeError):
    """A file could not be opened or read while computing its digest."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{message}: {path}")
        self.path = path


class ScanAbortError(RuntimeError):
    """Failure outside the per-file loop; terminates the scan."""


class OperationCancelled(Exception):
    """Raised from inside a chunked read when cancellation is observed."""
