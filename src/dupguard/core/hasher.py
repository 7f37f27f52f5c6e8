"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/hasher.py
File hashing behind a pluggable algorithm strategy.

- XXH3Algorithm: xxHash XXH3-128, the fast wide hash (default)
- Sha256Algorithm: hashlib SHA-256, used when the installed xxhash lacks XXH3
- HasherImpl: partial (leading bytes) and full (streamed) digests as lowercase hex
"""

import hashlib
import logging
from typing import Callable, Optional, Union

import xxhash

from dupguard.core.errors import HashError, OperationCancelled
from dupguard.core.interfaces import Digest, HashAlgorithm, Hasher
from dupguard.core.models import HashAlgorithmChoice

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1024 * 1024  # 1 MiB per read when streaming whole files


# Use the same way to implement and use any other hashing algorithm
class XXH3Algorithm(HashAlgorithm):
    name = "xxh3_128"

    def new(self) -> Digest:
        return xxhash.xxh3_128()


class Sha256Algorithm(HashAlgorithm):
    name = "sha256"

    def new(self) -> Digest:
        return hashlib.sha256()


def xxh3_available() -> bool:
    """XXH3 entered python-xxhash in 2.0; older builds only ship xxh32/xxh64."""
    return hasattr(xxhash, "xxh3_128")


def select_algorithm(choice: Union[HashAlgorithmChoice, str] = HashAlgorithmChoice.AUTO) -> HashAlgorithm:
    """
    Resolves an algorithm choice to a strategy object.
    "auto" prefers XXH3-128 and falls back to SHA-256.
    Raises ValueError for unknown names.
    """
    choice = HashAlgorithmChoice(choice)

    if choice == HashAlgorithmChoice.SHA256:
        return Sha256Algorithm()

    if choice == HashAlgorithmChoice.XXH3_128:
        if not xxh3_available():
            raise ValueError("xxh3_128 requested but the installed xxhash does not provide it")
        return XXH3Algorithm()

    if xxh3_available():
        return XXH3Algorithm()
    logger.info("XXH3 not available, falling back to SHA-256")
    return Sha256Algorithm()


class HasherImpl(Hasher):
    """
    A hasher implementation that supports any algorithm via the HashAlgorithm interface.
    Stateless apart from the algorithm, so one instance is shared by all worker threads.
    """

    def __init__(self, algorithm: Optional[HashAlgorithm] = None, chunk_size: int = READ_CHUNK_SIZE):
        self.algorithm = algorithm or select_algorithm()
        self.chunk_size = chunk_size

    def algorithm_name(self) -> str:
        return self.algorithm.name

    def partial_digest(self, path: str, byte_count: int) -> str:
        """
        Digest of the first min(byte_count, file length) bytes.
        Returns "" when nothing could be read (empty file or byte_count <= 0).
        """
        if byte_count <= 0:
            return ""

        digest = self.algorithm.new()
        remaining = byte_count
        total_read = 0
        try:
            with open(path, 'rb') as f:
                while remaining > 0:
                    data = f.read(min(self.chunk_size, remaining))
                    if not data:
                        break
                    digest.update(data)
                    remaining -= len(data)
                    total_read += len(data)
        except OSError as e:
            raise HashError(path, f"Error reading first {byte_count} bytes") from e

        if total_read == 0:
            return ""
        return digest.hexdigest()

    def full_digest(self, path: str, stopped_flag: Optional[Callable[[], bool]] = None) -> str:
        """
        Streams the whole file through the digest in fixed-size chunks.
        Raises OperationCancelled if stopped_flag turns True between chunks.
        """
        digest = self.algorithm.new()
        try:
            with open(path, 'rb') as f:
                while True:
                    if stopped_flag and stopped_flag():
                        raise OperationCancelled(path)
                    data = f.read(self.chunk_size)
                    if not data:
                        break
                    digest.update(data)
        except OSError as e:
            raise HashError(path, "Error reading full content") from e

        return digest.hexdigest()
