"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/classifier.py
Decides whether a path belongs to an operating-system reserved location
(OS install dir, program dirs, shared app data, volume metadata, recycle bin).

Well-known folders are provided by a KnownFolders implementation:
- WindowsKnownFolders: environment-based lookup with hardcoded C:\\ fallbacks
- PosixKnownFolders: alternate root sets for Linux/BSD and macOS
Matching is case-insensitive and respects directory boundaries.
"""

import logging
import ntpath
import os
import sys
from functools import cached_property
from typing import Mapping, Optional, Tuple

from dupguard.core.interfaces import KnownFolders

logger = logging.getLogger(__name__)


class WindowsKnownFolders(KnownFolders):
    """
    Resolves Windows well-known folders from the process environment.
    Every lookup has a default so resolution never fails.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    def _lookup(self, *names: str, default: str) -> str:
        for name in names:
            value = self.environ.get(name, "").strip()
            if value:
                return value
        return default

    def os_dir(self) -> str:
        return self._lookup("SystemRoot", "windir", default=r"C:\Windows")

    def program_files_dirs(self) -> Tuple[str, ...]:
        return (
            self._lookup("ProgramFiles", default=r"C:\Program Files"),
            self._lookup("ProgramFiles(x86)", default=r"C:\Program Files (x86)"),
        )

    def shared_app_data_dir(self) -> str:
        return self._lookup("ProgramData", "ALLUSERSPROFILE", default=r"C:\ProgramData")

    def _system_drive(self) -> str:
        drive, _ = ntpath.splitdrive(self.os_dir())
        return drive or "C:"

    def volume_metadata_dir(self) -> str:
        return ntpath.join(self._system_drive() + "\\", "System Volume Information")

    def recycle_dir(self) -> str:
        return ntpath.join(self._system_drive() + "\\", "$Recycle.Bin")

    def extra_dirs(self) -> Tuple[str, ...]:
        return ()


class PosixKnownFolders(KnownFolders):
    """
    Alternate root set for Unix-like systems.
    macOS and Linux/BSD differ in where the OS, applications and trash live.
    """

    def __init__(self, platform: Optional[str] = None, home: Optional[str] = None):
        self.platform = platform or sys.platform
        self.home = home or os.path.expanduser("~")

    @property
    def is_macos(self) -> bool:
        return self.platform == "darwin"

    def os_dir(self) -> str:
        return "/System" if self.is_macos else "/usr"

    def program_files_dirs(self) -> Tuple[str, ...]:
        if self.is_macos:
            return "/Applications", "/usr"
        return "/opt", "/snap"

    def shared_app_data_dir(self) -> str:
        return "/Library" if self.is_macos else "/var/lib"

    def volume_metadata_dir(self) -> str:
        return "/.Spotlight-V100" if self.is_macos else "/lost+found"

    def recycle_dir(self) -> str:
        # macOS: user-specific .Trash, Linux/BSD: freedesktop.org standard location
        if self.is_macos:
            return os.path.join(self.home, ".Trash")
        return os.path.join(self.home, ".local", "share", "Trash")

    def extra_dirs(self) -> Tuple[str, ...]:
        if self.is_macos:
            return "/bin", "/sbin", "/private/var/db", "/.fseventsd", "/dev", "/cores"
        return ("/bin", "/sbin", "/lib", "/lib32", "/lib64", "/boot",
                "/etc", "/proc", "/sys", "/dev", "/run")


def default_known_folders() -> KnownFolders:
    """Picks the well-known folder source for the running platform."""
    if sys.platform == "win32":
        return WindowsKnownFolders()
    return PosixKnownFolders()


def normalize_path(path: str) -> str:
    """
    Unifies separators to '/', trims whitespace and trailing separators, casefolds.
    """
    normalized = path.strip().replace("\\", "/")
    if len(normalized) > 1:
        normalized = normalized.rstrip("/") or "/"
    return normalized.casefold()


def is_network_path(path: str) -> bool:
    """UNC-style paths (\\\\server\\share or //server/share)."""
    return path.strip().replace("\\", "/").startswith("//")


def is_under_directory(path: str, directory: str) -> bool:
    """
    True if `path` is `directory` itself or lies below it.
    Both arguments must already be normalized.
    """
    if not directory or directory == "/":
        return False
    return path == directory or path.startswith(directory + "/")


class SystemPathClassifier:
    """
    Classifies paths as system-reserved.

    The set of reserved roots is resolved once per classifier from the injected
    KnownFolders source and cached.
    """

    def __init__(self, known_folders: Optional[KnownFolders] = None):
        self.known_folders = known_folders or default_known_folders()

    @cached_property
    def system_roots(self) -> Tuple[str, ...]:
        folders = self.known_folders
        roots = [
            folders.os_dir(),
            *folders.program_files_dirs(),
            folders.shared_app_data_dir(),
            folders.volume_metadata_dir(),
            folders.recycle_dir(),
        ]
        extra = getattr(folders, "extra_dirs", None)
        if extra is not None:
            roots.extend(extra())

        normalized = []
        for root in roots:
            if root and root.strip():
                value = normalize_path(root)
                if value not in normalized:
                    normalized.append(value)
        logger.debug(f"System roots: {normalized}")
        return tuple(normalized)

    def is_system_path(self, path: str) -> bool:
        """
        Returns True if the path lies under one of the system roots.
        Network paths are never system paths. Returns False on any error
        (fail-safe: better to scan than skip valid data).
        """
        try:
            if not path or not path.strip():
                return False
            if is_network_path(path):
                return False

            normalized = normalize_path(path)
            return any(is_under_directory(normalized, root) for root in self.system_roots)
        except Exception as e:
            logger.warning(f"Could not classify path {path!r}: {e}")
            return False
