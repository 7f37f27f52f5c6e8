"""File operations, duplicate group maintenance and report export services."""

from .duplicate_service import DuplicateService
from .file_service import FileService
from .report_service import ReportService

__all__ = ["DuplicateService", "FileService", "ReportService"]
