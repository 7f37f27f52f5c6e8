"""
core/filters.py
Applies the configured exclusion rules to a single candidate file.

Rules run in a fixed priority order and the first match wins:
    system → hidden → size bounds → excluded extension → include list
"""

import logging
from typing import Optional, Tuple

from dupguard.core.classifier import SystemPathClassifier
from dupguard.core.models import CandidateFile, ExclusionReason, ScanOptions

logger = logging.getLogger(__name__)


class ExclusionFilter:
    """
    Evaluates exclusion rules and records the outcome on the file itself.
    """

    def __init__(self, classifier: Optional[SystemPathClassifier] = None):
        self.classifier = classifier or SystemPathClassifier()

    def is_system_file(self, file: CandidateFile) -> bool:
        return file.is_system or self.classifier.is_system_path(file.path)

    def _first_matching_rule(self, file: CandidateFile, options: ScanOptions) -> Optional[ExclusionReason]:
        if options.exclude_system_files and self.is_system_file(file):
            return ExclusionReason.SYSTEM

        if options.exclude_hidden_files and file.is_hidden:
            return ExclusionReason.HIDDEN

        if not options.size_in_range(file.size):
            return ExclusionReason.SIZE

        if file.extension in options.excluded_extensions:
            return ExclusionReason.EXCLUDED_EXTENSION

        if options.included_extensions and file.extension not in options.included_extensions:
            return ExclusionReason.UNLISTED_EXTENSION

        return None

    def evaluate(self, file: CandidateFile, options: ScanOptions) -> Tuple[bool, Optional[ExclusionReason]]:
        """
        Returns (excluded, reason) and stores both on the file.
        Errors are logged and treated as "not excluded" so no legitimate file is lost.
        """
        file.excluded = False
        file.exclusion_reason = None

        try:
            reason = self._first_matching_rule(file, options)
        except Exception as e:
            logger.warning(f"Failed to evaluate exclusion rules for {file.path}: {e}")
            return False, None

        if reason is not None:
            file.excluded = True
            file.exclusion_reason = reason
            logger.debug(f"Skipping {file.path} ({reason.value})")
        return file.excluded, file.exclusion_reason
