"""
Unified command orchestrator for duplicate scanning.
This is the single entry point for business logic used by the CLI and by library callers.
"""
from typing import Callable, List, Optional, Sequence, Tuple

from dupguard.core.engine import DuplicateEngine
from dupguard.core.models import DuplicateGroup, ScanOptions, ScanProgress, ScanState, ScanStats


class ScanCommand:
    """
    Orchestrates a complete scan:
    1. Walk the root directories with exclusion filtering
    2. Run the duplicate engine with progress/cancellation support
    3. Hand back the groups together with per-stage statistics

    Usage:
        options = ScanOptions.from_human_readable("500KB", "", ".jpg,.png")
        command = ScanCommand()
        groups, stats = command.execute(
            ["/home/user/Pictures"],
            options,
            progress_callback=cli_progress_printer,
            stopped_flag=signal_handler_check
        )
    """

    def __init__(self, engine: Optional[DuplicateEngine] = None):
        self._engine = engine or DuplicateEngine()

    @property
    def state(self) -> ScanState:
        return self._engine.state

    def execute(
            self,
            roots: Sequence[str],
            options: ScanOptions,
            progress_callback: Optional[Callable[[ScanProgress], None]] = None,
            stopped_flag: Optional[Callable[[], bool]] = None,
            duplicate_callback: Optional[Callable[[DuplicateGroup], None]] = None
    ) -> Tuple[List[DuplicateGroup], ScanStats]:
        """
        Execute a scan with the given options.

        Returns:
            Tuple of (duplicate_groups, statistics)

        Raises:
            ScanAbortError: If the roots are invalid or the scan fails
            RuntimeError: If no file under the roots passed the filters
        """
        stats = ScanStats()
        groups = self._engine.scan(
            roots,
            options,
            stopped_flag=stopped_flag,
            on_progress=progress_callback,
            on_duplicate_found=duplicate_callback,
            stats=stats
        )

        if self._engine.candidate_count == 0 and self._engine.state != ScanState.CANCELLED:
            raise RuntimeError("No files found matching filters")

        return groups, stats
