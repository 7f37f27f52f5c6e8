#!/usr/bin/env python3
"""
DupGuard CLI: command line interface for duplicate file detection and removal.
All operations are safe: deletion moves files to system trash, never permanent erase.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import logging
import os
import signal
import sys
import threading
import time
from typing import List, NoReturn, Optional

logging.basicConfig(
    level=logging.ERROR,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

# === EARLY DEPENDENCY VALIDATION ===
_MISSING_DEPS = []
try:
    import send2trash  # noqa: F401
except ImportError:
    _MISSING_DEPS.append("send2trash")

try:
    import xxhash  # noqa: F401
except ImportError:
    _MISSING_DEPS.append("xxhash")

if _MISSING_DEPS:
    print("❌ Missing required dependencies:", file=sys.stderr)
    print(f"   pip install {' '.join(_MISSING_DEPS)}", file=sys.stderr)
    sys.exit(1)

# === NORMAL IMPORTS (after validation) ===
from dupguard.aliases import ALGORITHM_ALIASES, ALGORITHM_CHOICES, ALGORITHM_HELP_TEXT, EPILOG_TEXT
from dupguard.commands import ScanCommand
from dupguard.core.errors import ScanAbortError
from dupguard.core.models import DuplicateGroup, ScanOptions, ScanProgress, ScanState
from dupguard.services.duplicate_service import DuplicateService
from dupguard.services.file_service import FileService
from dupguard.services.report_service import ReportService
from dupguard.utils.convert_utils import ConvertUtils


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self.cancel_event = threading.Event()

        # Fix encoding for Windows consoles to prevent UnicodeEncodeError
        for stream in (sys.stdout, sys.stderr):
            reconfigure = getattr(stream, "reconfigure", None)
            if reconfigure is not None:
                reconfigure(encoding='utf-8')

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="dupguard",
            description="DupGuard: find byte-identical files and move extras to trash",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        # Required arguments
        parser.add_argument(
            "--input", "-i",
            required=True,
            nargs="+",
            type=str,
            metavar='DIR',
            help="One or more directories to scan for duplicates"
        )

        # Filtering options
        parser.add_argument(
            "--min-size", "-m",
            default="1KB",
            type=str,
            metavar='',
            help="Minimum file size (e.g., 500KB, 1MB). Default: 1KB"
        )
        parser.add_argument(
            "--max-size", "-M",
            default="",
            type=str,
            metavar='',
            help="Maximum file size (e.g., 10MB, 1GB). Default: unlimited"
        )
        parser.add_argument(
            "--extensions", "-x",
            nargs="+",
            default=[],
            type=str,
            metavar='',
            help="Only scan these extensions (space separated, e.g., .jpg .png)"
        )
        parser.add_argument(
            "--exclude-ext",
            nargs="+",
            default=[],
            type=str,
            metavar='',
            dest="exclude_ext",
            help="Never scan these extensions (space separated, e.g., .tmp .log)"
        )
        parser.add_argument(
            "--no-subdirs",
            action="store_true",
            help="Scan only the top level of each input directory"
        )
        parser.add_argument(
            "--include-hidden",
            action="store_true",
            help="Also scan hidden files"
        )
        parser.add_argument(
            "--include-system",
            action="store_true",
            help="Also scan system files and OS-reserved directories"
        )

        # Hashing options
        parser.add_argument(
            "--no-partial-hash",
            action="store_true",
            help="Skip the partial-hash prefilter and hash every same-size file in full"
        )
        parser.add_argument(
            "--partial-hash-kb",
            default=64,
            type=int,
            metavar='',
            help="Kilobytes read for the partial hash. Default: 64"
        )
        parser.add_argument(
            "--threads",
            default=os.cpu_count() or 1,
            type=int,
            metavar='',
            help="Number of hashing threads. Default: number of CPUs"
        )
        parser.add_argument(
            "--low-resource",
            action="store_true",
            help="Limit parallel disk reads (at most 2 threads)"
        )
        parser.add_argument(
            "--algorithm",
            choices=ALGORITHM_CHOICES,
            default="auto",
            type=str,
            help=ALGORITHM_HELP_TEXT
        )

        # Result filters
        parser.add_argument(
            "--search",
            default=None,
            type=str,
            metavar='TEXT',
            help="Only keep groups with a file whose path contains TEXT (case-insensitive). "
                 "Applies to output, reports and --keep-one"
        )
        parser.add_argument(
            "--show-ext",
            default=None,
            type=str,
            metavar='EXT',
            help="Only keep groups with a file of this extension"
        )

        # Export
        parser.add_argument(
            "--json",
            default=None,
            type=str,
            metavar='FILE',
            help="Write the duplicate groups to a JSON report"
        )
        parser.add_argument(
            "--csv",
            default=None,
            type=str,
            metavar='FILE',
            help="Write the duplicate groups to a CSV report"
        )

        # Actions
        parser.add_argument(
            "--keep-one",
            action="store_true",
            help="Keep the newest file per duplicate group and move the rest to trash. "
                 "Always shows preview before deletion for safety."
        )

        # Output options
        parser.add_argument(
            "--force",
            action="store_true",
            help="Skip confirmation prompt when used with --keep-one (for automation/scripts)"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show progress, statistics and informational log messages"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        if args.force and not args.keep_one:
            self.error_exit("--force can only be used with --keep-one")

        # Prevent interactive confirmation in non-TTY environments
        if args.keep_one and not args.force:
            if not sys.stdin.isatty() or not sys.stdout.isatty():
                self.error_exit(
                    "Cannot request interactive confirmation in non-interactive session.\n"
                    "Use --force flag to proceed without confirmation when piping output or running in scripts."
                )

        for root in args.input:
            if not os.path.exists(root):
                self.error_exit(f"Directory not found: {root}")
            if not os.path.isdir(root):
                self.error_exit(f"Path is not a directory: {root}")

        if not ConvertUtils.is_valid_size_format(args.min_size):
            self.error_exit(f"Invalid size format: {args.min_size}")
        if args.max_size and not ConvertUtils.is_valid_size_format(args.max_size):
            self.error_exit(f"Invalid size format: {args.max_size}")

    def create_options(self, args: argparse.Namespace) -> ScanOptions:
        """Create ScanOptions from CLI arguments."""
        try:
            return ScanOptions.from_human_readable(
                min_size_str=args.min_size,
                max_size_str=args.max_size,
                included_extensions_str=",".join(args.extensions),
                excluded_extensions_str=",".join(args.exclude_ext),
                include_subdirectories=not args.no_subdirs,
                exclude_hidden_files=not args.include_hidden,
                exclude_system_files=not args.include_system,
                use_partial_hash=not args.no_partial_hash,
                partial_hash_size_kb=args.partial_hash_kb,
                max_threads=args.threads,
                low_resource_mode=args.low_resource,
                hash_algorithm=ALGORITHM_ALIASES[args.algorithm],
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def progress_callback(self, progress: ScanProgress) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return

        if progress.stage == ScanState.ENUMERATING:
            sys.stderr.write(f"\r  [{progress.stage.value}] {progress.total_files} files found...")
        else:
            eta = ConvertUtils.seconds_to_human(progress.estimated_remaining)
            sys.stderr.write(
                f"\r  [{progress.stage.value}] {progress.status} ({progress.percent:.1f}%) ETA {eta}"
            )
        sys.stderr.flush()

    def stopped_flag(self) -> bool:
        """True once Ctrl+C was pressed."""
        return self.cancel_event.is_set()

    def _handle_sigint(self, signum, frame) -> None:
        if self.cancel_event.is_set():
            print("\n⚠️  Operation cancelled by user (Ctrl+C)", file=sys.stderr)
            os._exit(130)
        self.cancel_event.set()
        print("\n⚠️  Stopping scan... press Ctrl+C again to quit immediately", file=sys.stderr)

    def run_scan(self, roots: List[str], options: ScanOptions) -> List[DuplicateGroup]:
        """Execute the scan workflow."""
        command = ScanCommand()
        previous_handler = signal.signal(signal.SIGINT, self._handle_sigint)
        try:
            groups, stats = command.execute(
                roots,
                options,
                progress_callback=self.progress_callback if self.verbose else None,
                stopped_flag=self.stopped_flag
            )
        except (ScanAbortError, RuntimeError) as e:
            self.error_exit(f"Scan failed: {e}")
        finally:
            signal.signal(signal.SIGINT, previous_handler)

        if self.verbose:
            sys.stderr.write("\n")
            print("\nScan Statistics:")
            print(stats.print_summary())

        if command.state == ScanState.CANCELLED:
            self.warning(f"Scan cancelled; showing {len(groups)} fully confirmed groups")

        return groups

    def output_results(self, groups: List[DuplicateGroup]) -> None:
        """Output duplicate groups as plain text."""
        if self.quiet:
            return

        if not groups:
            print("No duplicate groups found.")
            return

        total_files = sum(g.file_count for g in groups)
        savings = ConvertUtils.bytes_to_human(DuplicateService.total_savings(groups))
        print(f"\nFound {len(groups)} duplicate groups ({total_files} files, {savings} reclaimable)")

        for idx, group in enumerate(groups, 1):
            size_str = ConvertUtils.bytes_to_human(group.size)
            print(f"\n📁 Group {idx} | Size: {size_str} | Files: {group.file_count} | Hash: {group.digest[:16]}")
            for file in group.files:
                modified = ConvertUtils.timestamp_to_human(file.modified_at)
                print(f"   {file.path} [{modified}]")

    def export_reports(self, groups: List[DuplicateGroup], args: argparse.Namespace) -> None:
        try:
            if args.json:
                ReportService.write_json(groups, args.json)
                if not self.quiet:
                    print(f"JSON report written to {args.json}")
            if args.csv:
                ReportService.write_csv(groups, args.csv)
                if not self.quiet:
                    print(f"CSV report written to {args.csv}")
        except OSError as e:
            self.error_exit(f"Failed to write report: {e}")

    def execute_keep_one(self, groups: List[DuplicateGroup], force: bool = False) -> None:
        """Keep the newest file per group, trash the rest. Always shows preview before deletion."""
        if not groups:
            if not self.quiet:
                print("No duplicate groups found.")
            return

        files_to_delete, _ = DuplicateService.keep_newest_file_per_group(groups)
        space_saved_str = ConvertUtils.bytes_to_human(DuplicateService.total_savings(groups))

        # Always show deletion preview before action
        print()
        for idx, group in enumerate(groups, 1):
            size_str = ConvertUtils.bytes_to_human(group.size)
            print(f"📁 Group {idx} | Size: {size_str} | Files: {group.file_count}")
            print("-" * 60)

            keep = group.newest_file()
            print(f"   [KEEP] {keep.path}")
            print(f"          Modified: {ConvertUtils.timestamp_to_human(keep.modified_at)} (newest)")
            for file in group.files:
                if file is keep:
                    continue
                print(f"   [DEL]  {file.path}")
                print(f"          Modified: {ConvertUtils.timestamp_to_human(file.modified_at)}")
            print()

        print("=" * 60)
        print(f"Summary: Keep 1 file per group ({len(groups)} files preserved, {len(files_to_delete)} files deleted)")
        print(f"Total space saved: {space_saved_str}")
        print()

        if force:
            print("⚠️  WARNING: --force flag skips confirmation. Proceeding with deletion...")
        else:
            if not sys.stdin.isatty() or not sys.stdout.isatty():
                self.error_exit(
                    "Lost interactive terminal during operation. "
                    "Use --force to proceed in non-interactive environments."
                )
            response = input(f"Are you sure you want to move {len(files_to_delete)} files to trash? [y/N]: ")
            if response.strip().lower() not in ("y", "yes"):
                print("Deletion cancelled by user.")
                return

        print(f"\nMoving {len(files_to_delete)} files to trash...")
        try:
            FileService.move_multiple_to_trash(files_to_delete)
        except RuntimeError as e:
            self.warning(str(e))
            print("⚠️  Some files could not be moved to trash.")
            return
        print(f"✅ Successfully moved {len(files_to_delete)} files to trash.")

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Main entry point with conditional output behavior."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        if self.verbose:
            logging.getLogger().setLevel(logging.INFO)

        self.validate_args(args)
        options = self.create_options(args)
        roots = [os.path.abspath(root) for root in args.input]

        if not self.quiet:
            print(f"Scanning: {', '.join(roots)}")

        groups = self.run_scan(roots, options)
        if args.search or args.show_ext:
            groups = DuplicateService.filter_groups(groups, search=args.search, extension=args.show_ext)
        self.export_reports(groups, args)

        if args.keep_one:
            self.execute_keep_one(groups, force=args.force)
        else:
            self.output_results(groups)

        if self.verbose:
            print(f"\n✅ Completed in {time.time() - self.start_time:.2f} seconds")


def main(argv: Optional[List[str]] = None) -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        app.run(argv)
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
