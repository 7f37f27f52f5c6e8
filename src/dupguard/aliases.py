from dupguard.core.models import HashAlgorithmChoice

ALGORITHM_ALIASES = {
    "auto": HashAlgorithmChoice.AUTO,
    "xxh3": HashAlgorithmChoice.XXH3_128,
    "xxh3_128": HashAlgorithmChoice.XXH3_128,
    "sha256": HashAlgorithmChoice.SHA256,
}

ALGORITHM_CHOICES = list(ALGORITHM_ALIASES.keys())

ALGORITHM_HELP_TEXT = (
    "Content hash used to confirm duplicates:\n"
    "  auto     : XXH3-128 when available, otherwise SHA-256 (default)\n"
    "  xxh3     : XXH3-128, fast non-cryptographic hash\n"
    "  sha256   : SHA-256, slower cryptographic hash\n"
)

EPILOG_TEXT = """
Examples:
  Basic usage - find duplicates in Downloads folder
  %(prog)s -i ~/Downloads

  Scan two folders at once; duplicates across folders are reported too
  %(prog)s -i ~/Downloads ~/Pictures

  Filter files by size and extensions
  %(prog)s -i ~/Downloads -m 500KB -M 10MB -x .jpg .png

  Export the result as JSON and CSV
  %(prog)s -i ~/Downloads --json report.json --csv report.csv

  Keep the newest file per group and move the rest to trash (with confirmation prompt)
  %(prog)s -i ~/Downloads --keep-one

  Same as above but without confirmation (for scripts)
  %(prog)s -i ~/Downloads --keep-one --force

Press Ctrl+C once to stop the scan and keep confirmed groups, twice to quit immediately.
"""
