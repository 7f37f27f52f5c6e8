"""
services/report_service.py
Exports duplicate groups as JSON or CSV reports.
"""
import csv
import json
import logging
from typing import Any, Dict, List

from dupguard.core.models import DuplicateGroup
from dupguard.utils.convert_utils import ConvertUtils

logger = logging.getLogger(__name__)

CSV_HEADER = ["digest", "path", "size", "modified_at"]


class ReportService:
    @staticmethod
    def build_report(groups: List[DuplicateGroup]) -> List[Dict[str, Any]]:
        """One dict per group, members in group order, timestamps as ISO 8601 (UTC)."""
        return [
            {
                "digest": group.digest,
                "file_count": group.file_count,
                "total_size": group.total_size,
                "potential_savings": group.potential_savings,
                "files": [
                    {
                        "path": f.path,
                        "size": f.size,
                        "created_at": ConvertUtils.timestamp_to_iso(f.created_at),
                        "modified_at": ConvertUtils.timestamp_to_iso(f.modified_at),
                    }
                    for f in group.files
                ],
            }
            for group in groups
        ]

    @staticmethod
    def write_json(groups: List[DuplicateGroup], path: str) -> None:
        report = ReportService.build_report(groups)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)
        logger.info(f"Wrote JSON report with {len(report)} groups to {path}")

    @staticmethod
    def write_csv(groups: List[DuplicateGroup], path: str) -> None:
        """One row per file: digest, path, size, modified_at."""
        rows = 0
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, quoting=csv.QUOTE_MINIMAL)
            writer.writerow(CSV_HEADER)
            for group in groups:
                for file in group.files:
                    writer.writerow([
                        group.digest,
                        file.path,
                        file.size,
                        ConvertUtils.timestamp_to_iso(file.modified_at),
                    ])
                    rows += 1
        logger.info(f"Wrote CSV report with {rows} rows to {path}")
