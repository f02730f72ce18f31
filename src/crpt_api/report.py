# ABOUTME: Summary report for a batch submission run.
# ABOUTME: Records how many documents were accepted and why the others failed.

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal


@dataclass
class SubmissionReport:
    """Report for a single CLI submission run."""

    timestamp: str = ""
    duration_seconds: float = 0.0
    documents_submitted: int = 0
    documents_failed: int = 0
    errors: list[dict] = field(default_factory=list)
    status: Literal["completed", "completed_with_warnings", "failed"] = "completed"

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    def to_dict(self) -> dict:
        """Convert report to dictionary for JSON serialization."""
        return asdict(self)


def create_report(start_time: datetime, submitted: int, errors: list[dict]) -> SubmissionReport:
    """Create a submission report.

    Args:
        start_time: When the run started (timezone-aware, UTC).
        submitted: Number of documents the endpoint accepted.
        errors: One dict per failed document.

    Returns:
        SubmissionReport with computed fields.
    """
    duration = (datetime.now(timezone.utc) - start_time).total_seconds()

    if not errors:
        status = "completed"
    elif submitted == 0:
        status = "failed"
    else:
        status = "completed_with_warnings"

    return SubmissionReport(
        timestamp=start_time.strftime("%Y-%m-%dT%H:%M:%SZ"),
        duration_seconds=round(duration, 2),
        documents_submitted=submitted,
        documents_failed=len(errors),
        errors=errors,
        status=status,
    )


def save_report(report: SubmissionReport, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
