from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterable, List, Optional

SKIP_INVALID_KEY = "invalid or missing key"
COULD_NOT_RETRIEVE = "could not retrieve object"


@dataclass(frozen=True)
class RowOutcome:
    kind: ClassVar[str] = "unknown"

    def detail(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.kind, **self.detail()}


@dataclass(frozen=True)
class Skipped(RowOutcome):
    kind: ClassVar[str] = "skipped"
    reason: str = SKIP_INVALID_KEY

    def detail(self) -> Dict[str, Any]:
        return {"reason": self.reason}


@dataclass(frozen=True)
class NotFound(RowOutcome):
    kind: ClassVar[str] = "not_found"


@dataclass(frozen=True)
class Deleted(RowOutcome):
    kind: ClassVar[str] = "deleted"


@dataclass(frozen=True)
class DeleteFailed(RowOutcome):
    kind: ClassVar[str] = "delete_failed"
    code: int = 0
    message: str = ""

    def detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


@dataclass(frozen=True)
class RowError(RowOutcome):
    kind: ClassVar[str] = "error"
    message: str = ""

    def detail(self) -> Dict[str, Any]:
        return {"message": self.message}


FAILURE_KINDS = {DeleteFailed.kind, RowError.kind}


@dataclass(frozen=True)
class RowResult:
    row_index: int
    outcome: RowOutcome

    def to_dict(self) -> Dict[str, Any]:
        return {"row": self.row_index, **self.outcome.to_dict()}


@dataclass
class JobSummary:
    total: int
    processed: int
    deleted: int
    not_found: int
    skipped: int
    delete_failed: int
    errors: int

    @classmethod
    def from_results(cls, total: int, results: Iterable[RowResult]) -> "JobSummary":
        counts = {kind: 0 for kind in ("deleted", "not_found", "skipped", "delete_failed", "error")}
        processed = 0
        for result in results:
            processed += 1
            counts[result.outcome.kind] = counts.get(result.outcome.kind, 0) + 1
        return cls(
            total=total,
            processed=processed,
            deleted=counts["deleted"],
            not_found=counts["not_found"],
            skipped=counts["skipped"],
            delete_failed=counts["delete_failed"],
            errors=counts["error"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "processed": self.processed,
            "deleted": self.deleted,
            "not_found": self.not_found,
            "skipped": self.skipped,
            "delete_failed": self.delete_failed,
            "errors": self.errors,
        }


@dataclass
class JobReport:
    """Per-row outcomes of one run, in input order."""

    total_rows: int
    processed_count: int = 0
    results: List[RowResult] = field(default_factory=list)
    cancelled: bool = False
    aborted: bool = False

    def record(self, row_index: int, outcome: RowOutcome) -> None:
        self.results.append(RowResult(row_index=row_index, outcome=outcome))
        self.processed_count += 1

    def percent(self) -> int:
        if self.total_rows <= 0:
            return 100
        return max(0, min(100, self.processed_count * 100 // self.total_rows))

    @property
    def outcomes(self) -> List[RowOutcome]:
        return [result.outcome for result in self.results]

    def kinds(self) -> List[str]:
        return [result.outcome.kind for result in self.results]

    def outcome_for(self, row_index: int) -> Optional[RowOutcome]:
        for result in self.results:
            if result.row_index == row_index:
                return result.outcome
        return None

    @property
    def has_failures(self) -> bool:
        return any(result.outcome.kind in FAILURE_KINDS for result in self.results)

    def summary(self) -> JobSummary:
        return JobSummary.from_results(self.total_rows, self.results)

    def to_dict(self) -> Dict[str, Any]:
        if self.cancelled:
            status = "cancelled"
        elif self.aborted:
            status = "aborted"
        else:
            status = "completed"
        return {
            "status": status,
            "summary": self.summary().to_dict(),
            "rows": [result.to_dict() for result in self.results],
        }


__all__ = [
    "COULD_NOT_RETRIEVE",
    "DeleteFailed",
    "Deleted",
    "JobReport",
    "JobSummary",
    "NotFound",
    "RowError",
    "RowOutcome",
    "RowResult",
    "SKIP_INVALID_KEY",
    "Skipped",
]
