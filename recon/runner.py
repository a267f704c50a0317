from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from catalog_purge.common import PrintLogger
from catalog_purge.directory.base import ConnectionSettings, DirectoryClient
from catalog_purge.events import emit_log
from catalog_purge.sanitize import KeySanitizer
from catalog_purge.tables import InputRow

from .actions import CatalogDeleteAction, RowAction
from .context import RowContext, RunResources
from .results import JobReport, RowError, RowOutcome, Skipped

ProgressCallback = Callable[[int], None]
CancelCheck = Callable[[], bool]


class JobAbortedError(RuntimeError):
    """A run-scoped failure stopped the row loop; ``report`` holds the rows done so far."""

    def __init__(self, report: JobReport) -> None:
        super().__init__(f"Job aborted after {report.processed_count} of {report.total_rows} rows")
        self.report = report


class ReconciliationEngine:
    def __init__(
        self,
        client: DirectoryClient,
        *,
        sanitizer: KeySanitizer,
        logger: Optional[PrintLogger] = None,
        action: Optional[RowAction] = None,
    ) -> None:
        self.client = client
        self.sanitizer = sanitizer
        self.logger = logger
        self.action = action or CatalogDeleteAction()

    def run(
        self,
        rows: Iterable[InputRow],
        settings: ConnectionSettings,
        on_progress: Optional[ProgressCallback] = None,
        should_cancel: Optional[CancelCheck] = None,
    ) -> JobReport:
        table: List[InputRow] = list(rows)
        report = JobReport(total_rows=len(table))
        emit_log(
            self.logger,
            level="INFO",
            msg="job_start",
            action=self.action.type_name(),
            rows=report.total_rows,
        )
        session = self.client.open(settings)
        resources = RunResources(self.client, session, self.logger)
        try:
            for row in table:
                if should_cancel is not None and should_cancel():
                    report.cancelled = True
                    emit_log(
                        self.logger,
                        level="WARN",
                        msg="job_cancelled",
                        processed=report.processed_count,
                        rows=report.total_rows,
                    )
                    break
                outcome = self._process_row(row, resources)
                report.record(row.index, outcome)
                self._log_outcome(row, outcome)
                if on_progress is not None:
                    on_progress(report.percent())
        except Exception as exc:
            report.aborted = True
            emit_log(
                self.logger,
                level="ERROR",
                msg="job_aborted",
                processed=report.processed_count,
                rows=report.total_rows,
                err=str(exc),
            )
            raise JobAbortedError(report) from exc
        finally:
            resources.release_all()
        summary = report.summary()
        emit_log(
            self.logger,
            level="INFO",
            msg="job_end",
            processed=report.processed_count,
            deleted=summary.deleted,
            not_found=summary.not_found,
            skipped=summary.skipped,
            delete_failed=summary.delete_failed,
            errors=summary.errors,
            cancelled=report.cancelled or None,
        )
        return report

    def _process_row(self, row: InputRow, resources: RunResources) -> RowOutcome:
        try:
            card_key = self.sanitizer.validate(row.card_key)
            item_key = self.sanitizer.validate(row.item_key)
            if card_key is None or item_key is None:
                return Skipped()
            context = RowContext(
                row_index=row.index,
                card_key=card_key,
                item_key=item_key,
                client=self.client,
                resources=resources,
                logger=self.logger,
            )
            return self.action.run(context)
        except Exception as exc:
            return RowError(message=str(exc) or type(exc).__name__)

    def _log_outcome(self, row: InputRow, outcome: RowOutcome) -> None:
        # Skipped rows carry unvalidated cells, so only the row number is logged.
        level = "INFO"
        if outcome.kind in {"delete_failed", "error"}:
            level = "ERROR"
        elif outcome.kind == "skipped":
            level = "WARN"
        emit_log(self.logger, level=level, msg=f"row_{outcome.kind}", row=row.index, **outcome.detail())


def check_connection(client: DirectoryClient, settings: ConnectionSettings, logger: Optional[PrintLogger] = None) -> None:
    """Open and immediately close a session; connection errors propagate."""

    session = client.open(settings)
    try:
        emit_log(logger, level="INFO", msg="connection_test_ok")
    finally:
        client.close(session)


__all__ = ["JobAbortedError", "ReconciliationEngine", "check_connection"]
