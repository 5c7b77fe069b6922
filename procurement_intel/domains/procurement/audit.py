"""Pipeline run auditing into the append-only project log."""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime

from procurement_intel.domains.procurement.models import Table
from procurement_intel.utils.types import PipelineContext, PipelineStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineRunSummary:
    run_id: str
    status: PipelineStatus
    staging_rows: int
    clean_rows: int
    rejected_rows: int
    fact_rows: int
    unresolved_vendor_rows: int
    outlier_rows: int
    started_at: datetime
    finished_at: datetime
    description: str

    def as_dict(self) -> dict:
        return asdict(self)


def describe_run(staging_rows: int, fact_rows: int) -> str:
    return f"Staging Rows: {staging_rows} | Fact Rows: {fact_rows}"


class RunAuditor:
    """Appends one project log entry per pipeline execution.

    The auditor never reads back its own history; numbering of log entries
    is the store's job.
    """

    def __init__(self, store) -> None:
        self.store = store

    def record_success(
        self,
        context: PipelineContext,
        staging_rows: int,
        clean_rows: int,
        rejected_rows: int,
        fact_rows: int,
        unresolved_vendor_rows: int = 0,
        outlier_rows: int = 0,
    ) -> PipelineRunSummary:
        summary = PipelineRunSummary(
            run_id=context.run_id,
            status=PipelineStatus.SUCCESS,
            staging_rows=staging_rows,
            clean_rows=clean_rows,
            rejected_rows=rejected_rows,
            fact_rows=fact_rows,
            unresolved_vendor_rows=unresolved_vendor_rows,
            outlier_rows=outlier_rows,
            started_at=context.start_time,
            finished_at=datetime.now(),
            description=describe_run(staging_rows, fact_rows),
        )
        self._append(summary, action_type="PIPELINE_RUN")
        logger.info(f"Run {context.run_id} succeeded: {summary.description}")
        return summary

    def record_failure(self, context: PipelineContext, error: BaseException, staging_rows: int = 0) -> None:
        finished_at = datetime.now()
        self.store.append(
            Table.PROJECT_LOG,
            {
                "run_id": context.run_id,
                "action_type": "PIPELINE_FAILED",
                "action_description": f"{type(error).__name__}: {error}",
                "action_time": finished_at,
                "status": PipelineStatus.FAILED.value,
                "staging_rows": staging_rows,
            },
        )
        logger.error(f"Run {context.run_id} failed: {error}")

    def _append(self, summary: PipelineRunSummary, action_type: str) -> None:
        self.store.append(
            Table.PROJECT_LOG,
            {
                "run_id": summary.run_id,
                "action_type": action_type,
                "action_description": summary.description,
                "action_time": summary.finished_at,
                "status": summary.status.value,
                "staging_rows": summary.staging_rows,
                "clean_rows": summary.clean_rows,
                "rejected_rows": summary.rejected_rows,
                "fact_rows": summary.fact_rows,
                "unresolved_vendor_rows": summary.unresolved_vendor_rows,
                "outlier_rows": summary.outlier_rows,
            },
        )
