"""Shared type definitions for the pipeline."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

type ColumnTypes = dict[str, str]


class PipelineStatus(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineContext:
    domain: str
    run_id: str
    start_time: datetime


def new_pipeline_context(domain: str) -> PipelineContext:
    """Start a run context with a sortable, unique run id."""
    start_time = datetime.now()
    run_id = f"{start_time:%Y%m%dT%H%M%S}-{uuid.uuid4().hex[:8]}"
    return PipelineContext(domain=domain, run_id=run_id, start_time=start_time)
