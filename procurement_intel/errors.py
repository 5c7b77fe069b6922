"""Exception hierarchy for the procurement pipeline.

Per-record data problems never raise: the quality gate routes them to the
rejects table. These errors are for failures that invalidate a whole run.
"""


class ProcurementError(Exception):
    """Base exception for all pipeline failures."""


class ProcurementConfigError(ProcurementError):
    """Raised for invalid runtime configuration values."""


class ProcurementIngestError(ProcurementError):
    """Raised when an ERP export cannot be read or typed."""


class ProcurementStoreError(ProcurementError):
    """Raised when the persistent store cannot be read or written."""


class RunLockError(ProcurementStoreError):
    """Raised when another pipeline run already holds the store."""


class ProcurementValidationError(ProcurementError):
    """Raised when derived tables fail their output contracts."""
