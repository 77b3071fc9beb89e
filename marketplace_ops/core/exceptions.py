"""
Error taxonomy shared by every maintenance procedure.

The CLI turns these into a message and a non-zero exit code; the HTTP API
maps them to status codes in main.py.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from marketplace_ops.core.results import BatchResult


class MaintenanceError(Exception):
    """Base class for errors raised by the maintenance procedures"""


class ConfigurationError(MaintenanceError):
    """Required settings are absent"""


class NotFound(MaintenanceError):
    """An expected absence: the caller decides whether it is a failure"""

    def __init__(self, table: str, criteria: str):
        self.table = table
        self.criteria = criteria
        super().__init__(f"No row in {table} matching {criteria}")


class RemoteRequestError(MaintenanceError):
    """The data service rejected or failed a call"""

    def __init__(self, operation: str, target: str, cause: object):
        self.operation = operation
        self.target = target
        self.cause = cause
        super().__init__(f"{operation} on {target} failed: {cause}")


class PreconditionMissing(MaintenanceError):
    """A record a batch depends on does not exist; nothing was mutated"""


class ConfirmationDeclined(MaintenanceError):
    """The operator did not confirm a destructive operation"""


class PartialBatchFailure(MaintenanceError):
    """Some items of a batch failed while the others went through"""

    def __init__(self, result: "BatchResult", message: Optional[str] = None):
        self.result = result
        super().__init__(
            message
            or f"{result.operation}: {result.failure_count} of {len(result.items)} item(s) failed"
        )
