"""MergeMint backlog drain: evaluate merged pull requests one per invocation."""

from .backlog import BacklogResolution, EmptyReason, resolve_backlog
from .batch import BatchDrain, create_batch_drain
from .config import Config
from .dispatcher import WorkDispatcher
from .drain import BacklogFetchError, DrainTrigger, create_drain_trigger
from .repository import BacklogRepository
from .schemas import (
    BatchReport,
    DispatchResult,
    DispatchStatus,
    DrainOutcome,
    OutcomeKind,
    WorkItem,
)

__all__ = [
    # Configuration
    "Config",
    # Services
    "BacklogRepository",
    "BatchDrain",
    "DrainTrigger",
    "WorkDispatcher",
    "create_batch_drain",
    "create_drain_trigger",
    # Resolution
    "BacklogResolution",
    "EmptyReason",
    "resolve_backlog",
    # Schemas
    "BatchReport",
    "DispatchResult",
    "DispatchStatus",
    "DrainOutcome",
    "OutcomeKind",
    "WorkItem",
    # Errors
    "BacklogFetchError",
]
