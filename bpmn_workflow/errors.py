"""
Workflow Errors

Every error is fatal to the current operation; none is retried here.
"""


class WorkflowError(Exception):
    """Base class for dynamic workflow errors."""


class PreconditionError(WorkflowError):
    """A required definition is missing, or one that must not exist already does."""


class StructuralError(WorkflowError):
    """A loaded process lacks the structure needed to modify it."""


class TaskValidationError(WorkflowError, ValueError):
    """A task descriptor cannot be turned into a task node."""


class IntegrityError(WorkflowError):
    """A build or deployment produced an incomplete or missing result."""


__all__ = [
    "WorkflowError",
    "PreconditionError",
    "StructuralError",
    "TaskValidationError",
    "IntegrityError",
]
