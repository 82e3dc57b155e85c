"""
Dynamic Task Descriptors

Caller-supplied description of one human task in the dynamic sub-process.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TaskKind(str, Enum):
    """Kinds of dynamic user tasks."""

    APPROVAL = "approval"  # Approve/reject, branches through a gateway
    COLLABORATION = "collaboration"  # Pass-through, no branching


class DynamicUserTask(BaseModel):
    """One dynamic user task, in the order the caller wants it performed.

    ``index`` is a display/sort key only; list order is what the builder wires.
    """

    index: int = Field(default=0, description="Display and sort position")
    id: Optional[str] = Field(None, description="Node ID when read back from a process")
    name: Optional[str] = Field(None, description="Display name (generated when blank)")
    kind: TaskKind = Field(..., description="Task kind")
    candidate_users: List[str] = Field(default_factory=list, description="Candidate users")
    candidate_groups: List[str] = Field(default_factory=list, description="Candidate groups")

    model_config = ConfigDict(use_enum_values=False)

    @property
    def has_candidates(self) -> bool:
        return bool(self.candidate_users or self.candidate_groups)

    @classmethod
    def approval(
        cls,
        name: Optional[str] = None,
        candidate_users: Optional[List[str]] = None,
        candidate_groups: Optional[List[str]] = None,
    ) -> "DynamicUserTask":
        """Shortcut for an approval task."""
        return cls(
            kind=TaskKind.APPROVAL,
            name=name,
            candidate_users=list(candidate_users or []),
            candidate_groups=list(candidate_groups or []),
        )

    @classmethod
    def collaboration(
        cls,
        name: Optional[str] = None,
        candidate_users: Optional[List[str]] = None,
        candidate_groups: Optional[List[str]] = None,
    ) -> "DynamicUserTask":
        """Shortcut for a collaboration task."""
        return cls(
            kind=TaskKind.COLLABORATION,
            name=name,
            candidate_users=list(candidate_users or []),
            candidate_groups=list(candidate_groups or []),
        )


def sort_by_index(tasks: List[DynamicUserTask]) -> List[DynamicUserTask]:
    """Stable sort of descriptors by their index."""
    return sorted(tasks, key=lambda t: t.index)


__all__ = ["TaskKind", "DynamicUserTask", "sort_by_index"]
