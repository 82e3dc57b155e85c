"""
Dynamic Task Classification

Reads the dynamic user tasks of an existing sub-process back into task
descriptors. A task node's kind is derived from its ID prefix
(``approval_<n>`` / ``collab_<n>``); the prefixes are part of the process
graph contract.
"""

import logging
from typing import Dict, List, Optional, Set

from bpmn_workflow.config import (
    ERROR_END_EVENT_ID,
    SUBPROCESS_START_EVENT_ID,
    TASK_ID_APPROVAL,
    TASK_ID_COLLABORATION,
)
from bpmn_workflow.models.bpmn_elements import SubProcess, UserTask
from bpmn_workflow.models.tasks import DynamicUserTask, TaskKind, sort_by_index

logger = logging.getLogger(__name__)

TASK_ID_PREFIXES: Dict[str, TaskKind] = {
    TASK_ID_APPROVAL: TaskKind.APPROVAL,
    TASK_ID_COLLABORATION: TaskKind.COLLABORATION,
}


def classify(node_id: Optional[str]) -> Optional[TaskKind]:
    """Get the task kind implied by a node ID, or None for non-task nodes."""
    if not node_id:
        return None
    for prefix, kind in TASK_ID_PREFIXES.items():
        if node_id.startswith(prefix):
            return kind
    return None


def is_dynamic_user_task(node_id: Optional[str]) -> bool:
    return classify(node_id) is not None


def from_user_task(user_task: UserTask, position: int) -> DynamicUserTask:
    """Convert a dynamic user task node back into a descriptor."""
    return DynamicUserTask(
        index=position,
        id=user_task.id,
        name=user_task.name,
        kind=classify(user_task.id),
        candidate_users=list(user_task.candidate_users),
        candidate_groups=list(user_task.candidate_groups),
    )


def chain_positions(sub: SubProcess) -> Dict[str, int]:
    """
    Walk the chain from the sub-process start event and rank every node on it.

    At each node the walk follows the first outgoing flow that does not lead to
    the error end event, which is the approved branch after a gateway.
    """
    outgoing: Dict[str, List[str]] = {}
    for flow in sub.sequence_flows:
        if flow.target_ref is not None and flow.target_ref != ERROR_END_EVENT_ID:
            outgoing.setdefault(flow.source_ref, []).append(flow.target_ref)

    positions: Dict[str, int] = {}
    visited: Set[str] = set()
    current: Optional[str] = SUBPROCESS_START_EVENT_ID
    while current is not None and current not in visited:
        visited.add(current)
        positions[current] = len(positions)
        targets = outgoing.get(current)
        current = targets[0] if targets else None
    return positions


def read_dynamic_tasks(sub: SubProcess) -> List[DynamicUserTask]:
    """
    Get the dynamic tasks of a sub-process in chain order.

    Tasks are collected in storage order, indexed by their 1-based rank along
    the chain, then sorted by index. Tasks not on the chain rank after the
    chained ones, in storage order.
    """
    positions = chain_positions(sub)
    user_tasks = [
        node
        for node in sub.flow_nodes
        if isinstance(node, UserTask) and is_dynamic_user_task(node.id)
    ]

    chained = sorted(
        (node for node in user_tasks if node.id in positions), key=lambda n: positions[n.id]
    )
    rank = {node.id: i for i, node in enumerate(chained, start=1)}

    tasks: List[DynamicUserTask] = []
    unchained = len(chained)
    for node in user_tasks:
        if node.id in rank:
            position = rank[node.id]
        else:
            unchained += 1
            position = unchained
            logger.warning(f"Dynamic task '{node.id}' is not reachable from the sub process start")
        logger.debug(f"Adding {node.id}")
        tasks.append(from_user_task(node, position))

    return sort_by_index(tasks)


__all__ = [
    "TASK_ID_PREFIXES",
    "chain_positions",
    "classify",
    "from_user_task",
    "is_dynamic_user_task",
    "read_dynamic_tasks",
]
