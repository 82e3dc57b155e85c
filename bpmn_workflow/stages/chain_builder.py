"""
Dynamic Sub-Process Construction

Converts an ordered list of dynamic task descriptors into a fully wired
sub-process:

    start -> task_1 -> [gateway_1] -> task_2 -> ... -> end
                            |
                            +--(rejected)--> error end

Tasks are wired strictly in input order by carrying a single open sequence
flow forward: each new task closes the previous open flow and opens the next
one. Approval and collaboration tasks are numbered by independent per-kind
counters.
"""

import logging
from typing import Dict, List, Optional

from bpmn_workflow.config import (
    CONDITION_APPROVED,
    CONDITION_REJECTED,
    ERROR_END_EVENT_ID,
    LISTENER_APPROVAL_CREATE,
    LISTENER_APPROVED_TAKE,
    LISTENER_COLLABORATION_COMPLETE,
    LISTENER_COLLABORATION_CREATE,
    LISTENER_REJECTED_TAKE,
    SUBPROCESS_END_EVENT_ID,
    SUBPROCESS_ID_DYNAMIC,
    SUBPROCESS_NAME_DYNAMIC,
    SUBPROCESS_START_EVENT_ID,
    TASK_ID_APPROVAL,
    TASK_ID_COLLABORATION,
)
from bpmn_workflow.core import Timer
from bpmn_workflow.errors import IntegrityError, TaskValidationError
from bpmn_workflow.models.bpmn_elements import (
    EndEvent,
    ErrorEventDefinition,
    ExclusiveGateway,
    Listener,
    SequenceFlow,
    StartEvent,
    SubProcess,
    UserTask,
)
from bpmn_workflow.models.tasks import DynamicUserTask, TaskKind
from bpmn_workflow.validation.graph_validation import validate_references

logger = logging.getLogger(__name__)

START_FLOW_ID = "dynamic_sub_process_start_flow"


def create_sequence_flow(
    source_ref: str,
    target_ref: str,
    name: Optional[str] = None,
    flow_id: Optional[str] = None,
) -> SequenceFlow:
    """Create a closed sequence flow; the ID defaults to one derived from its endpoints."""
    return SequenceFlow(
        id=flow_id or f"flow_{source_ref}_to_{target_ref}",
        name=name,
        source_ref=source_ref,
        target_ref=target_ref,
    )


def task_kind(task: DynamicUserTask) -> TaskKind:
    """Resolve a descriptor's kind, rejecting anything that is not a known kind."""
    try:
        return TaskKind(task.kind)
    except ValueError:
        logger.error(f"Invalid user task type: {task.kind!r}")
        raise TaskValidationError(f"Invalid user task type: {task.kind!r}") from None


def count_task_kinds(tasks: List[DynamicUserTask]) -> Dict[TaskKind, int]:
    """Count tasks of each kind over the full input."""
    totals = {kind: 0 for kind in TaskKind}
    for task in tasks:
        totals[task_kind(task)] += 1
    return totals


class ChainBuilder:
    """Builds the dynamic sub-process for an ordered list of task descriptors."""

    def build(
        self, tasks: List[DynamicUserTask], error_definition: ErrorEventDefinition
    ) -> SubProcess:
        """Build a complete dynamic sub-process.

        Args:
            tasks: Task descriptors in the order they must be performed
            error_definition: Error thrown when an approval is rejected

        Returns:
            Sub-process with every sequence flow closed

        Raises:
            TaskValidationError: If a task has an unknown kind, or an approval
                task has neither candidate users nor candidate groups
            IntegrityError: If the built sub-process is not fully wired
        """
        with Timer("chain_build"):
            totals = count_task_kinds(tasks)
            logger.info(
                f"Building dynamic sub process: {totals[TaskKind.APPROVAL]} approval(s), "
                f"{totals[TaskKind.COLLABORATION]} collaboration(s)"
            )

            sub = self._create_subprocess_shell(error_definition)

            if not tasks:
                sub.add_sequence_flow(
                    create_sequence_flow(
                        SUBPROCESS_START_EVENT_ID, SUBPROCESS_END_EVENT_ID, flow_id=START_FLOW_ID
                    )
                )
                return self._verify(sub)

            open_flow = SequenceFlow(id=START_FLOW_ID, source_ref=SUBPROCESS_START_EVENT_ID)
            sub.add_sequence_flow(open_flow)

            counters = {kind: 0 for kind in TaskKind}
            for task in tasks:
                kind = task_kind(task)
                counters[kind] += 1
                if kind == TaskKind.APPROVAL:
                    open_flow = self._add_approval_task(
                        sub, task, counters[kind], totals[kind], open_flow
                    )
                else:
                    open_flow = self._add_collaboration_task(
                        sub, task, counters[kind], totals[kind], open_flow
                    )

            open_flow.target_ref = SUBPROCESS_END_EVENT_ID
            return self._verify(sub)

    def _create_subprocess_shell(self, error_definition: ErrorEventDefinition) -> SubProcess:
        """Sub-process with its start, end and error end events but no flows."""
        sub = SubProcess(id=SUBPROCESS_ID_DYNAMIC, name=SUBPROCESS_NAME_DYNAMIC)
        sub.add_flow_node(StartEvent(id=SUBPROCESS_START_EVENT_ID, name="Start Dynamic SubProcess"))
        sub.add_flow_node(EndEvent(id=SUBPROCESS_END_EVENT_ID, name="End Dynamic SubProcess"))
        sub.add_flow_node(
            EndEvent(
                id=ERROR_END_EVENT_ID,
                name="ErrorEnd",
                event_definitions=[ErrorEventDefinition(error_code=error_definition.error_code)],
            )
        )
        return sub

    def _add_approval_task(
        self,
        sub: SubProcess,
        task: DynamicUserTask,
        current: int,
        total: int,
        previous: SequenceFlow,
    ) -> SequenceFlow:
        """Add an approval task and its gateway; return the open approved flow."""
        if not task.has_candidates:
            logger.error(f"Approval task {current} of {total} has no candidate users or groups")
            raise TaskValidationError(
                "user task does not have any candidate users / groups assigned"
            )

        user_task = UserTask(
            id=f"{TASK_ID_APPROVAL}_{current}",
            name=_display_name(task, f"Approve Document ({current}/{total})"),
            candidate_users=list(task.candidate_users),
            candidate_groups=list(task.candidate_groups),
            task_listeners=(Listener(event="create", implementation=LISTENER_APPROVAL_CREATE),),
        )
        gateway = ExclusiveGateway(
            id=f"exclusivegateway_approval_{current}_of_{total}",
            name=f"Exclusive Approval Gateway {current} of {total}",
        )
        sub.add_flow_node(user_task)
        sub.add_flow_node(gateway)
        previous.target_ref = user_task.id

        sub.add_sequence_flow(
            create_sequence_flow(
                user_task.id, gateway.id, flow_id=f"docApprovalGatewayFlow_{current}_of_{total}"
            )
        )
        sub.add_sequence_flow(
            SequenceFlow(
                id=f"docRejectedSubFlow_{current}_of_{total}",
                name=f"Doc Rejected {current} of {total}",
                source_ref=gateway.id,
                target_ref=ERROR_END_EVENT_ID,
                condition_expression=CONDITION_REJECTED,
                execution_listeners=(Listener(event="take", implementation=LISTENER_REJECTED_TAKE),),
            )
        )
        approved = SequenceFlow(
            id=f"docApprovedSubFlow_{current}_of_{total}",
            name=f"Doc Approved {current} of {total}",
            source_ref=gateway.id,
            condition_expression=CONDITION_APPROVED,
            execution_listeners=(Listener(event="take", implementation=LISTENER_APPROVED_TAKE),),
        )
        sub.add_sequence_flow(approved)
        return approved

    def _add_collaboration_task(
        self,
        sub: SubProcess,
        task: DynamicUserTask,
        current: int,
        total: int,
        previous: SequenceFlow,
    ) -> SequenceFlow:
        """Add a collaboration task; return its open outgoing flow."""
        user_task = UserTask(
            id=f"{TASK_ID_COLLABORATION}_{current}",
            name=_display_name(task, f"Document Collaboration ({current}/{total})"),
            candidate_users=list(task.candidate_users),
            candidate_groups=list(task.candidate_groups),
            task_listeners=(
                Listener(event="create", implementation=LISTENER_COLLABORATION_CREATE),
                Listener(event="complete", implementation=LISTENER_COLLABORATION_COMPLETE),
            ),
        )
        sub.add_flow_node(user_task)
        previous.target_ref = user_task.id

        outgoing = SequenceFlow(
            id=f"dynamic_collab_subflow_{current}_of_{total}",
            name=f"Collaboration SubFlow {current} of {total}",
            source_ref=user_task.id,
        )
        sub.add_sequence_flow(outgoing)
        return outgoing

    def _verify(self, sub: SubProcess) -> SubProcess:
        """Reject a sub-process with open or dangling flows."""
        is_valid, errors = validate_references(sub)
        if not is_valid:
            logger.error(f"Dynamic sub process is not fully wired: {errors}")
            raise IntegrityError(f"Dynamic sub process is not fully wired: {'; '.join(errors)}")
        return sub


def _display_name(task: DynamicUserTask, default: str) -> str:
    if task.name and task.name.strip():
        return task.name
    return default


__all__ = [
    "START_FLOW_ID",
    "ChainBuilder",
    "count_task_kinds",
    "create_sequence_flow",
    "task_kind",
]
