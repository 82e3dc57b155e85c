"""
Process Assembly

Wraps a dynamic sub-process in the fixed document workflow skeleton:

    start -> submit document -> dynamic sub-process -> end
                   ^                    |
                   +---- (Rejected) ----+ boundary error event

A rejection inside the sub-process throws the configured error, which the
boundary event catches and routes back to the submit task for another round.
"""

import logging
from typing import List, Optional

from bpmn_workflow.config import (
    END_EVENT_ID,
    REJECTED_BOUNDARY_EVENT_ID,
    REJECTED_BOUNDARY_EVENT_NAME,
    REJECTED_FLOW_NAME,
    START_EVENT_ID,
    SUBMIT_TASK_ID,
    SUBMIT_TASK_NAME,
    WorkflowConfig,
)
from bpmn_workflow.errors import TaskValidationError
from bpmn_workflow.models.bpmn_elements import (
    BoundaryEvent,
    Definitions,
    EndEvent,
    ErrorEventDefinition,
    Process,
    StartEvent,
    SubProcess,
    UserTask,
)
from bpmn_workflow.models.tasks import DynamicUserTask
from bpmn_workflow.stages.chain_builder import ChainBuilder, create_sequence_flow

logger = logging.getLogger(__name__)


class ProcessAssembler:
    """Builds complete document workflow definitions around a dynamic sub-process."""

    def __init__(self, config: WorkflowConfig, chain_builder: Optional[ChainBuilder] = None):
        """
        Initialize assembler.

        Args:
            config: Namespace, ID format and error code settings
            chain_builder: Sub-process builder (a new one by default)
        """
        self.config = config
        self.chain_builder = chain_builder or ChainBuilder()

    def error_definition(self) -> ErrorEventDefinition:
        return ErrorEventDefinition(error_code=self.config.error_code)

    def assemble(
        self,
        process_key: str,
        name: str,
        subprocess: SubProcess,
        error_definition: ErrorEventDefinition,
    ) -> Definitions:
        """
        Wrap a sub-process in the workflow skeleton.

        Args:
            process_key: Process ID
            name: Process display name
            subprocess: Dynamic sub-process to embed
            error_definition: Error caught by the rejected boundary event

        Returns:
            Definitions holding the single assembled process
        """
        process = Process(id=process_key, name=name)

        start = StartEvent(id=START_EVENT_ID)
        process.add_flow_node(start)

        submit = UserTask(id=SUBMIT_TASK_ID, name=SUBMIT_TASK_NAME)
        process.add_flow_node(submit)
        process.add_sequence_flow(create_sequence_flow(start.id, submit.id))

        process.add_flow_node(subprocess)
        process.add_sequence_flow(create_sequence_flow(submit.id, subprocess.id))

        boundary = BoundaryEvent(
            id=REJECTED_BOUNDARY_EVENT_ID,
            name=REJECTED_BOUNDARY_EVENT_NAME,
            attached_to_ref=subprocess.id,
            event_definitions=[ErrorEventDefinition(error_code=error_definition.error_code)],
        )
        process.add_flow_node(boundary)
        process.add_sequence_flow(
            create_sequence_flow(boundary.id, submit.id, name=REJECTED_FLOW_NAME)
        )

        end = EndEvent(id=END_EVENT_ID)
        process.add_flow_node(end)
        process.add_sequence_flow(create_sequence_flow(subprocess.id, end.id))

        definitions = Definitions(target_namespace=self.config.target_namespace)
        definitions.add_process(process)
        logger.debug(f"Assembled process '{process_key}' with {len(process.flow_nodes)} nodes")
        return definitions

    def default_document(self, name: str) -> Definitions:
        """
        Build the minimal base definition: a dynamic sub-process with no tasks.

        The process ID is derived from the configured base document type and
        the "no group" marker.
        """
        error_definition = self.error_definition()
        subprocess = self.chain_builder.build([], error_definition)
        key = self.config.create_process_id(
            self.config.base_doc_type, self.config.workflow_group_none
        )
        return self.assemble(key, name, subprocess, error_definition)

    def document_with_tasks(
        self, tasks: List[DynamicUserTask], doc_type: str, group: str
    ) -> Definitions:
        """Build a populated definition for a document type and group."""
        if not doc_type or not doc_type.strip():
            raise TaskValidationError("doc_type must not be blank")
        if not group or not group.strip():
            raise TaskValidationError("group must not be blank")

        error_definition = self.error_definition()
        subprocess = self.chain_builder.build(tasks, error_definition)
        key = self.config.create_process_id(doc_type, group)
        name = f"Generated workflow for docType={doc_type} and Group={group}"
        return self.assemble(key, name, subprocess, error_definition)


__all__ = ["ProcessAssembler"]
