"""
Workflow Builder Service

Creates, updates and inspects the dynamic workflow of a document type and
group through the definition repository:

- create_group_workflow: clone the base definition of a document type for a group
- update_dynamic_tasks: rebuild the dynamic sub-process of a group workflow
- get_dynamic_tasks: read the dynamic tasks of a deployed definition

Callers are responsible for serializing concurrent changes to the same
definition key.
"""

import logging
from typing import List, Optional

from bpmn_workflow.config import SUBPROCESS_ID_DYNAMIC, WorkflowConfig
from bpmn_workflow.core import record_metric, span
from bpmn_workflow.errors import IntegrityError, PreconditionError, StructuralError
from bpmn_workflow.models.bpmn_elements import Definitions, Process
from bpmn_workflow.models.tasks import DynamicUserTask
from bpmn_workflow.service.interfaces import (
    DefinitionRepository,
    LayoutEngine,
    ProcessDefinitionHandle,
)
from bpmn_workflow.stages.chain_builder import ChainBuilder
from bpmn_workflow.stages.process_assembler import ProcessAssembler
from bpmn_workflow.stages.subprocess_splicer import SubProcessSplicer
from bpmn_workflow.stages.task_classifier import read_dynamic_tasks

logger = logging.getLogger(__name__)


class WorkflowBuilder:
    """Builds and modifies document workflows that contain dynamic tasks."""

    def __init__(
        self,
        repository: DefinitionRepository,
        config: Optional[WorkflowConfig] = None,
        layout_engine: Optional[LayoutEngine] = None,
    ):
        """
        Initialize workflow builder.

        Args:
            repository: Definition lookup, retrieval and deployment
            config: Workflow settings (defaults when omitted)
            layout_engine: Optional diagram layout applied before deployment
        """
        self.repository = repository
        self.config = config or WorkflowConfig()
        self.layout_engine = layout_engine
        self.chain_builder = ChainBuilder()
        self.assembler = ProcessAssembler(self.config, self.chain_builder)
        self.splicer = SubProcessSplicer(self.config.error_code)

    def create_group_workflow(self, doc_type: str, group: str) -> ProcessDefinitionHandle:
        """
        Create a group workflow by cloning the base definition of a document type.

        Raises:
            PreconditionError: If the document type has no base definition, or
                the group workflow already exists
            IntegrityError: If the new definition cannot be found after deployment
        """
        logger.info(f"Creating new workflow for docType {doc_type} and group: {group}")
        key = self.config.create_process_id(doc_type, group)

        with span("create_group_workflow", {"process_key": key}):
            if not self.repository.base_definition_exists(doc_type):
                raise PreconditionError(
                    f"The doctype: {doc_type} has no base workflow definition."
                )
            if self.repository.definition_exists(doc_type, group):
                raise PreconditionError(
                    f"The workflow for doctype: {doc_type} and group: {group} already exists"
                )

            base_handle = self.repository.find_base_definition(doc_type)
            process = self._main_process(self.repository.load_model(base_handle), key).clone()
            process.id = key
            process.name = f"{doc_type} for group {group}"

            return self._deploy(process, doc_type, group)

    def update_dynamic_tasks(
        self, doc_type: str, group: str, tasks: List[DynamicUserTask]
    ) -> ProcessDefinitionHandle:
        """
        Replace the dynamic tasks of an existing group workflow.

        Raises:
            PreconditionError: If the group workflow does not exist
            StructuralError: If the deployed process cannot be spliced
            TaskValidationError: If a task descriptor is invalid
            IntegrityError: If the updated definition cannot be found after deployment
        """
        logger.info(f"updating tasks for docType {doc_type} and group: {group}")
        key = self.config.create_process_id(doc_type, group)

        with span("update_dynamic_tasks", {"process_key": key, "task_count": len(tasks)}):
            handle = self.repository.find_definition(doc_type, group)
            if handle is None:
                raise PreconditionError(
                    f"The workflow for doctype: {doc_type} and group: {group} does not exist"
                )

            process = self._main_process(self.repository.load_model(handle), key)
            self.splicer.find_subprocess(process, SUBPROCESS_ID_DYNAMIC)
            error_definition = self.splicer.find_error_definition(process)

            subprocess = self.chain_builder.build(tasks, error_definition)
            updated = self.splicer.splice(process, SUBPROCESS_ID_DYNAMIC, subprocess)

            return self._deploy(updated, doc_type, group)

    def get_dynamic_tasks(self, handle: ProcessDefinitionHandle) -> List[DynamicUserTask]:
        """Get the ordered dynamic tasks of a deployed definition."""
        logger.debug(f"returning dynamic tasks for procDef: {handle.key}")
        process = self._main_process(self.repository.load_model(handle), handle.key)
        subprocess = self.splicer.find_subprocess(process, SUBPROCESS_ID_DYNAMIC)
        return read_dynamic_tasks(subprocess)

    def default_document(self, name: str) -> Definitions:
        return self.assembler.default_document(name)

    def document_with_tasks(
        self, tasks: List[DynamicUserTask], doc_type: str, group: str
    ) -> Definitions:
        return self.assembler.document_with_tasks(tasks, doc_type, group)

    def _main_process(self, definitions: Definitions, key: str) -> Process:
        process = definitions.main_process
        if process is None:
            raise StructuralError(f"Definition '{key}' contains no process")
        return process

    def _deploy(self, process: Process, doc_type: str, group: str) -> ProcessDefinitionHandle:
        key = process.id
        definitions = Definitions(target_namespace=self.config.target_namespace)
        definitions.add_process(process)
        if self.layout_engine is not None:
            definitions = self.layout_engine.layout(definitions)

        deployment_id = self.repository.deploy(
            f"{self.config.deployment_name_prefix} - {key}", f"{key}.bpmn", definitions
        )
        logger.debug(f"Deployed '{key}' as {deployment_id}")
        record_metric("workflow_deployments_total", 1, {"process_key": key})

        handle = self.repository.find_definition(doc_type, group)
        if handle is None:
            raise IntegrityError(f"something went wrong creating the new processDefinition: {key}")
        return handle


__all__ = ["WorkflowBuilder"]
