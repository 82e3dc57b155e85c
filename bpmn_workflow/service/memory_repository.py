"""
In-Memory Definition Repository

Versioned, process-local stand-in for a workflow engine's repository. Base
definitions are the ones deployed under the "no group" key of a document type.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from bpmn_workflow.config import WorkflowConfig
from bpmn_workflow.errors import IntegrityError
from bpmn_workflow.models.bpmn_elements import Definitions
from bpmn_workflow.service.interfaces import DefinitionRepository, ProcessDefinitionHandle

logger = logging.getLogger(__name__)


@dataclass
class DeploymentRecord:
    """One deployment made through the repository."""

    deployment_id: str
    name: str
    resource_name: str
    process_key: str


class InMemoryDefinitionRepository(DefinitionRepository):
    """Keeps every deployed version in memory; lookups return the latest version."""

    def __init__(self, config: Optional[WorkflowConfig] = None):
        self.config = config or WorkflowConfig()
        self.deployments: List[DeploymentRecord] = []
        self._versions: Dict[str, List[ProcessDefinitionHandle]] = {}
        self._models: Dict[str, Definitions] = {}

    def base_definition_exists(self, doc_type: str) -> bool:
        return self.find_base_definition(doc_type) is not None

    def find_base_definition(self, doc_type: str) -> Optional[ProcessDefinitionHandle]:
        return self._latest(self.config.create_process_id(doc_type, self.config.workflow_group_none))

    def definition_exists(self, doc_type: str, group: str) -> bool:
        return self.find_definition(doc_type, group) is not None

    def find_definition(self, doc_type: str, group: str) -> Optional[ProcessDefinitionHandle]:
        return self._latest(self.config.create_process_id(doc_type, group))

    def load_model(self, handle: ProcessDefinitionHandle) -> Definitions:
        model = self._models.get(handle.id)
        if model is None:
            raise IntegrityError(f"No model stored for process definition '{handle.id}'")
        return model.model_copy(deep=True)

    def deploy(self, name: str, resource_name: str, definitions: Definitions) -> str:
        process = definitions.main_process
        if process is None:
            raise IntegrityError(f"Deployment '{name}' contains no process")

        deployment_id = f"deployment-{len(self.deployments) + 1}"
        versions = self._versions.setdefault(process.id, [])
        handle = ProcessDefinitionHandle(
            id=f"{process.id}:{len(versions) + 1}:{deployment_id}",
            key=process.id,
            name=process.name,
            version=len(versions) + 1,
            deployment_id=deployment_id,
        )
        versions.append(handle)
        self._models[handle.id] = definitions.model_copy(deep=True)
        self.deployments.append(
            DeploymentRecord(
                deployment_id=deployment_id,
                name=name,
                resource_name=resource_name,
                process_key=process.id,
            )
        )
        logger.info(f"Deployed '{process.id}' version {handle.version} as {deployment_id}")
        return deployment_id

    def _latest(self, key: str) -> Optional[ProcessDefinitionHandle]:
        versions = self._versions.get(key)
        return versions[-1] if versions else None


__all__ = ["DeploymentRecord", "InMemoryDefinitionRepository"]
