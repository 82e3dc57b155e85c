"""
Workflow builder service and its collaborator interfaces.
"""

from bpmn_workflow.service.interfaces import (
    DefinitionRepository,
    LayoutEngine,
    ProcessDefinitionHandle,
)
from bpmn_workflow.service.memory_repository import DeploymentRecord, InMemoryDefinitionRepository
from bpmn_workflow.service.workflow_builder import WorkflowBuilder

__all__ = [
    "DefinitionRepository",
    "DeploymentRecord",
    "InMemoryDefinitionRepository",
    "LayoutEngine",
    "ProcessDefinitionHandle",
    "WorkflowBuilder",
]
