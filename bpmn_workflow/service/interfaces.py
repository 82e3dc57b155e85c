"""
Collaborator Interfaces

Definition lookup, model retrieval, deployment and layout are owned by the
workflow engine; the workflow builder only talks to them through these
interfaces.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field

from bpmn_workflow.models.bpmn_elements import Definitions


class ProcessDefinitionHandle(BaseModel):
    """Reference to a deployed process definition."""

    id: str = Field(..., description="Definition ID (unique per version)")
    key: str = Field(..., description="Process key")
    name: Optional[str] = Field(None, description="Process name")
    version: int = Field(1, ge=1, description="Definition version")
    deployment_id: str = Field(..., description="Deployment that produced this version")


class DefinitionRepository(ABC):
    @abstractmethod
    def base_definition_exists(self, doc_type: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def find_base_definition(self, doc_type: str) -> Optional[ProcessDefinitionHandle]:
        raise NotImplementedError

    @abstractmethod
    def definition_exists(self, doc_type: str, group: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def find_definition(self, doc_type: str, group: str) -> Optional[ProcessDefinitionHandle]:
        raise NotImplementedError

    @abstractmethod
    def load_model(self, handle: ProcessDefinitionHandle) -> Definitions:
        raise NotImplementedError

    @abstractmethod
    def deploy(self, name: str, resource_name: str, definitions: Definitions) -> str:
        """Deploy definitions and return the deployment ID."""
        raise NotImplementedError


class LayoutEngine(ABC):
    @abstractmethod
    def layout(self, definitions: Definitions) -> Definitions:
        raise NotImplementedError


__all__ = ["DefinitionRepository", "LayoutEngine", "ProcessDefinitionHandle"]
