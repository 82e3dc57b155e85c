"""
Models for dynamic BPMN workflows.
"""

from bpmn_workflow.models.bpmn_elements import (
    BaseElement,
    BoundaryEvent,
    BPMNElementType,
    Definitions,
    EndEvent,
    ErrorEventDefinition,
    ExclusiveGateway,
    Listener,
    ListenerImplementationType,
    Process,
    SequenceFlow,
    StartEvent,
    SubProcess,
    UserTask,
)
from bpmn_workflow.models.tasks import DynamicUserTask, TaskKind, sort_by_index

__all__ = [
    "BaseElement",
    "BoundaryEvent",
    "BPMNElementType",
    "Definitions",
    "EndEvent",
    "ErrorEventDefinition",
    "ExclusiveGateway",
    "Listener",
    "ListenerImplementationType",
    "Process",
    "SequenceFlow",
    "StartEvent",
    "SubProcess",
    "UserTask",
    "DynamicUserTask",
    "TaskKind",
    "sort_by_index",
]
