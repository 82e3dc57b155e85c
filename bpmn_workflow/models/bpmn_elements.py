"""
BPMN 2.0 Domain Model

Pydantic-based models for the subset of BPMN 2.0 used by dynamic document
workflows: events, user tasks, exclusive gateways, sub-processes, boundary
events and sequence flows.

Every concrete element carries a literal ``element_type`` so that a dumped
process validates back into the same node classes.
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class BPMNElementType(str, Enum):
    """BPMN element types."""

    PROCESS = "process"
    USER_TASK = "userTask"
    START_EVENT = "startEvent"
    END_EVENT = "endEvent"
    BOUNDARY_EVENT = "boundaryEvent"
    EXCLUSIVE_GATEWAY = "exclusiveGateway"
    SUBPROCESS = "subProcess"
    SEQUENCE_FLOW = "sequenceFlow"


class ListenerImplementationType(str, Enum):
    """How a listener implementation string is interpreted by the engine."""

    EXPRESSION = "expression"
    DELEGATE_EXPRESSION = "delegateExpression"
    CLASS = "class"


class BaseElement(BaseModel):
    """Base class for all BPMN elements."""

    id: str = Field(..., description="Unique element ID")
    name: Optional[str] = Field(None, description="Element name/label")
    documentation: Optional[str] = Field(None, description="Element documentation")

    model_config = ConfigDict(use_enum_values=False)


class Listener(BaseModel):
    """Task or execution listener fired by the engine on a lifecycle event."""

    event: str = Field(..., description="Event name: create/complete/take")
    implementation: str = Field(..., description="Listener implementation")
    implementation_type: ListenerImplementationType = Field(
        default=ListenerImplementationType.EXPRESSION, description="Implementation type"
    )

    model_config = ConfigDict(frozen=True)


class ErrorEventDefinition(BaseModel):
    """BPMN ErrorEventDefinition (error thrown by an end event, caught by a boundary event)."""

    error_code: str = Field(..., description="Error code")


class StartEvent(BaseElement):
    """Start Event (process initiation point)."""

    element_type: Literal["startEvent"] = BPMNElementType.START_EVENT.value


class EndEvent(BaseElement):
    """End Event (process termination point).

    An end event carrying an error event definition is an error end event.
    """

    element_type: Literal["endEvent"] = BPMNElementType.END_EVENT.value
    event_definitions: List[ErrorEventDefinition] = Field(
        default_factory=list, description="Error event definitions"
    )

    @property
    def error_code(self) -> Optional[str]:
        """Error code thrown by this end event, if any."""
        return self.event_definitions[0].error_code if self.event_definitions else None


class BoundaryEvent(BaseElement):
    """Boundary Event (attached to an activity, triggered during its execution)."""

    element_type: Literal["boundaryEvent"] = BPMNElementType.BOUNDARY_EVENT.value
    attached_to_ref: str = Field(..., description="Activity ID this event is attached to")
    event_definitions: List[ErrorEventDefinition] = Field(
        default_factory=list, description="Event definitions caught by this event"
    )
    cancel_activity: bool = Field(True, description="Whether triggering cancels the activity")


class UserTask(BaseElement):
    """User Task (manual work performed by a candidate user or group)."""

    element_type: Literal["userTask"] = BPMNElementType.USER_TASK.value
    candidate_users: List[str] = Field(default_factory=list, description="Candidate users")
    candidate_groups: List[str] = Field(default_factory=list, description="Candidate groups")
    task_listeners: Tuple[Listener, ...] = Field(
        default_factory=tuple, description="Task lifecycle listeners"
    )


class ExclusiveGateway(BaseElement):
    """Exclusive Gateway (XOR - single path selection)."""

    element_type: Literal["exclusiveGateway"] = BPMNElementType.EXCLUSIVE_GATEWAY.value
    default_flow: Optional[str] = Field(None, description="Default outgoing flow ID")


class SequenceFlow(BaseModel):
    """Sequence Flow (control flow between elements).

    ``target_ref`` is only ``None`` while the flow is still open during
    construction.
    """

    element_type: Literal["sequenceFlow"] = BPMNElementType.SEQUENCE_FLOW.value
    id: Optional[str] = Field(None, description="Flow ID")
    name: Optional[str] = Field(None, description="Flow label")
    source_ref: str = Field(..., description="Source element ID")
    target_ref: Optional[str] = Field(None, description="Target element ID")
    condition_expression: Optional[str] = Field(None, description="Guard condition")
    execution_listeners: Tuple[Listener, ...] = Field(
        default_factory=tuple, description="Listeners fired when the flow is taken"
    )

    @property
    def is_open(self) -> bool:
        return self.target_ref is None


def _put_node(nodes: List[BaseElement], node: BaseElement) -> None:
    for position, existing in enumerate(nodes):
        if existing.id == node.id:
            nodes[position] = node
            return
    nodes.append(node)


SubProcessNode = Annotated[
    Union[StartEvent, EndEvent, UserTask, ExclusiveGateway, BoundaryEvent],
    Field(discriminator="element_type"),
]


class SubProcess(BaseElement):
    """SubProcess (nested process container)."""

    element_type: Literal["subProcess"] = BPMNElementType.SUBPROCESS.value
    flow_nodes: List[SubProcessNode] = Field(
        default_factory=list, description="Nested task, gateway and event elements"
    )
    sequence_flows: List[SequenceFlow] = Field(
        default_factory=list, description="Nested control flows"
    )

    def get_flow_node(self, node_id: str) -> Optional[BaseElement]:
        return next((n for n in self.flow_nodes if n.id == node_id), None)

    def add_flow_node(self, node: BaseElement) -> None:
        """Add a nested flow node, replacing any node with the same ID in place."""
        _put_node(self.flow_nodes, node)

    def add_sequence_flow(self, flow: SequenceFlow) -> None:
        self.sequence_flows.append(flow)


FlowNode = Annotated[
    Union[StartEvent, EndEvent, UserTask, ExclusiveGateway, BoundaryEvent, SubProcess],
    Field(discriminator="element_type"),
]


class Process(BaseElement):
    """BPMN Process (main workflow container)."""

    is_executable: bool = Field(True, description="Whether process is executable")
    flow_nodes: List[FlowNode] = Field(
        default_factory=list, description="Task, SubProcess, Gateway and Event elements"
    )
    sequence_flows: List[SequenceFlow] = Field(default_factory=list, description="Control flows")

    def get_flow_node(self, node_id: str) -> Optional[BaseElement]:
        """Get a top-level flow node by ID."""
        return next((n for n in self.flow_nodes if n.id == node_id), None)

    def add_flow_node(self, node: BaseElement) -> None:
        """Add a top-level flow node, replacing any node with the same ID in place."""
        _put_node(self.flow_nodes, node)

    def remove_flow_node(self, node_id: str) -> Optional[BaseElement]:
        """Remove a top-level flow node by ID and return it."""
        for position, existing in enumerate(self.flow_nodes):
            if existing.id == node_id:
                return self.flow_nodes.pop(position)
        return None

    def add_sequence_flow(self, flow: SequenceFlow) -> None:
        self.sequence_flows.append(flow)

    def clone(self) -> "Process":
        """Deep copy: no node or flow instance is shared with the original."""
        return self.model_copy(deep=True)


class Definitions(BaseModel):
    """BPMN Definitions (root container, one model per deployment resource)."""

    target_namespace: str = Field(..., description="Target namespace URI")
    processes: List[Process] = Field(default_factory=list, description="Process definitions")

    @property
    def main_process(self) -> Optional[Process]:
        """Get primary process (first process if available)."""
        return self.processes[0] if self.processes else None

    def add_process(self, process: Process) -> None:
        self.processes.append(process)


__all__ = [
    "BPMNElementType",
    "ListenerImplementationType",
    "BaseElement",
    "Listener",
    "ErrorEventDefinition",
    "StartEvent",
    "EndEvent",
    "BoundaryEvent",
    "UserTask",
    "ExclusiveGateway",
    "SequenceFlow",
    "SubProcess",
    "Process",
    "Definitions",
]
