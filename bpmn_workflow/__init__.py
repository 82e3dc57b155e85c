"""
bpmn-workflow: Dynamic Task Chains for BPMN Document Workflows

Builds the dynamic approval/collaboration sub-process of a document workflow,
splices rebuilt sub-processes into existing processes, and reads the dynamic
tasks back out of a deployed definition.
"""

# Configuration and errors
from bpmn_workflow.config import WorkflowConfig
from bpmn_workflow.core.observability import ObservabilityConfig, ObservabilityManager
from bpmn_workflow.errors import (
    IntegrityError,
    PreconditionError,
    StructuralError,
    TaskValidationError,
    WorkflowError,
)

# Models
from bpmn_workflow.models import (
    BoundaryEvent,
    Definitions,
    DynamicUserTask,
    EndEvent,
    ErrorEventDefinition,
    ExclusiveGateway,
    Process,
    SequenceFlow,
    StartEvent,
    SubProcess,
    TaskKind,
    UserTask,
)

# Service
from bpmn_workflow.service import (
    DefinitionRepository,
    InMemoryDefinitionRepository,
    LayoutEngine,
    ProcessDefinitionHandle,
    WorkflowBuilder,
)

# Stages
from bpmn_workflow.stages import (
    ChainBuilder,
    ProcessAssembler,
    SubProcessSplicer,
    read_dynamic_tasks,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Config
    "WorkflowConfig",
    "ObservabilityConfig",
    "ObservabilityManager",
    # Errors
    "WorkflowError",
    "PreconditionError",
    "StructuralError",
    "TaskValidationError",
    "IntegrityError",
    # Models
    "BoundaryEvent",
    "Definitions",
    "DynamicUserTask",
    "EndEvent",
    "ErrorEventDefinition",
    "ExclusiveGateway",
    "Process",
    "SequenceFlow",
    "StartEvent",
    "SubProcess",
    "TaskKind",
    "UserTask",
    # Service
    "DefinitionRepository",
    "InMemoryDefinitionRepository",
    "LayoutEngine",
    "ProcessDefinitionHandle",
    "WorkflowBuilder",
    # Stages
    "ChainBuilder",
    "ProcessAssembler",
    "SubProcessSplicer",
    "read_dynamic_tasks",
]
