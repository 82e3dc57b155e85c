"""
Workflow Configuration

Reserved identifiers that make up the dynamic process-graph contract, plus the
tunable settings passed into the assembler and the workflow builder service.
"""

import os
from dataclasses import dataclass

# Dynamic sub-process contract: a rebuilt sub-process always reuses these IDs
SUBPROCESS_ID_DYNAMIC = "dynamic_sub_process"
SUBPROCESS_NAME_DYNAMIC = "Dynamic SubProcess"
SUBPROCESS_START_EVENT_ID = "dynamic_sub_process_start_event"
SUBPROCESS_END_EVENT_ID = "dynamic_sub_process_end_event"
ERROR_END_EVENT_ID = "rejectedErrorEndEvent"

# Process skeleton
START_EVENT_ID = "start"
SUBMIT_TASK_ID = "submitDocUserTask"
SUBMIT_TASK_NAME = "Submit Document to Workflow"
END_EVENT_ID = "end"
REJECTED_BOUNDARY_EVENT_ID = "docRejectedBoundaryEvent"
REJECTED_BOUNDARY_EVENT_NAME = "Rejected Error Event"
REJECTED_FLOW_NAME = "Rejected"

# Task node IDs are "<prefix>_<n>"; the prefix is the only place a node ID
# implies its task kind.
TASK_ID_APPROVAL = "approval"
TASK_ID_COLLABORATION = "collab"

# Listener expressions and gateway conditions evaluated by the engine
LISTENER_APPROVAL_CREATE = "${docWorkflowListener.onCreateApproval(execution, task)}"
LISTENER_COLLABORATION_CREATE = "${docWorkflowListener.onCreateCollaborate(execution, task)}"
LISTENER_COLLABORATION_COMPLETE = "${docWorkflowListener.onCompleteCollaborate(execution, task)}"
LISTENER_APPROVED_TAKE = "${documentWorkflow.onApproved(execution)}"
LISTENER_REJECTED_TAKE = "${documentWorkflow.onRejected(execution)}"
CONDITION_APPROVED = "${approved == true}"
CONDITION_REJECTED = "${approved == false}"


@dataclass
class WorkflowConfig:
    """Settings for assembling and deploying dynamic workflows."""

    target_namespace: str = "http://bpmn-workflow.io/document"
    process_id_separator: str = "_"
    workflow_group_none: str = "NONE"
    base_doc_type: str = "GENERAL"
    error_code: str = "errorDocRejected"
    deployment_name_prefix: str = "Dynamic Process Deployment"

    def create_process_id(self, doc_type: str, group: str) -> str:
        """Process definition key for a document type and group."""
        return f"{doc_type}{self.process_id_separator}{group}"

    @classmethod
    def from_env(cls) -> "WorkflowConfig":
        """Create config from environment variables.

        Unset variables keep their defaults.

        Returns:
            WorkflowConfig instance
        """
        defaults = cls()
        return cls(
            target_namespace=os.getenv("BPMN_WORKFLOW_NAMESPACE", defaults.target_namespace),
            process_id_separator=os.getenv(
                "BPMN_WORKFLOW_ID_SEPARATOR", defaults.process_id_separator
            ),
            workflow_group_none=os.getenv("BPMN_WORKFLOW_GROUP_NONE", defaults.workflow_group_none),
            base_doc_type=os.getenv("BPMN_WORKFLOW_BASE_DOC_TYPE", defaults.base_doc_type),
            error_code=os.getenv("BPMN_WORKFLOW_ERROR_CODE", defaults.error_code),
            deployment_name_prefix=os.getenv(
                "BPMN_WORKFLOW_DEPLOYMENT_PREFIX", defaults.deployment_name_prefix
            ),
        )
