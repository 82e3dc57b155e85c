"""
Structural validation for dynamic workflows.
"""

from bpmn_workflow.validation.graph_validation import (
    FlowContainer,
    find_open_flows,
    validate_references,
)

__all__ = ["FlowContainer", "find_open_flows", "validate_references"]
