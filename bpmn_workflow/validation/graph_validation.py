"""
Structural Graph Validation

Cross-reference checks for processes and sub-processes: every sequence flow
must be closed and must connect existing nodes of the same container.
"""

import logging
from typing import List, Set, Tuple, Union

from bpmn_workflow.models.bpmn_elements import BoundaryEvent, Process, SubProcess

logger = logging.getLogger(__name__)

FlowContainer = Union[Process, SubProcess]


def find_open_flows(container: FlowContainer) -> List[str]:
    """Get IDs (or source refs, for anonymous flows) of flows without a target."""
    return [flow.id or f"<from {flow.source_ref}>" for flow in container.sequence_flows if flow.is_open]


def validate_references(container: FlowContainer) -> Tuple[bool, List[str]]:
    """
    Validate all cross-references in a flow container.

    Checks that:
    - Node IDs are unique
    - Flow IDs are unique
    - Every flow has a target
    - Every flow source and target is a node of the container
    - Boundary events are attached to an existing node

    Nested sub-processes are validated recursively.

    Returns:
        (is_valid, error_messages)
    """
    errors: List[str] = []

    node_ids: Set[str] = set()
    for node in container.flow_nodes:
        if node.id in node_ids:
            errors.append(f"Duplicate node ID: {node.id}")
        node_ids.add(node.id)

    flow_ids: Set[str] = set()
    for flow in container.sequence_flows:
        label = flow.id or f"<from {flow.source_ref}>"
        if flow.id:
            if flow.id in flow_ids or flow.id in node_ids:
                errors.append(f"Duplicate flow ID: {flow.id}")
            flow_ids.add(flow.id)

        if flow.source_ref not in node_ids:
            errors.append(f"SequenceFlow '{label}' references non-existent source: {flow.source_ref}")
        if flow.is_open:
            errors.append(f"SequenceFlow '{label}' has no target")
        elif flow.target_ref not in node_ids:
            errors.append(f"SequenceFlow '{label}' references non-existent target: {flow.target_ref}")

    for node in container.flow_nodes:
        if isinstance(node, BoundaryEvent) and node.attached_to_ref not in node_ids:
            errors.append(
                f"BoundaryEvent '{node.id}' is attached to non-existent node: {node.attached_to_ref}"
            )
        if isinstance(node, SubProcess):
            _, nested_errors = validate_references(node)
            errors.extend(f"{node.id}: {message}" for message in nested_errors)

    if errors:
        logger.debug(f"Container '{container.id}' has {len(errors)} structural issue(s)")

    return len(errors) == 0, errors


__all__ = ["FlowContainer", "find_open_flows", "validate_references"]
