"""
Dynamic Sub-Process Replacement

Swaps a freshly built dynamic sub-process into an existing process. The
sub-process is attached to the rest of the process by exactly two boundary
flows (one in, one out) and by the rejected boundary event; everything else in
the process is left untouched.
"""

import logging
from typing import List, Tuple

from bpmn_workflow.config import REJECTED_BOUNDARY_EVENT_ID
from bpmn_workflow.core import Timer
from bpmn_workflow.errors import StructuralError
from bpmn_workflow.models.bpmn_elements import (
    BoundaryEvent,
    ErrorEventDefinition,
    Process,
    SequenceFlow,
    SubProcess,
)

logger = logging.getLogger(__name__)


class SubProcessSplicer:
    """Replaces the dynamic sub-process of a process."""

    def __init__(self, error_code: str):
        """
        Initialize splicer.

        Args:
            error_code: Error code the rejected boundary event must catch
        """
        self.error_code = error_code

    def find_subprocess(self, process: Process, subprocess_id: str) -> SubProcess:
        node = process.get_flow_node(subprocess_id)
        if not isinstance(node, SubProcess):
            logger.error(f"Process '{process.id}' has no sub process '{subprocess_id}'")
            raise StructuralError(
                f"Could not find the required dynamic sub process '{subprocess_id}' "
                f"in process '{process.id}'"
            )
        return node

    def find_error_definition(self, process: Process) -> ErrorEventDefinition:
        """Get the rejected error definition caught by the boundary event."""
        boundary = process.get_flow_node(REJECTED_BOUNDARY_EVENT_ID)
        if isinstance(boundary, BoundaryEvent):
            for definition in boundary.event_definitions:
                if definition.error_code == self.error_code:
                    return definition

        logger.error(f"Process '{process.id}' has no '{self.error_code}' error event definition")
        raise StructuralError(
            f"Could not find the error event definition '{self.error_code}' "
            f"in process '{process.id}'"
        )

    def find_boundary_flows(
        self, process: Process, subprocess_id: str
    ) -> Tuple[SequenceFlow, SequenceFlow]:
        """
        Get the (inbound, outbound) top-level flows of the sub-process.

        Raises:
            StructuralError: Unless there is exactly one flow of each
        """
        inbound: List[SequenceFlow] = []
        outbound: List[SequenceFlow] = []
        for flow in process.sequence_flows:
            if flow.target_ref == subprocess_id:
                inbound.append(flow)
            elif flow.source_ref == subprocess_id:
                outbound.append(flow)

        if len(inbound) != 1 or len(outbound) != 1:
            logger.error(
                f"Sub process '{subprocess_id}' has {len(inbound)} inbound and "
                f"{len(outbound)} outbound flows"
            )
            raise StructuralError("Could not find source and ref sequence flows")
        return inbound[0], outbound[0]

    def splice(
        self, process: Process, old_subprocess_id: str, new_subprocess: SubProcess
    ) -> Process:
        """
        Replace a sub-process.

        The input process is not modified; a deep copy with the new sub-process
        in place of the old one is returned.

        Args:
            process: Process holding the sub-process to replace
            old_subprocess_id: ID of the sub-process to replace
            new_subprocess: Replacement sub-process

        Returns:
            Updated copy of the process

        Raises:
            StructuralError: If the sub-process, the error definition or its two
                boundary flows cannot be found, or the new sub-process ID is
                already used by another node
        """
        with Timer("subprocess_splice"):
            clone = process.clone()
            self.find_subprocess(clone, old_subprocess_id)
            self.find_error_definition(clone)
            inbound, outbound = self.find_boundary_flows(clone, old_subprocess_id)

            replacement = new_subprocess.model_copy(deep=True)
            if replacement.id != old_subprocess_id:
                if clone.get_flow_node(replacement.id) is not None:
                    logger.error(f"Process '{clone.id}' already has a node '{replacement.id}'")
                    raise StructuralError(
                        f"Cannot replace sub process '{old_subprocess_id}': "
                        f"ID '{replacement.id}' is already used in process '{clone.id}'"
                    )
                logger.debug(f"Re-pointing boundary of '{old_subprocess_id}' to '{replacement.id}'")
                clone.remove_flow_node(old_subprocess_id)
                inbound.target_ref = replacement.id
                outbound.source_ref = replacement.id
                for node in clone.flow_nodes:
                    if isinstance(node, BoundaryEvent) and node.attached_to_ref == old_subprocess_id:
                        node.attached_to_ref = replacement.id

            clone.add_flow_node(replacement)
            logger.info(f"Replaced sub process '{old_subprocess_id}' in process '{clone.id}'")
            return clone


__all__ = ["SubProcessSplicer"]
