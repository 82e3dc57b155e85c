"""
bpmn-workflow Tools

Command-line interface for building and inspecting dynamic workflows.
"""

from bpmn_workflow.tools.cli import cli

__all__ = ["cli"]
