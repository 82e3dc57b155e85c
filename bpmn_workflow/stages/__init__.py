"""
Dynamic workflow construction stages.

Chain building, process assembly, sub-process replacement and reading tasks
back out of an existing process.
"""

from bpmn_workflow.stages.chain_builder import (
    ChainBuilder,
    count_task_kinds,
    create_sequence_flow,
    task_kind,
)
from bpmn_workflow.stages.process_assembler import ProcessAssembler
from bpmn_workflow.stages.subprocess_splicer import SubProcessSplicer
from bpmn_workflow.stages.task_classifier import (
    TASK_ID_PREFIXES,
    chain_positions,
    classify,
    from_user_task,
    is_dynamic_user_task,
    read_dynamic_tasks,
)

__all__ = [
    "ChainBuilder",
    "ProcessAssembler",
    "SubProcessSplicer",
    "TASK_ID_PREFIXES",
    "chain_positions",
    "classify",
    "count_task_kinds",
    "create_sequence_flow",
    "from_user_task",
    "is_dynamic_user_task",
    "read_dynamic_tasks",
    "task_kind",
]
