"""
bpmn-workflow CLI Interface

Command-line tool for building dynamic document workflows and for rebuilding
or inspecting the dynamic tasks of a serialized process.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

import click
from pydantic import TypeAdapter, ValidationError

from bpmn_workflow import config as contract
from bpmn_workflow.config import SUBPROCESS_ID_DYNAMIC, WorkflowConfig
from bpmn_workflow.core.observability import LogLevel, ObservabilityConfig, ObservabilityManager
from bpmn_workflow.errors import StructuralError, WorkflowError
from bpmn_workflow.models.bpmn_elements import Definitions, Process
from bpmn_workflow.models.tasks import DynamicUserTask
from bpmn_workflow.stages.chain_builder import ChainBuilder
from bpmn_workflow.stages.process_assembler import ProcessAssembler
from bpmn_workflow.stages.subprocess_splicer import SubProcessSplicer
from bpmn_workflow.stages.task_classifier import read_dynamic_tasks

logger = logging.getLogger(__name__)

_TASK_LIST = TypeAdapter(List[DynamicUserTask])


@click.group()
@click.option("--verbose/--quiet", default=None, help="Verbose logging output")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.pass_context
def cli(ctx: click.Context, verbose: Optional[bool], json_logs: bool) -> None:
    """bpmn-workflow CLI - Build and modify dynamic document workflows."""
    overrides = {
        "service_name": "bpmn-workflow-cli",
        "sink": sys.stderr,
        "capture_stdlib_logging": True,
    }
    if verbose is not None:
        overrides["log_level"] = LogLevel.DEBUG if verbose else LogLevel.WARNING
    elif "BPMN_WORKFLOW_LOG_LEVEL" not in os.environ:
        overrides["log_level"] = LogLevel.WARNING
    if json_logs:
        overrides["json_logs"] = True

    ObservabilityManager.reset()
    ObservabilityManager.initialize(ObservabilityConfig.from_env(**overrides))
    ctx.obj = WorkflowConfig.from_env()


@cli.command()
@click.option("--doc-type", "-d", required=True, help="Document type")
@click.option("--group", "-g", required=True, help="Workflow group")
@click.option(
    "--tasks-file",
    "-t",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON list of dynamic tasks (empty sub process when omitted)",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file path")
@click.pass_obj
def build(
    config: WorkflowConfig,
    doc_type: str,
    group: str,
    tasks_file: Optional[str],
    output: Optional[str],
) -> None:
    """
    Build a document workflow and print it as JSON.

    \b
    Examples:
        bpmn-workflow build -d INVOICE -g finance -t tasks.json
        bpmn-workflow build -d INVOICE -g finance -o invoice_finance.json
    """
    try:
        tasks = _read_tasks(tasks_file) if tasks_file else []
        definitions = ProcessAssembler(config).document_with_tasks(tasks, doc_type, group)
    except (WorkflowError, ValidationError) as e:
        _fail(e)

    _write_output(definitions.model_dump_json(indent=2), output)


@cli.command()
@click.argument("graph_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.pass_obj
def tasks(config: WorkflowConfig, graph_file: str, output_format: str) -> None:
    """
    List the dynamic tasks of a serialized workflow in chain order.

    \b
    Examples:
        bpmn-workflow tasks invoice_finance.json
        bpmn-workflow tasks invoice_finance.json --format json
    """
    try:
        process = _read_process(graph_file)
        subprocess = SubProcessSplicer(config.error_code).find_subprocess(
            process, SUBPROCESS_ID_DYNAMIC
        )
        dynamic_tasks = read_dynamic_tasks(subprocess)
    except (WorkflowError, ValidationError) as e:
        _fail(e)

    if output_format == "json":
        click.echo(_TASK_LIST.dump_json(dynamic_tasks, indent=2).decode("utf-8"))
        return

    for task in dynamic_tasks:
        candidates = ", ".join(task.candidate_users + task.candidate_groups) or "-"
        click.echo(f"{task.index}. [{task.kind.value}] {task.id}: {task.name} ({candidates})")


@cli.command()
@click.argument("graph_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--tasks-file",
    "-t",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="JSON list of dynamic tasks",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file path")
@click.pass_obj
def splice(
    config: WorkflowConfig, graph_file: str, tasks_file: str, output: Optional[str]
) -> None:
    """
    Rebuild the dynamic sub process of a serialized workflow.

    \b
    Examples:
        bpmn-workflow splice invoice_finance.json -t new_tasks.json -o updated.json
    """
    try:
        definitions = _read_definitions(graph_file)
        process = _main_process(definitions, graph_file)
        splicer = SubProcessSplicer(config.error_code)
        splicer.find_subprocess(process, SUBPROCESS_ID_DYNAMIC)
        error_definition = splicer.find_error_definition(process)
        subprocess = ChainBuilder().build(_read_tasks(tasks_file), error_definition)
        updated = splicer.splice(process, SUBPROCESS_ID_DYNAMIC, subprocess)
    except (WorkflowError, ValidationError) as e:
        _fail(e)

    result = Definitions(target_namespace=definitions.target_namespace, processes=[updated])
    _write_output(result.model_dump_json(indent=2), output)


@cli.command()
@click.pass_obj
def info(config: WorkflowConfig) -> None:
    """Show version and the reserved identifiers of the workflow contract."""
    from bpmn_workflow import __version__

    info_dict = {
        "name": "bpmn-workflow",
        "version": __version__,
        "description": "Build and modify dynamic BPMN document workflows",
        "target_namespace": config.target_namespace,
        "error_code": config.error_code,
        "subprocess_id": contract.SUBPROCESS_ID_DYNAMIC,
        "boundary_event_id": contract.REJECTED_BOUNDARY_EVENT_ID,
        "task_id_prefixes": {
            "approval": contract.TASK_ID_APPROVAL,
            "collaboration": contract.TASK_ID_COLLABORATION,
        },
    }

    click.echo(json.dumps(info_dict, indent=2))


# ==================
# Helper Functions
# ==================


def _fail(error: Exception) -> NoReturn:
    logger.debug("Command failed", exc_info=True)
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _read_tasks(path: str) -> List[DynamicUserTask]:
    return _TASK_LIST.validate_json(Path(path).read_bytes())


def _read_definitions(path: str) -> Definitions:
    return Definitions.model_validate_json(Path(path).read_bytes())


def _main_process(definitions: Definitions, path: str) -> Process:
    process = definitions.main_process
    if process is None:
        raise StructuralError(f"{path} contains no process")
    return process


def _read_process(path: str) -> Process:
    return _main_process(_read_definitions(path), path)


def _write_output(content: str, output_file: Optional[str]) -> None:
    if output_file:
        Path(output_file).write_text(content)
        click.echo(f"Workflow written to: {output_file}", err=True)
    else:
        click.echo(content)


if __name__ == "__main__":
    cli()
