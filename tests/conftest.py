"""Pytest configuration for bpmn-workflow tests."""

import logging
from typing import List

import pytest
from loguru import logger

from bpmn_workflow.config import WorkflowConfig
from bpmn_workflow.core.observability import ObservabilityManager, StdlibLogBridge
from bpmn_workflow.models.bpmn_elements import Definitions, ErrorEventDefinition, Process
from bpmn_workflow.models.tasks import DynamicUserTask
from bpmn_workflow.service.memory_repository import InMemoryDefinitionRepository
from bpmn_workflow.stages.process_assembler import ProcessAssembler


@pytest.fixture(autouse=True)
def reset_observability():
    """Every test starts without a configured observability manager."""
    ObservabilityManager.reset()
    yield
    ObservabilityManager.reset()
    logger.remove()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, StdlibLogBridge):
            root.removeHandler(handler)


# ===========================
# Configuration Fixtures
# ===========================


@pytest.fixture
def workflow_config() -> WorkflowConfig:
    return WorkflowConfig()


@pytest.fixture
def error_definition(workflow_config) -> ErrorEventDefinition:
    return ErrorEventDefinition(error_code=workflow_config.error_code)


# ===========================
# Task Descriptor Fixtures
# ===========================


@pytest.fixture
def mixed_tasks() -> List[DynamicUserTask]:
    """Approval by users, collaboration by a group, approval by a group."""
    return [
        DynamicUserTask.approval(candidate_users=["alice"]),
        DynamicUserTask.collaboration(candidate_groups=["editors"]),
        DynamicUserTask.approval(candidate_groups=["managers"]),
    ]


@pytest.fixture
def single_approval() -> List[DynamicUserTask]:
    return [DynamicUserTask.approval(candidate_users=["bob"])]


# ===========================
# Process Fixtures
# ===========================


@pytest.fixture
def assembler(workflow_config) -> ProcessAssembler:
    return ProcessAssembler(workflow_config)


@pytest.fixture
def base_definitions(assembler) -> Definitions:
    """Base definition with an empty dynamic sub process."""
    return assembler.default_document("General document workflow")


@pytest.fixture
def populated_process(assembler, mixed_tasks) -> Process:
    return assembler.document_with_tasks(mixed_tasks, "INVOICE", "finance").main_process


@pytest.fixture
def repository(workflow_config) -> InMemoryDefinitionRepository:
    return InMemoryDefinitionRepository(workflow_config)


@pytest.fixture
def seeded_repository(repository, assembler) -> InMemoryDefinitionRepository:
    """Repository holding a base definition for the INVOICE document type."""
    base = assembler.document_with_tasks([], "INVOICE", repository.config.workflow_group_none)
    repository.deploy("seed", "INVOICE_NONE.bpmn", base)
    return repository

