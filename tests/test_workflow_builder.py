"""
Tests for the workflow builder service over the in-memory repository.
"""

from typing import Optional

import pytest

from bpmn_workflow.config import SUBPROCESS_ID_DYNAMIC
from bpmn_workflow.errors import IntegrityError, PreconditionError, StructuralError
from bpmn_workflow.models.bpmn_elements import Definitions
from bpmn_workflow.models.tasks import DynamicUserTask, TaskKind
from bpmn_workflow.service.interfaces import LayoutEngine, ProcessDefinitionHandle
from bpmn_workflow.service.memory_repository import InMemoryDefinitionRepository
from bpmn_workflow.service.workflow_builder import WorkflowBuilder


class RecordingLayout(LayoutEngine):
    def __init__(self):
        self.calls = []

    def layout(self, definitions: Definitions) -> Definitions:
        self.calls.append(definitions.main_process.id)
        return definitions


class ForgetfulRepository(InMemoryDefinitionRepository):
    """Accepts deployments but never finds the group definition afterwards."""

    def find_definition(self, doc_type: str, group: str) -> Optional[ProcessDefinitionHandle]:
        if group == self.config.workflow_group_none:
            return super().find_definition(doc_type, group)
        return None

    def definition_exists(self, doc_type: str, group: str) -> bool:
        return False


@pytest.fixture
def builder(seeded_repository, workflow_config):
    return WorkflowBuilder(seeded_repository, workflow_config)


# ===========================
# create_group_workflow
# ===========================


class TestCreateGroupWorkflow:
    def test_creates_definition(self, builder, seeded_repository):
        handle = builder.create_group_workflow("INVOICE", "finance")

        assert handle.key == "INVOICE_finance"
        assert handle.version == 1
        assert seeded_repository.definition_exists("INVOICE", "finance")

    def test_clone_of_base(self, builder, seeded_repository):
        handle = builder.create_group_workflow("INVOICE", "finance")

        model = seeded_repository.load_model(handle)
        process = model.main_process
        base = seeded_repository.load_model(
            seeded_repository.find_base_definition("INVOICE")
        ).main_process
        assert process.id == "INVOICE_finance"
        assert process.name == "INVOICE for group finance"
        assert [n.id for n in process.flow_nodes] == [n.id for n in base.flow_nodes]
        assert base.id == "INVOICE_NONE"

    def test_deployment_naming(self, builder, seeded_repository):
        handle = builder.create_group_workflow("INVOICE", "finance")

        record = seeded_repository.deployments[-1]
        assert record.deployment_id == handle.deployment_id
        assert record.name == "Dynamic Process Deployment - INVOICE_finance"
        assert record.resource_name == "INVOICE_finance.bpmn"

    def test_missing_base(self, builder):
        with pytest.raises(PreconditionError, match="has no base workflow definition"):
            builder.create_group_workflow("CONTRACT", "legal")

    def test_already_exists(self, builder):
        builder.create_group_workflow("INVOICE", "finance")

        with pytest.raises(PreconditionError, match="already exists"):
            builder.create_group_workflow("INVOICE", "finance")

    def test_missing_after_deploy(self, assembler, workflow_config):
        repository = ForgetfulRepository(workflow_config)
        repository.deploy(
            "seed", "INVOICE_NONE.bpmn", assembler.document_with_tasks([], "INVOICE", "NONE")
        )
        builder = WorkflowBuilder(repository, workflow_config)

        with pytest.raises(IntegrityError, match="INVOICE_finance"):
            builder.create_group_workflow("INVOICE", "finance")

    def test_layout_applied(self, seeded_repository, workflow_config):
        layout = RecordingLayout()
        builder = WorkflowBuilder(seeded_repository, workflow_config, layout_engine=layout)

        builder.create_group_workflow("INVOICE", "finance")

        assert layout.calls == ["INVOICE_finance"]


# ===========================
# update_dynamic_tasks / get_dynamic_tasks
# ===========================


class TestUpdateDynamicTasks:
    @pytest.fixture
    def group_handle(self, builder):
        return builder.create_group_workflow("INVOICE", "finance")

    def test_update_and_read_back(self, builder, group_handle, mixed_tasks):
        handle = builder.update_dynamic_tasks("INVOICE", "finance", mixed_tasks)

        assert handle.version == group_handle.version + 1
        tasks = builder.get_dynamic_tasks(handle)
        assert [t.id for t in tasks] == ["approval_1", "collab_1", "approval_2"]
        assert [t.kind for t in tasks] == [
            TaskKind.APPROVAL,
            TaskKind.COLLABORATION,
            TaskKind.APPROVAL,
        ]
        assert tasks[0].candidate_users == ["alice"]

    def test_previous_version_untouched(self, builder, group_handle, mixed_tasks):
        builder.update_dynamic_tasks("INVOICE", "finance", mixed_tasks)

        assert builder.get_dynamic_tasks(group_handle) == []

    def test_base_definition_untouched(self, builder, seeded_repository, group_handle, mixed_tasks):
        builder.update_dynamic_tasks("INVOICE", "finance", mixed_tasks)

        base_handle = seeded_repository.find_base_definition("INVOICE")
        assert base_handle.version == 1
        assert builder.get_dynamic_tasks(base_handle) == []

    def test_replace_with_fewer_tasks(self, builder, group_handle, mixed_tasks):
        builder.update_dynamic_tasks("INVOICE", "finance", mixed_tasks)
        handle = builder.update_dynamic_tasks(
            "INVOICE", "finance", [DynamicUserTask.collaboration(name="Edit")]
        )

        tasks = builder.get_dynamic_tasks(handle)
        assert [(t.id, t.name, t.index) for t in tasks] == [("collab_1", "Edit", 1)]

    def test_group_missing(self, builder):
        with pytest.raises(PreconditionError, match="does not exist"):
            builder.update_dynamic_tasks("INVOICE", "hr", [])

    def test_missing_subprocess(self, builder, seeded_repository, group_handle):
        model = seeded_repository.load_model(group_handle)
        model.main_process.remove_flow_node(SUBPROCESS_ID_DYNAMIC)
        seeded_repository.deploy("broken", "INVOICE_finance.bpmn", model)

        with pytest.raises(StructuralError, match="dynamic sub process"):
            builder.update_dynamic_tasks("INVOICE", "finance", [])

    def test_invalid_task_deploys_nothing(self, builder, seeded_repository, group_handle):
        deployments = len(seeded_repository.deployments)

        with pytest.raises(ValueError):
            builder.update_dynamic_tasks("INVOICE", "finance", [DynamicUserTask.approval()])

        assert len(seeded_repository.deployments) == deployments

    def test_get_tasks_without_subprocess(self, builder, seeded_repository, group_handle):
        model = seeded_repository.load_model(group_handle)
        model.main_process.remove_flow_node(SUBPROCESS_ID_DYNAMIC)
        seeded_repository.deploy("broken", "INVOICE_finance.bpmn", model)

        with pytest.raises(StructuralError):
            builder.get_dynamic_tasks(seeded_repository.find_definition("INVOICE", "finance"))


# ===========================
# Repository
# ===========================


def test_repository_returns_copies(seeded_repository):
    handle = seeded_repository.find_base_definition("INVOICE")

    first = seeded_repository.load_model(handle)
    first.main_process.name = "changed"

    assert seeded_repository.load_model(handle).main_process.name != "changed"


def test_repository_unknown_handle(repository):
    handle = ProcessDefinitionHandle(id="x:1:d", key="x", deployment_id="d")

    with pytest.raises(IntegrityError):
        repository.load_model(handle)


def test_repository_rejects_empty_definitions(repository):
    with pytest.raises(IntegrityError):
        repository.deploy("empty", "empty.bpmn", Definitions(target_namespace="urn:x"))


def test_builder_delegates_document_building(builder, mixed_tasks):
    assert builder.default_document("Base").main_process.id == "GENERAL_NONE"
    document = builder.document_with_tasks(mixed_tasks, "INVOICE", "finance")
    assert document.main_process.id == "INVOICE_finance"
