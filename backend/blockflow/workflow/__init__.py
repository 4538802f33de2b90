"""
Workflow Engine — graph queries for the visual block editor.

The editor assembles catalog blocks (triggers, actions, conditions)
into a directed graph. This package holds the snapshot data model
and the engine that derives execution order and validates the graph.

Architecture:
    block_kinds          — BlockRole + kind-to-role registry
    workflow_model       — Blocks, config field schemas, connections
    workflow_validation  — Structured validation issues
    workflow_engine      — WorkflowEngine query layer
    workflow_inspector   — Diagnostics report and execution outline
"""

from blockflow.workflow.block_kinds import (
    BlockKindDef,
    BlockKindRegistry,
    BlockRole,
    get_block_kind_registry,
)
from blockflow.workflow.workflow_model import (
    ALL_PORTS,
    ConfigFieldSchema,
    Connection,
    Port,
    WorkflowBlock,
    WorkflowSnapshot,
    is_missing_value,
)
from blockflow.workflow.workflow_validation import (
    IssueCode,
    ValidationIssue,
    ValidationResult,
)
from blockflow.workflow.workflow_engine import (
    BlockStatus,
    ExecutionNode,
    WorkflowEngine,
    WorkflowStats,
)
from blockflow.workflow.workflow_inspector import (
    inspect_workflow,
    render_execution_outline,
)

__all__ = [
    "BlockKindDef",
    "BlockKindRegistry",
    "BlockRole",
    "get_block_kind_registry",
    "ALL_PORTS",
    "ConfigFieldSchema",
    "Connection",
    "Port",
    "WorkflowBlock",
    "WorkflowSnapshot",
    "is_missing_value",
    "IssueCode",
    "ValidationIssue",
    "ValidationResult",
    "BlockStatus",
    "ExecutionNode",
    "WorkflowEngine",
    "WorkflowStats",
    "inspect_workflow",
    "render_execution_outline",
]
