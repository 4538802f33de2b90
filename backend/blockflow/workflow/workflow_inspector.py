"""
Workflow Inspector — a diagnostics view of one engine snapshot.

Produces a structured report the editor can show in a debug panel:

* Each block with its role, completion status and outgoing targets
* How each connection is wired (normal continuation, branch, dangling)
* The execution tree rooted at every trigger
* Aggregate stats and the validation result

``render_execution_outline`` turns the execution trees into an
indented text outline for logs.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, List, Optional

from blockflow.workflow.workflow_engine import ExecutionNode, WorkflowEngine
from blockflow.workflow.workflow_model import Connection, Port, WorkflowBlock

logger = getLogger(__name__)


# ====================================================================
# Public API
# ====================================================================


def inspect_workflow(engine: WorkflowEngine) -> Dict[str, Any]:
    """Inspect a snapshot and produce the diagnostics report.

    Returns a dict containing:
        - ``blocks``     : Per-block detail list
        - ``connections``: Per-connection detail list
        - ``execution``  : Execution trees, one per trigger
        - ``summary``    : Workflow stats (camelCase keys)
        - ``validation`` : ``{"isValid", "errors"}``
    """
    validation = engine.validate_workflow()
    trees = engine.get_execution_trees()

    return {
        "blocks": _build_block_details(engine),
        "connections": _build_connection_details(engine),
        "execution": [tree.to_dict() for tree in trees],
        "summary": engine.get_workflow_stats().to_dict(),
        "validation": validation.to_dict(),
    }


def render_execution_outline(engine: WorkflowEngine) -> str:
    """Render every execution tree as an indented outline."""
    trees = engine.get_execution_trees()
    lines: List[str] = []

    lines.append("# " + "═" * 60)
    lines.append(
        f"# Blocks: {len(engine.blocks)} | Connections: {len(engine.connections)}"
        f" | Execution paths: {len(trees)}"
    )
    lines.append("# " + "═" * 60)

    if not trees:
        lines.append("# (no trigger blocks)")
        return "\n".join(lines)

    for tree in trees:
        lines.append("")
        _render_tree(engine, tree, lines)

    return "\n".join(lines)


# ====================================================================
# Block detail builder
# ====================================================================


def _block_label(block: Optional[WorkflowBlock], fallback: str) -> str:
    if block is None:
        return fallback
    return block.name or block.id


def _build_block_details(engine: WorkflowEngine) -> List[Dict[str, Any]]:
    details = []
    sep = engine.config.id_separator

    for block in engine.blocks:
        targets = []
        for port in Port:
            for target in engine.get_next_blocks(block.id, port):
                targets.append({
                    "port": port.value,
                    "target_id": target.id,
                    "target_label": _block_label(target, target.id),
                })

        missing = [
            field.label or key
            for key, field in block.get_missing_required_fields()
        ]
        status = engine.get_block_status(block.id)

        details.append({
            "id": block.id,
            "label": _block_label(block, block.id),
            "kind": block.get_kind(sep),
            "role": engine.classify_block(block).value,
            "is_trigger": engine.is_trigger_block(block),
            "status": status.value if status else None,
            "missing_fields": missing,
            "targets": targets,
            "config": block.get_resolved_config(),
        })

    return details


# ====================================================================
# Connection detail builder
# ====================================================================


def _wiring(engine: WorkflowEngine, conn: Connection) -> str:
    if engine.get_block(conn.from_block_id) is None or engine.get_block(conn.to_block_id) is None:
        return "dangling"
    if conn.from_port == Port.OUTPUT:
        return "simple"
    return "branch"


def _build_connection_details(engine: WorkflowEngine) -> List[Dict[str, Any]]:
    details = []

    for conn in engine.connections:
        source = engine.get_block(conn.from_block_id)
        target = engine.get_block(conn.to_block_id)
        source_label = _block_label(source, conn.from_block_id)
        target_label = _block_label(target, conn.to_block_id)
        wiring = _wiring(engine, conn)

        if wiring == "dangling":
            logger.debug(f"Connection {conn.id} has an unresolved endpoint")

        details.append({
            "id": conn.id,
            "source": conn.from_block_id,
            "source_label": source_label,
            "target": conn.to_block_id,
            "target_label": target_label,
            "port": conn.from_port.value,
            "wiring": wiring,
            "description": f"\"{source_label}\" [{conn.from_port.value}] → \"{target_label}\"",
        })

    return details


# ====================================================================
# Outline rendering
# ====================================================================


def _render_tree(
    engine: WorkflowEngine,
    tree: ExecutionNode,
    lines: List[str],
) -> None:
    for depth, node in tree.walk():
        block = node.block
        role = engine.classify_block(block).value
        prefix = "  " * depth + ("└─ " if depth else "")
        lines.append(f"{prefix}[{role}] {_block_label(block, block.id)} ({block.id})")
