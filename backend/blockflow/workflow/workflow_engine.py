"""
Workflow Engine — queries over one snapshot of blocks and connections.

The editor builds a new engine after every structural edit and asks
it which blocks follow which, where execution starts, and whether
the graph is complete enough to generate code from.

Every query is total: dangling connection endpoints are skipped,
cycles end the branch that closes them, and problems are reported
through ``validate_workflow`` rather than raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from logging import getLogger
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field

from blockflow.config import EngineConfig, get_engine_config
from blockflow.workflow.block_kinds import BlockRole
from blockflow.workflow.workflow_model import (
    Connection,
    Port,
    WorkflowBlock,
    WorkflowSnapshot,
)
from blockflow.workflow.workflow_validation import ValidationIssue, ValidationResult

logger = getLogger(__name__)

PortLike = Union[Port, str]


class BlockStatus(str, Enum):
    """Completion state shown as a status dot on each block."""
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True, eq=False, repr=False)
class ExecutionNode:
    """A block reached during execution and the branches that follow it.

    Trees can be as deep as the longest chain in the canvas, so every
    traversal here walks an explicit stack. Two nodes are equal when
    their trees have the same shape and blocks. Nodes are unhashable
    because blocks are.
    """
    block: WorkflowBlock
    children: Tuple["ExecutionNode", ...] = ()

    __hash__ = None  # type: ignore[assignment]

    def walk(self) -> Iterator[Tuple[int, "ExecutionNode"]]:
        """Yield ``(depth, node)`` pairs in pre-order, this node at depth 0."""
        stack: List[Tuple[int, ExecutionNode]] = [(0, self)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            stack.extend((depth + 1, child) for child in reversed(node.children))

    def flatten(self) -> List[WorkflowBlock]:
        """Pre-order list of blocks: this block, then each child's path."""
        return [node.block for _, node in self.walk()]

    def to_dict(self) -> Dict[str, Any]:
        root = _node_entry(self.block)
        stack: List[Tuple[ExecutionNode, Dict[str, Any]]] = [(self, root)]
        while stack:
            node, entry = stack.pop()
            for child in node.children:
                child_entry = _node_entry(child.block)
                entry["children"].append(child_entry)
                stack.append((child, child_entry))
        return root

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExecutionNode):
            return NotImplemented
        mine = [(depth, node.block) for depth, node in self.walk()]
        theirs = [(depth, node.block) for depth, node in other.walk()]
        return mine == theirs

    def __repr__(self) -> str:
        return f"ExecutionNode(block={self.block.id!r}, children={len(self.children)})"


def _node_entry(block: WorkflowBlock) -> Dict[str, Any]:
    return {"id": block.id, "name": block.name, "children": []}


@dataclass(eq=False)
class _PendingNode:
    """Mutable stand-in for an ExecutionNode while its subtree is built."""
    block: WorkflowBlock
    children: List["_PendingNode"] = field(default_factory=list)
    node: Optional[ExecutionNode] = None


class WorkflowStats(BaseModel):
    """Aggregate counts for a snapshot."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    total_blocks: int = Field(alias="totalBlocks")
    total_connections: int = Field(alias="totalConnections")
    trigger_blocks: int = Field(alias="triggerBlocks")
    action_blocks: int = Field(alias="actionBlocks")
    condition_blocks: int = Field(alias="conditionBlocks")
    execution_paths: int = Field(alias="executionPaths")

    def to_dict(self) -> Dict[str, int]:
        return self.model_dump(by_alias=True)


def _port_value(port: PortLike) -> str:
    return port.value if isinstance(port, Port) else port


class WorkflowEngine:
    """Read-only graph queries over a blocks + connections snapshot.

    Usage::

        engine = WorkflowEngine(blocks, connections)
        result = engine.validate_workflow()
        if not result.is_valid:
            show_banner(", ".join(result.errors))
    """

    def __init__(
        self,
        blocks: Iterable[WorkflowBlock],
        connections: Iterable[Connection],
        config: Optional[EngineConfig] = None,
    ) -> None:
        # Models are frozen with read-only mappings, so holding them is safe
        self._blocks: Tuple[WorkflowBlock, ...] = tuple(blocks)
        self._connections: Tuple[Connection, ...] = tuple(connections)
        self._config = config or get_engine_config()

        # First occurrence wins if an id is duplicated
        self._block_map: Dict[str, WorkflowBlock] = {}
        for block in self._blocks:
            self._block_map.setdefault(block.id, block)

        # Edge indexes keep neighbour lookups flat on long chains
        self._outgoing: Dict[Tuple[str, str], List[str]] = {}
        self._incoming: Dict[str, List[str]] = {}
        for conn in self._connections:
            self._outgoing.setdefault(
                (conn.from_block_id, conn.from_port.value), []
            ).append(conn.to_block_id)
            self._incoming.setdefault(conn.to_block_id, []).append(conn.from_block_id)

        logger.debug(
            f"WorkflowEngine snapshot: {len(self._blocks)} blocks, "
            f"{len(self._connections)} connections"
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: WorkflowSnapshot,
        config: Optional[EngineConfig] = None,
    ) -> "WorkflowEngine":
        return cls(snapshot.blocks, snapshot.connections, config)

    @property
    def blocks(self) -> Tuple[WorkflowBlock, ...]:
        return self._blocks

    @property
    def connections(self) -> Tuple[Connection, ...]:
        return self._connections

    @property
    def config(self) -> EngineConfig:
        return self._config

    # ========================================================================
    # Lookups
    # ========================================================================

    def get_block(self, block_id: str) -> Optional[WorkflowBlock]:
        return self._block_map.get(block_id)

    def _resolve(self, block_ids: Iterable[str]) -> List[WorkflowBlock]:
        resolved: List[WorkflowBlock] = []
        for block_id in block_ids:
            block = self._block_map.get(block_id)
            if block is None:
                logger.debug(f"Skipping dangling reference to block {block_id}")
                continue
            resolved.append(block)
        return resolved

    def get_next_blocks(
        self, block_id: str, port: PortLike = Port.OUTPUT,
    ) -> List[WorkflowBlock]:
        """Blocks connected from ``port`` of ``block_id``, in connection order."""
        return self._resolve(self._outgoing.get((block_id, _port_value(port)), ()))

    def get_previous_blocks(self, block_id: str) -> List[WorkflowBlock]:
        """Blocks with a connection into ``block_id`` from any port."""
        return self._resolve(self._incoming.get(block_id, ()))

    # ========================================================================
    # Classification
    # ========================================================================

    def _matches_keywords(self, block: WorkflowBlock, keywords: Sequence[str]) -> bool:
        return any(keyword in block.id for keyword in keywords)

    def is_trigger_block(self, block: WorkflowBlock) -> bool:
        """A trigger has a trigger role and nothing connected into it.

        Untagged blocks are recognised by their id's kind prefix.
        """
        if block.role is not None:
            trigger_kind = block.role == BlockRole.TRIGGER
        else:
            prefix = block.get_kind_prefix(self._config.id_separator)
            trigger_kind = prefix in self._config.trigger_kinds
        return trigger_kind and not self.get_previous_blocks(block.id)

    def classify_block(self, block: WorkflowBlock) -> BlockRole:
        """The block's category for the palette and the stats counters.

        An explicit ``role`` describes the block kind and is returned as
        is, so a trigger-kind block that has something wired into it is
        still a TRIGGER here while ``is_trigger_block`` (which decides
        where execution starts) says False. Untagged blocks have no kind
        to report, so the entry-point rule is their only trigger test.
        """
        if block.role is not None:
            return block.role
        if self.is_trigger_block(block):
            return BlockRole.TRIGGER
        if self._matches_keywords(block, self._config.action_keywords):
            return BlockRole.ACTION
        if self._matches_keywords(block, self._config.condition_keywords):
            return BlockRole.CONDITION
        return BlockRole.OTHER

    def _has_role(
        self, block: WorkflowBlock, role: BlockRole, keywords: Sequence[str],
    ) -> bool:
        if block.role is not None:
            return block.role == role
        return self._matches_keywords(block, keywords)

    def get_trigger_blocks(self) -> List[WorkflowBlock]:
        return [b for b in self._blocks if self.is_trigger_block(b)]

    # ========================================================================
    # Execution order
    # ========================================================================

    def _build_execution_tree(self, start_id: str) -> Optional[ExecutionNode]:
        # Each entry carries its own branch's ancestors only, so siblings
        # may reach the same block but a single path never repeats one.
        roots: List[_PendingNode] = []
        created: List[_PendingNode] = []
        stack: List[Tuple[str, FrozenSet[str], List[_PendingNode]]] = [
            (start_id, frozenset(), roots),
        ]
        while stack:
            block_id, ancestors, siblings = stack.pop()
            if block_id in ancestors:
                continue
            block = self._block_map.get(block_id)
            if block is None:
                continue

            pending = _PendingNode(block)
            siblings.append(pending)
            created.append(pending)

            branch = ancestors | {block_id}
            next_ids = self._outgoing.get((block_id, Port.OUTPUT.value), ())
            for next_id in reversed(next_ids):
                stack.append((next_id, branch, pending.children))

        if not roots:
            return None

        # Children are always created after their parent
        for pending in reversed(created):
            pending.node = ExecutionNode(
                block=pending.block,
                children=tuple(child.node for child in pending.children),
            )
        return roots[0].node

    def get_execution_trees(self) -> List[ExecutionNode]:
        """One execution tree per trigger, following ``output`` ports."""
        trees: List[ExecutionNode] = []
        for trigger in self.get_trigger_blocks():
            tree = self._build_execution_tree(trigger.id)
            if tree is not None:
                trees.append(tree)
        return trees

    def get_execution_order(self) -> List[List[WorkflowBlock]]:
        """Flattened execution path per trigger, in trigger order."""
        paths = [tree.flatten() for tree in self.get_execution_trees()]
        return [path for path in paths if path]

    # ========================================================================
    # Structure checks
    # ========================================================================

    def find_orphaned_blocks(self) -> List[WorkflowBlock]:
        """Blocks no connection touches. A lone block is never an orphan."""
        if len(self._blocks) <= 1:
            return []
        connected: Set[str] = set()
        for conn in self._connections:
            connected.add(conn.from_block_id)
            connected.add(conn.to_block_id)
        return [b for b in self._blocks if b.id not in connected]

    def _successors(self, ports: Set[str]) -> Dict[str, List[str]]:
        successors: Dict[str, List[str]] = {}
        for conn in self._connections:
            if conn.from_port.value not in ports:
                continue
            if conn.to_block_id not in self._block_map:
                continue
            successors.setdefault(conn.from_block_id, []).append(conn.to_block_id)
        return successors

    def detect_cycles(self, ports: Optional[Iterable[PortLike]] = None) -> bool:
        """Return True as soon as any directed cycle is found.

        Only edges leaving through ``ports`` are followed; the default
        comes from ``EngineConfig.cycle_check_ports`` (``output`` only),
        so a loop closed through a ``success`` or ``failure`` branch
        is not reported unless those ports are included.
        """
        if ports is None:
            ports = self._config.cycle_check_ports
        successors = self._successors({_port_value(p) for p in ports})

        visited: Set[str] = set()
        on_stack: Set[str] = set()

        for block in self._blocks:
            if block.id in visited:
                continue
            visited.add(block.id)
            on_stack.add(block.id)
            stack: List[Tuple[str, Iterator[str]]] = [
                (block.id, iter(successors.get(block.id, ()))),
            ]
            while stack:
                node_id, pending = stack[-1]
                for next_id in pending:
                    if next_id not in visited:
                        visited.add(next_id)
                        on_stack.add(next_id)
                        stack.append((next_id, iter(successors.get(next_id, ()))))
                        break
                    if next_id in on_stack:
                        logger.debug(f"Cycle detected: {node_id} -> {next_id}")
                        return True
                else:
                    on_stack.discard(node_id)
                    stack.pop()

        return False

    # ========================================================================
    # Validation
    # ========================================================================

    def validate_workflow(self) -> ValidationResult:
        """Run every check and collect all issues.

        Order: disconnected blocks, missing required fields, cycles.
        """
        issues: List[ValidationIssue] = []

        orphans = self.find_orphaned_blocks()
        if orphans:
            issues.append(ValidationIssue.disconnected(orphans))

        for block in self._blocks:
            for key, schema in block.get_missing_required_fields():
                issues.append(ValidationIssue.missing_field(block, key, schema))

        if self.detect_cycles():
            issues.append(ValidationIssue.circular())

        result = ValidationResult(issues=issues)
        if not result.is_valid:
            logger.debug(f"Workflow validation found {len(issues)} issue(s)")
        return result

    def get_block_status(self, block_id: str) -> Optional[BlockStatus]:
        """Whether a block has every required field filled in."""
        block = self._block_map.get(block_id)
        if block is None:
            return None
        if block.get_missing_required_fields():
            return BlockStatus.INCOMPLETE
        return BlockStatus.COMPLETE

    # ========================================================================
    # Statistics
    # ========================================================================

    def get_workflow_stats(self) -> WorkflowStats:
        cfg = self._config
        return WorkflowStats(
            total_blocks=len(self._blocks),
            total_connections=len(self._connections),
            trigger_blocks=len(self.get_trigger_blocks()),
            action_blocks=sum(
                1 for b in self._blocks
                if self._has_role(b, BlockRole.ACTION, cfg.action_keywords)
            ),
            condition_blocks=sum(
                1 for b in self._blocks
                if self._has_role(b, BlockRole.CONDITION, cfg.condition_keywords)
            ),
            execution_paths=len(self.get_execution_order()),
        )
