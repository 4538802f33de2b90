"""
Workflow Data Models — blocks, configuration schemas, and connections.

These are the serializable data structures the visual editor hands
to ``WorkflowEngine``. Field aliases match the editor's JSON
(``userConfig``, ``fromBlockId``...) so a canvas payload can be
validated directly, while Python code uses snake_case names.

All models are frozen and their mapping fields are read-only views:
an engine snapshot must never change under it.
"""

from __future__ import annotations

import math
import time
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from blockflow.workflow.block_kinds import (
    BlockKindRegistry,
    BlockRole,
    get_block_kind_registry,
)

ID_SEPARATOR = "-"


class Port(str, Enum):
    """Outgoing port of a block."""
    OUTPUT = "output"      # Normal continuation
    SUCCESS = "success"    # Conditional branch taken
    FAILURE = "failure"    # Conditional branch not taken


ALL_PORTS: Tuple[Port, ...] = (Port.OUTPUT, Port.SUCCESS, Port.FAILURE)


def _now_millis() -> int:
    return int(time.time() * 1000)


def is_missing_value(value: Any) -> bool:
    """Return True if a user-entered value counts as absent.

    ``None``, the empty string and NaN are missing. ``0`` and
    ``False`` are real answers and count as present.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float):
        return math.isnan(value)
    return False


class ConfigFieldSchema(BaseModel):
    """Schema for one configurable field declared by a block kind."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    type: str = "text"
    label: str = ""
    default: Any = None
    required: bool = False
    min_value: Optional[float] = Field(default=None, alias="min")
    max_value: Optional[float] = Field(default=None, alias="max")
    step: Optional[float] = None
    options: Optional[Tuple[Any, ...]] = None


class WorkflowBlock(BaseModel):
    """A single block placed on the canvas.

    ``config`` is the field schema copied from the catalog entry.
    ``user_config`` holds the values the user actually entered.
    ``role`` is the explicit classification; when it is ``None``
    the engine falls back to id-based heuristics.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str = ""
    description: str = ""
    position: Dict[str, float] = Field(
        default_factory=lambda: {"x": 0, "y": 0}, validate_default=True,
    )
    config: Optional[Dict[str, ConfigFieldSchema]] = None
    user_config: Optional[Dict[str, Any]] = Field(default=None, alias="userConfig")
    role: Optional[BlockRole] = None

    @field_validator("position", "config", "user_config", mode="after")
    @classmethod
    def _freeze_mapping(cls, value: Optional[Dict[str, Any]]) -> Optional[Mapping[str, Any]]:
        # Copied so later edits to the caller's dict cannot reach the block
        if value is None:
            return None
        return MappingProxyType(dict(value))

    @field_serializer("position", "config", "user_config")
    def _dump_mapping(self, value: Optional[Mapping[str, Any]]) -> Any:
        if value is None:
            return None
        return dict(value)

    @classmethod
    def create(
        cls,
        kind: str,
        name: str = "",
        description: str = "",
        config: Optional[Dict[str, Any]] = None,
        position: Optional[Dict[str, float]] = None,
        role: Optional[BlockRole] = None,
        registry: Optional[BlockKindRegistry] = None,
        timestamp_ms: Optional[int] = None,
    ) -> "WorkflowBlock":
        """Instantiate a catalog kind as a new block.

        The id follows the ``"<kind>-<epoch millis>"`` convention and
        the role is taken from the block-kind registry unless given.
        """
        if role is None:
            role = (registry or get_block_kind_registry()).role_for(kind)
        ts = timestamp_ms if timestamp_ms is not None else _now_millis()
        return cls(
            id=f"{kind}{ID_SEPARATOR}{ts}",
            name=name,
            description=description,
            position=position or {"x": 0, "y": 0},
            config=config,
            user_config={},
            role=role,
        )

    def get_kind_prefix(self, separator: str = ID_SEPARATOR) -> str:
        """Portion of the id before the first separator."""
        if not separator:
            return self.id
        return self.id.split(separator, 1)[0]

    def get_kind(self, separator: str = ID_SEPARATOR) -> str:
        """Catalog kind slug, i.e. the id without its timestamp suffix."""
        if not separator:
            return self.id
        head, sep, tail = self.id.rpartition(separator)
        if sep and head and tail.isdigit():
            return head
        return self.id

    def get_user_value(self, key: str) -> Any:
        if not self.user_config:
            return None
        return self.user_config.get(key)

    def get_resolved_config(self) -> Dict[str, Any]:
        """Effective value of every declared field (user value or default)."""
        resolved: Dict[str, Any] = {}
        for key, field in (self.config or {}).items():
            value = self.get_user_value(key)
            resolved[key] = field.default if value is None else value
        return resolved

    def get_missing_required_fields(self) -> List[Tuple[str, ConfigFieldSchema]]:
        """Required fields whose user value is missing, in declaration order.

        Defaults do not count: a required field must be filled in.
        """
        missing: List[Tuple[str, ConfigFieldSchema]] = []
        for key, field in (self.config or {}).items():
            if field.required and is_missing_value(self.get_user_value(key)):
                missing.append((key, field))
        return missing


class Connection(BaseModel):
    """A directed edge from one block's port to another block's input.

    Endpoints are weak references: they may name a block that is no
    longer in the snapshot.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    from_block_id: str = Field(alias="fromBlockId")
    to_block_id: str = Field(alias="toBlockId")
    from_port: Port = Field(default=Port.OUTPUT, alias="fromPort")
    to_port: Literal["input"] = Field(default="input", alias="toPort")

    @classmethod
    def create(
        cls,
        from_block_id: str,
        to_block_id: str,
        from_port: Port = Port.OUTPUT,
        timestamp_ms: Optional[int] = None,
    ) -> "Connection":
        """Connect two blocks the way the canvas does.

        Raises:
            ValueError: If both ends are the same block.
        """
        if from_block_id == to_block_id:
            raise ValueError(f"Cannot connect block '{from_block_id}' to itself")
        ts = timestamp_ms if timestamp_ms is not None else _now_millis()
        return cls(
            id=f"{from_block_id}{ID_SEPARATOR}{to_block_id}{ID_SEPARATOR}{ts}",
            from_block_id=from_block_id,
            to_block_id=to_block_id,
            from_port=Port(from_port),
        )


class WorkflowSnapshot(BaseModel):
    """The editor's block and connection collections at one point in time."""

    model_config = ConfigDict(frozen=True)

    blocks: List[WorkflowBlock] = Field(default_factory=list)
    connections: List[Connection] = Field(default_factory=list)
