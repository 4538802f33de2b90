"""Shared fixtures for workflow engine tests."""

from typing import Any, Dict, List, Optional

import pytest

from blockflow.config import EngineConfig
from blockflow.workflow import (
    BlockRole,
    Connection,
    WorkflowBlock,
    WorkflowEngine,
)


@pytest.fixture
def engine_config() -> EngineConfig:
    """Default config, independent of the process environment."""
    return EngineConfig()


@pytest.fixture
def make_block():
    """Factory for blocks with an optional field schema and user values."""

    def _make(
        block_id: str,
        name: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        user_config: Optional[Dict[str, Any]] = None,
        role: Optional[BlockRole] = None,
    ) -> WorkflowBlock:
        return WorkflowBlock(
            id=block_id,
            name=name if name is not None else block_id,
            config=config,
            user_config=user_config,
            role=role,
        )

    return _make


@pytest.fixture
def connect():
    """Factory for connections with a deterministic id."""

    def _connect(from_id: str, to_id: str, port: str = "output") -> Connection:
        return Connection(
            id=f"{from_id}-{to_id}-{port}",
            from_block_id=from_id,
            to_block_id=to_id,
            from_port=port,
        )

    return _connect


@pytest.fixture
def build_engine(engine_config):
    """Build an engine with the environment-independent config."""

    def _build(
        blocks: List[WorkflowBlock],
        connections: List[Connection],
    ) -> WorkflowEngine:
        return WorkflowEngine(blocks, connections, config=engine_config)

    return _build
