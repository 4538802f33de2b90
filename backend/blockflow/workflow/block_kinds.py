"""
Block Kind Registry — maps catalog kind slugs to execution roles.

Every block placed on the canvas comes from a catalog entry whose
``id`` is the kind slug (``"player-enters"``, ``"show-message"``...).
The engine needs to know which of those kinds start a workflow,
which perform side effects and which branch on a condition.

Instead of re-deriving that from block id text at query time,
``WorkflowBlock.create`` looks the kind up here once and copies the
role onto the block instance.

Only roles live here. Field schemas and code templates belong to
the editor's catalog.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from logging import getLogger
from typing import Dict, List, Optional

logger = getLogger(__name__)


class BlockRole(str, Enum):
    """Closed set of roles a block can play in a workflow."""
    TRIGGER = "trigger"        # Entry point, starts an execution path
    ACTION = "action"          # Side effect in the target API
    CONDITION = "condition"    # Branches via success / failure ports
    OTHER = "other"            # Variables, helpers, unknown kinds


@dataclass(frozen=True)
class BlockKindDef:
    """Role metadata for a single catalog kind."""
    kind: str
    role: BlockRole
    label: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "kind": self.kind,
            "role": self.role.value,
            "label": self.label,
        }


# ============================================================================
# Built-in kinds (mirrors the editor's block library)
# ============================================================================

BUILT_IN_BLOCK_KINDS: List[BlockKindDef] = [
    # ── Triggers ──
    BlockKindDef("player-enters", BlockRole.TRIGGER, "Player Enters Zone"),
    BlockKindDef("player-leaves", BlockRole.TRIGGER, "Player Leaves Zone"),
    BlockKindDef("player-interacts", BlockRole.TRIGGER, "Player Interacts"),
    BlockKindDef("timer", BlockRole.TRIGGER, "Timer"),
    BlockKindDef("on-init", BlockRole.TRIGGER, "On Init"),
    BlockKindDef("variable-change", BlockRole.TRIGGER, "Variable Change"),
    BlockKindDef("user-joined", BlockRole.TRIGGER, "User Joined"),
    BlockKindDef("user-left", BlockRole.TRIGGER, "User Left"),

    # ── Actions ──
    BlockKindDef("show-message", BlockRole.ACTION, "Show Message"),
    BlockKindDef("move-player", BlockRole.ACTION, "Move Player"),
    BlockKindDef("play-sound", BlockRole.ACTION, "Play Sound"),
    BlockKindDef("open-website", BlockRole.ACTION, "Open Website"),
    BlockKindDef("close-popup", BlockRole.ACTION, "Close Popup"),
    BlockKindDef("go-to-page", BlockRole.ACTION, "Go To Page"),
    BlockKindDef("restore-player-control", BlockRole.ACTION, "Restore Player Control"),
    BlockKindDef("disable-player-control", BlockRole.ACTION, "Disable Player Control"),
    BlockKindDef("send-chat-message", BlockRole.ACTION, "Send Chat Message"),
    BlockKindDef("follow-player", BlockRole.ACTION, "Follow Player"),
    BlockKindDef("set-camera-position", BlockRole.ACTION, "Set Camera Position"),
    BlockKindDef("load-sound", BlockRole.ACTION, "Load Sound"),
    BlockKindDef("stop-sound", BlockRole.ACTION, "Stop Sound"),
    BlockKindDef("open-popup", BlockRole.ACTION, "Open Popup"),
    BlockKindDef("display-bubble", BlockRole.ACTION, "Display Bubble"),
    BlockKindDef("add-action-message", BlockRole.ACTION, "Add Action Message"),
    BlockKindDef("remove-action-message", BlockRole.ACTION, "Remove Action Message"),
    BlockKindDef("join-space", BlockRole.ACTION, "Join Space"),
    BlockKindDef("leave-space", BlockRole.ACTION, "Leave Space"),
    BlockKindDef("start-streaming", BlockRole.ACTION, "Start Streaming"),
    BlockKindDef("stop-streaming", BlockRole.ACTION, "Stop Streaming"),
    BlockKindDef("door", BlockRole.ACTION, "Door"),
    BlockKindDef("bell", BlockRole.ACTION, "Bell"),
    BlockKindDef("generic-action", BlockRole.ACTION, "Generic Action"),

    # ── Conditions ──
    BlockKindDef("if-condition", BlockRole.CONDITION, "If Condition"),
    BlockKindDef("variable-check", BlockRole.CONDITION, "Variable Check"),
    BlockKindDef("player-count", BlockRole.CONDITION, "Player Count"),
    BlockKindDef("has-variable", BlockRole.CONDITION, "Has Variable"),

    # ── Player / Variables ──
    BlockKindDef("get-player-name", BlockRole.OTHER, "Get Player Name"),
    BlockKindDef("get-player-id", BlockRole.OTHER, "Get Player ID"),
    BlockKindDef("get-player-position", BlockRole.OTHER, "Get Player Position"),
    BlockKindDef("set-variable", BlockRole.OTHER, "Set Variable"),
    BlockKindDef("get-variable", BlockRole.OTHER, "Get Variable"),
    BlockKindDef("increment", BlockRole.OTHER, "Increment"),
    BlockKindDef("save-variable", BlockRole.OTHER, "Save Variable"),
    BlockKindDef("load-variable", BlockRole.OTHER, "Load Variable"),
]


class BlockKindRegistry:
    """Lookup table from kind slug to ``BlockKindDef``."""

    def __init__(self, kinds: Optional[List[BlockKindDef]] = None) -> None:
        self._kinds: Dict[str, BlockKindDef] = {}
        for kind_def in kinds if kinds is not None else BUILT_IN_BLOCK_KINDS:
            self.register(kind_def)

    def register(self, kind_def: BlockKindDef) -> None:
        """Add or replace a kind definition."""
        if kind_def.kind in self._kinds:
            logger.debug(f"Block kind re-registered: {kind_def.kind}")
        self._kinds[kind_def.kind] = kind_def

    def get(self, kind: str) -> Optional[BlockKindDef]:
        return self._kinds.get(kind)

    def role_for(self, kind: str) -> BlockRole:
        """Return the role of ``kind``; unknown kinds are ``OTHER``."""
        kind_def = self._kinds.get(kind)
        if kind_def is None:
            return BlockRole.OTHER
        return kind_def.role

    def list_all(self) -> List[BlockKindDef]:
        return list(self._kinds.values())

    def list_by_role(self, role: BlockRole) -> List[BlockKindDef]:
        return [k for k in self._kinds.values() if k.role == role]


# ── Singleton ──

_registry_instance: Optional[BlockKindRegistry] = None


def get_block_kind_registry() -> BlockKindRegistry:
    """Return the global BlockKindRegistry singleton."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = BlockKindRegistry()
    return _registry_instance
