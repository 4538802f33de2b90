"""
Workflow Engine Configuration.

Controls the legacy id-based block classification and which ports
cycle detection follows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from blockflow.config.env_utils import read_env_defaults


@dataclass
class EngineConfig:
    """Settings shared by every ``WorkflowEngine`` instance."""

    # Kind prefixes (text before the first separator) that mark a trigger
    trigger_kinds: List[str] = field(default_factory=lambda: ["player", "timer"])
    # Substrings of a block id that mark an action / condition
    action_keywords: List[str] = field(
        default_factory=lambda: ["show-message", "move-player", "play-sound"]
    )
    condition_keywords: List[str] = field(
        default_factory=lambda: ["if-condition", "variable-check"]
    )
    id_separator: str = "-"
    # "output" only reproduces the editor's behaviour; add "success" and
    # "failure" to also catch loops closed through a conditional branch.
    cycle_check_ports: List[str] = field(default_factory=lambda: ["output"])

    _ENV_MAP = {
        "trigger_kinds": "BLOCKFLOW_TRIGGER_KINDS",
        "action_keywords": "BLOCKFLOW_ACTION_KEYWORDS",
        "condition_keywords": "BLOCKFLOW_CONDITION_KEYWORDS",
        "id_separator": "BLOCKFLOW_ID_SEPARATOR",
        "cycle_check_ports": "BLOCKFLOW_CYCLE_CHECK_PORTS",
    }

    @classmethod
    def get_default_instance(
        cls, environ: Optional[Dict[str, str]] = None,
    ) -> "EngineConfig":
        defaults = read_env_defaults(cls._ENV_MAP, cls.__dataclass_fields__, environ)
        return cls(**defaults)

    @classmethod
    def get_config_name(cls) -> str:
        return "engine"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trigger_kinds": list(self.trigger_kinds),
            "action_keywords": list(self.action_keywords),
            "condition_keywords": list(self.condition_keywords),
            "id_separator": self.id_separator,
            "cycle_check_ports": list(self.cycle_check_ports),
        }


# ── Singleton ──

_config_instance: Optional[EngineConfig] = None


def get_engine_config() -> EngineConfig:
    """Return the global EngineConfig, read from the environment once."""
    global _config_instance
    if _config_instance is None:
        _config_instance = EngineConfig.get_default_instance()
    return _config_instance
