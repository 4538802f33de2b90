"""
Configuration for the workflow engine.
"""

from blockflow.config.engine_config import EngineConfig, get_engine_config

__all__ = ["EngineConfig", "get_engine_config"]
