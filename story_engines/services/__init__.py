"""
Story Engines Services Module
"""

from .engine_log import EngineLogEntry, EngineSessionLog, EngineStatus

__all__ = [
    "EngineLogEntry",
    "EngineSessionLog",
    "EngineStatus",
]
