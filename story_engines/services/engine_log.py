"""
Engine Session Log for story engine runs.

Records one entry per engine status change so a run can be inspected after
the fact: which engines started, how long each took, how much text each
produced and why failures happened. Entries stay in memory; persisting them
is left to the caller.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger("story_engines")


class EngineStatus(str, Enum):
    """Lifecycle status of an engine within a session."""
    INITIALIZING = "initializing"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class EngineLogEntry:
    """A single engine status record."""
    engine: str
    phase: int
    status: EngineStatus
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: Optional[int] = None
    output_size: Optional[int] = None
    mode: str = "beast"
    details: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": self.engine,
            "phase": self.phase,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "duration_ms": self.duration_ms,
            "output_size": self.output_size,
            "mode": self.mode,
            "details": self.details,
        }


@dataclass
class EngineSessionLog:
    """Collects engine log entries for one orchestration run."""
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    episode_title: Optional[str] = None
    entries: List[EngineLogEntry] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    def log_engine(
        self,
        engine: str,
        phase: int,
        status: EngineStatus,
        mode: str = "beast",
        duration_ms: Optional[int] = None,
        output_size: Optional[int] = None,
        details: Optional[str] = None,
    ) -> EngineLogEntry:
        entry = EngineLogEntry(
            engine=engine,
            phase=phase,
            status=EngineStatus(status),
            mode=mode,
            duration_ms=duration_ms,
            output_size=output_size,
            details=details,
        )
        self.entries.append(entry)
        logger.debug(f"[log_engine] {self.session_id} {engine} (phase {phase}): {entry.status.value}")
        return entry

    def complete(self) -> None:
        self.completed_at = datetime.now(timezone.utc)

    def entries_for(self, engine: str) -> List[EngineLogEntry]:
        return [entry for entry in self.entries if entry.engine == engine]

    def final_status(self, engine: str) -> Optional[EngineStatus]:
        """Latest recorded status of an engine, None if it never ran."""
        entries = self.entries_for(engine)
        return entries[-1].status if entries else None

    def summary(self) -> Dict[str, Any]:
        """
        Per-status engine counts plus session timing.
        Counts use each engine's latest status.
        """
        engines = {entry.engine for entry in self.entries}
        counts = {status.value: 0 for status in EngineStatus}
        for engine in engines:
            counts[self.final_status(engine).value] += 1

        durations = [
            entry.duration_ms
            for entry in self.entries
            if entry.duration_ms is not None and entry.status in (EngineStatus.COMPLETED, EngineStatus.FAILED)
        ]
        return {
            "session_id": self.session_id,
            "episode_title": self.episode_title,
            "total_engines": len(engines),
            "status_counts": counts,
            "total_engine_time_ms": sum(durations),
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.summary(),
            "entries": [entry.to_dict() for entry in self.entries],
        }
