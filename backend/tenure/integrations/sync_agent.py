"""Cross-device sync agent: best-effort, started once at load.

The coordinator schedules init() as a background task and never waits on
it; the outcome is only logged.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass
class SyncOutcome:
    ok: bool
    detail: str = ""


@runtime_checkable
class SyncAgent(Protocol):
    async def init(self) -> SyncOutcome:
        """Start syncing. Must not raise for expected failures (offline, signed out)."""
        ...


class NullSyncAgent:
    """Sync agent for profiles without cross-device sync."""

    def __init__(self):
        self.init_calls = 0

    async def init(self) -> SyncOutcome:
        self.init_calls += 1
        return SyncOutcome(ok=True, detail="sync disabled")
