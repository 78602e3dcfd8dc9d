"""
Orchestrator Package - Runtime Coordination Layer.

============================================================
CORE PRINCIPLES
============================================================
1. The orchestrator has NO business logic
2. It ONLY wires and schedules the core operations
3. A failed refresh never stops the loop

============================================================
MODULES
============================================================
- cli       : argparse entry point for every runtime mode
- scheduler : PeriodicRefresher keeping caches warm

============================================================
"""

from orchestrator.scheduler import DEFAULT_INTERVAL_SECONDS, PeriodicRefresher


__all__ = [
    "PeriodicRefresher",
    "DEFAULT_INTERVAL_SECONDS",
]
