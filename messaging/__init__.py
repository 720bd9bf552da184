# ============================================================================
# MESSAGING MODULE
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Post-insert job dispatch
# PURPOSE: Hand committed generation jobs to the worker
# CREATED: 18 OCT 2026
# ============================================================================
"""
Messaging Module

Post-insert dispatch of generation jobs. Test jobs never reach the worker.

Usage:
    from messaging import JobInsertDispatcher, WorkerInvoker, WorkerConfig

    dispatcher = JobInsertDispatcher()
    dispatcher.subscribe(WorkerInvoker(WorkerConfig.from_env(), trigger_log_repo))
"""

from .config import WorkerConfig
from .dispatcher import JobInsertDispatcher, JobListener, WorkerInvoker

__all__ = [
    "WorkerConfig",
    "JobInsertDispatcher",
    "JobListener",
    "WorkerInvoker",
]
