# ============================================================================
# MESSAGING CONFIGURATION
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Worker dispatch configuration
# PURPOSE: Centralize how the post-insert dispatcher reaches the worker
# CREATED: 18 OCT 2026
# ============================================================================
"""
Messaging Configuration

Configuration for invoking the generation worker over HTTP after a job row
is committed.
"""

import os
from dataclasses import dataclass


@dataclass
class WorkerConfig:
    """
    Configuration for the HTTP worker endpoint.

    Loaded from environment variables.
    """
    worker_url: str = ""
    connect_timeout_seconds: float = 10.0
    request_timeout_seconds: float = 30.0
    shutdown_timeout_seconds: float = 30.0
    enabled: bool = True

    @classmethod
    def from_env(cls) -> "WorkerConfig":
        """
        Load configuration from environment variables.

            DIALECTIC_WORKER_URL: worker endpoint (REQUIRED when enabled)
            DIALECTIC_WORKER_ENABLED: "false" disables invocation entirely
            DIALECTIC_WORKER_TIMEOUT_SECONDS: request timeout (default 30)
            DIALECTIC_WORKER_SHUTDOWN_TIMEOUT_SECONDS: wait for in-flight
                invocations at shutdown (default 30)
        """
        enabled = os.environ.get("DIALECTIC_WORKER_ENABLED", "true").lower() == "true"
        worker_url = os.environ.get("DIALECTIC_WORKER_URL", "")
        if enabled and not worker_url:
            raise ValueError(
                "DIALECTIC_WORKER_URL environment variable is required "
                "(or set DIALECTIC_WORKER_ENABLED=false)"
            )

        return cls(
            worker_url=worker_url,
            connect_timeout_seconds=float(os.environ.get("DIALECTIC_WORKER_CONNECT_TIMEOUT_SECONDS", 10.0)),
            request_timeout_seconds=float(os.environ.get("DIALECTIC_WORKER_TIMEOUT_SECONDS", 30.0)),
            shutdown_timeout_seconds=float(os.environ.get("DIALECTIC_WORKER_SHUTDOWN_TIMEOUT_SECONDS", 30.0)),
            enabled=enabled,
        )
