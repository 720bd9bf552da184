# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for planning and content storage
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration Defaults

Immutable dataclasses holding defaults, each overridable from environment
variables through its ``from_env`` classmethod.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class PlannerDefaults:
    """Defaults applied to every PLAN job the planner creates."""
    max_retries: int = 3
    continue_until_complete: bool = False

    @classmethod
    def from_env(cls) -> "PlannerDefaults":
        return cls(
            max_retries=int(os.getenv("DIALECTIC_MAX_RETRIES", 3)),
            continue_until_complete=_env_bool("DIALECTIC_CONTINUE_UNTIL_COMPLETE", False),
        )


@dataclass(frozen=True)
class StorageDefaults:
    """
    Content storage settings.

    ``content_bucket`` is the blob container holding every dialectic artifact.
    """
    content_bucket: str = "dialectic-contributions"
    account_name: Optional[str] = None
    markdown_content_type: str = "text/markdown"

    @classmethod
    def from_env(cls) -> "StorageDefaults":
        return cls(
            content_bucket=os.getenv("CONTENT_STORAGE_BUCKET", "dialectic-contributions"),
            account_name=os.getenv("DIALECTIC_STORAGE_ACCOUNT"),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    planner: PlannerDefaults = field(default_factory=PlannerDefaults)
    storage: StorageDefaults = field(default_factory=StorageDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        return cls(
            planner=PlannerDefaults.from_env(),
            storage=StorageDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


__all__ = [
    "PlannerDefaults",
    "StorageDefaults",
    "Defaults",
    "get_defaults",
]
