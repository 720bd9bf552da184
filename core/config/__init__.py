# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the dialectic core.
"""

from core.config.defaults import (
    PlannerDefaults,
    StorageDefaults,
    Defaults,
    get_defaults,
)

__all__ = [
    "PlannerDefaults",
    "StorageDefaults",
    "Defaults",
    "get_defaults",
]
