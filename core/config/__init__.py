# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the registration workers.
"""

from core.config.defaults import (
    BrokerMode,
    ReconcileDefaults,
    BrokerDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "BrokerMode",
    "ReconcileDefaults",
    "BrokerDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
