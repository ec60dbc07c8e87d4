# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Orchestrator query layer
# PURPOSE: Job catalog interface and in-process implementations
# CREATED: 18 OCT 2026
# ============================================================================
"""
Services Module

The JobCatalog interface the reconciler reads through, plus the in-memory
and YAML-backed catalogs. The PostgreSQL catalog lives in repositories.

Usage:
    from services import load_catalog

    catalog = load_catalog("catalog.yaml")
    jobs = catalog.list_jobs()
"""

from .catalog import JobCatalog, InMemoryCatalog, load_catalog

__all__ = [
    "JobCatalog",
    "InMemoryCatalog",
    "load_catalog",
]
