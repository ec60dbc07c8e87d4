# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Database access layer
# PURPOSE: Read-only catalog queries against the orchestrator database
# CREATED: 18 OCT 2026
# ============================================================================
"""
Repositories Module

Provides database access for the job catalog.
Uses psycopg3 with a synchronous connection pool shared by worker threads.

Usage:
    from repositories import PostgresJobCatalog, get_pool

    catalog = PostgresJobCatalog(get_pool())
    jobs = catalog.list_jobs()
"""

from .database import get_pool, init_pool, close_pool, get_connection_string
from .catalog_repo import PostgresJobCatalog

__all__ = [
    "get_pool",
    "init_pool",
    "close_pool",
    "get_connection_string",
    "PostgresJobCatalog",
]
