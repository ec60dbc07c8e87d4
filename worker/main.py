# ============================================================================
# WORKER MAIN ENTRY POINT
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Worker process entry point
# PURPOSE: Run one registration worker per catalog node until shutdown
# CREATED: 18 OCT 2026
# ============================================================================
"""
Worker Main Entry Point

Starts the registration workers for one orchestrator:
1. Loads configuration from the environment
2. Opens the job catalog (YAML file or PostgreSQL)
3. Starts one worker per execution node
4. Re-syncs nodes and triggers a pass on SIGHUP or every interval
5. Stops every worker on SIGINT / SIGTERM

Usage:
    CATALOG_PATH=catalog.yaml python -m worker.main

See worker.contracts for the environment variables.
"""

import logging
import signal
import sys
import threading
from typing import Optional

from __version__ import __version__
from core.config import BrokerMode
from core.logging import configure_logging, get_logger, ComponentType
from infrastructure.service_bus import ServiceBusConfig, service_bus_connection_factory
from repositories import PostgresJobCatalog, close_pool, init_pool
from services.catalog import load_catalog
from worker.broker import InMemoryBroker
from worker.contracts import CatalogSource, WorkerConfig
from worker.manager import ConnectionFactory, WorkerManager

logger = get_logger(__name__, ComponentType.WORKER)


def build_catalog(config: WorkerConfig):
    """Open the catalog named by the configuration."""
    if config.catalog_source == CatalogSource.POSTGRES.value:
        return PostgresJobCatalog(init_pool())
    return load_catalog(config.catalog_path)


def build_connection_factory(config: WorkerConfig) -> ConnectionFactory:
    """Broker connection factory for the configured broker mode."""
    if config.broker.mode == BrokerMode.SERVICE_BUS.value:
        return service_bus_connection_factory(
            ServiceBusConfig.from_env(config.broker),
            config.master_name,
        )
    if config.broker.mode != BrokerMode.MEMORY.value:
        raise ValueError(f"Unknown broker mode: {config.broker.mode}")

    logger.warning("Using in-memory broker; functions are not visible outside this process")
    broker = InMemoryBroker()
    return lambda worker_id, node: broker.connect(worker_id)


def run(config: WorkerConfig, stop_event: Optional[threading.Event] = None) -> None:
    """
    Run workers until `stop_event` is set.

    Args:
        config: Worker configuration
        stop_event: Set to shut down (a private event if not provided)
    """
    stop_event = stop_event or threading.Event()
    resync_event = threading.Event()

    catalog = build_catalog(config)
    manager = WorkerManager(catalog, build_connection_factory(config), config)

    def _request_stop(*_args):
        logger.info("Shutdown signal received")
        stop_event.set()
        resync_event.set()

    def _request_resync(*_args):
        logger.info("Resync signal received")
        resync_event.set()

    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGINT, _request_stop)
        signal.signal(signal.SIGTERM, _request_stop)
        if hasattr(signal, "SIGHUP"):
            signal.signal(signal.SIGHUP, _request_resync)

    try:
        manager.start(catalog.list_nodes())
        while not stop_event.is_set():
            resync_event.wait(config.reconcile.interval_seconds)
            resync_event.clear()
            if stop_event.is_set():
                break
            manager.sync_nodes(catalog.list_nodes())
            manager.trigger_all()
    finally:
        manager.stop_all()
        if config.catalog_source == CatalogSource.POSTGRES.value:
            close_pool()


def main() -> int:
    """Main entry point."""
    config = WorkerConfig.from_env()
    configure_logging(level=config.log_level, json_output=config.log_json)

    logger.info("=" * 60)
    logger.info(f"Registration Worker Starting v{__version__}")
    logger.info("=" * 60)
    logger.info(f"Master: {config.master_name}")
    logger.info(f"Catalog: {config.catalog_source} {config.catalog_path or ''}".rstrip())
    logger.info(f"Broker: {config.broker.mode}")

    try:
        config.validate()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    run(config)
    logger.info("Registration workers stopped")
    return 0


if __name__ == "__main__":
    logging.captureWarnings(True)
    sys.exit(main())
