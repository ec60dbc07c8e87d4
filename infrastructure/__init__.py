# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Infrastructure - Broker transport
# PURPOSE: Azure Service Bus broker connection
# CREATED: 18 OCT 2026
# ============================================================================
"""
Infrastructure module for the registration workers.

Provides:
- ServiceBusBrokerConnection: BrokerConnection over Azure Service Bus
- service_bus_connection_factory: WorkerManager connection factory

Usage:
    from infrastructure import ServiceBusConfig, service_bus_connection_factory

    factory = service_bus_connection_factory(ServiceBusConfig.from_env(), "master-01")
    manager = WorkerManager(catalog, factory, config)
"""

from infrastructure.service_bus import (
    ServiceBusConfig,
    ServiceBusBrokerConnection,
    service_bus_connection_factory,
)

__all__ = [
    "ServiceBusConfig",
    "ServiceBusBrokerConnection",
    "service_bus_connection_factory",
]
