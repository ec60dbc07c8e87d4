# ============================================================================
# SERVICE BUS INFRASTRUCTURE
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Infrastructure - Azure Service Bus broker connection
# PURPOSE: Publish worker registration sets to the broker
# CREATED: 18 OCT 2026
# ============================================================================
"""
Service Bus Infrastructure

BrokerConnection implementation on Azure Service Bus. Each update_jobs call
sends one FunctionRegistrationMessage to the registration queue. The queue
is session-enabled and the session id is the worker id, so the broker
consumes one worker's publishes in the order they were sent.

Key Design Decisions:
    - Dual auth: connection string OR managed identity
    - One client per worker connection (no sharing across workers)
    - Sender opened eagerly so the first publish is not lost during
      AMQP link establishment
    - Error categorization: permanent errors fail at once, transient
      errors retry with backoff, both end in BrokerPublishError

Usage:
    config = ServiceBusConfig.from_env()
    conn = ServiceBusBrokerConnection(config, worker_id, node_name, master_name)
    conn.update_jobs(functions)
    conn.close()
"""

import logging
import os
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import AbstractSet, Optional

from azure.identity import DefaultAzureCredential
from azure.servicebus import ServiceBusClient, ServiceBusMessage, ServiceBusSender
from azure.servicebus.exceptions import (
    MessageSizeExceededError,
    MessagingEntityNotFoundError,
    OperationTimeoutError,
    ServiceBusAuthenticationError,
    ServiceBusAuthorizationError,
    ServiceBusCommunicationError,
    ServiceBusConnectionError,
    ServiceBusError,
    ServiceBusQuotaExceededError,
    ServiceBusServerBusyError,
)

from core.config import BrokerDefaults
from core.models import FunctionRegistrationMessage
from worker.broker import BrokerPublishError
from worker.functions import WorkFunction

logger = logging.getLogger(__name__)

_PERMANENT_ERRORS = (
    ServiceBusAuthenticationError,
    ServiceBusAuthorizationError,
    MessageSizeExceededError,
    MessagingEntityNotFoundError,
    ServiceBusQuotaExceededError,
)

_TRANSIENT_ERRORS = (
    OperationTimeoutError,
    ServiceBusServerBusyError,
    ServiceBusConnectionError,
    ServiceBusCommunicationError,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class ServiceBusConfig:
    """Service Bus configuration from environment."""

    fully_qualified_namespace: str = ""
    connection_string: Optional[str] = None
    managed_identity_client_id: Optional[str] = None
    registration_queue: str = "worker-registrations"
    message_ttl_hours: int = 24
    retry_count: int = 3
    retry_delay_seconds: float = 1.0

    def __post_init__(self):
        # Every publish must reach the broker at least once
        if self.retry_count < 1:
            raise ValueError(f"retry_count must be at least 1, got {self.retry_count}")

    @classmethod
    def from_env(cls, broker: Optional[BrokerDefaults] = None) -> "ServiceBusConfig":
        """Load configuration from environment variables."""
        broker = broker or BrokerDefaults.from_env()
        return cls(
            fully_qualified_namespace=os.environ.get(
                "SERVICE_BUS_NAMESPACE",
                os.environ.get("SERVICE_BUS_FQDN", "")
            ),
            connection_string=os.environ.get("SERVICE_BUS_CONNECTION_STRING"),
            managed_identity_client_id=os.environ.get("MANAGED_IDENTITY_CLIENT_ID"),
            registration_queue=broker.registration_queue,
            message_ttl_hours=broker.message_ttl_hours,
            retry_count=broker.retry_count,
            retry_delay_seconds=broker.retry_delay_seconds,
        )

    @property
    def use_connection_string(self) -> bool:
        """Check if connection string auth should be used."""
        return bool(self.connection_string)


# ============================================================================
# BROKER CONNECTION
# ============================================================================

class ServiceBusBrokerConnection:
    """
    One worker's session with the Service Bus broker.

    Opening the connection creates the client and warms up the sender;
    a failure there raises and the lifecycle retries the connect.
    """

    def __init__(
        self,
        config: ServiceBusConfig,
        worker_id: str,
        node_name: str,
        master_name: str,
    ):
        self.config = config
        self.worker_id = worker_id
        self.node_name = node_name
        self.master_name = master_name

        self._credential = None
        self._client: Optional[ServiceBusClient] = None
        self._sender: Optional[ServiceBusSender] = None

        self._connect()

    def _connect(self) -> None:
        """Create the client and open the registration sender."""
        if self.config.use_connection_string:
            self._client = ServiceBusClient.from_connection_string(
                self.config.connection_string,
                retry_total=3,
                retry_backoff_factor=0.5,
                retry_mode="exponential",
            )
        else:
            if not self.config.fully_qualified_namespace:
                raise ValueError(
                    "SERVICE_BUS_NAMESPACE environment variable not set. "
                    "Required for managed identity authentication."
                )
            if self.config.managed_identity_client_id:
                self._credential = DefaultAzureCredential(
                    managed_identity_client_id=self.config.managed_identity_client_id
                )
            else:
                self._credential = DefaultAzureCredential()
            self._client = ServiceBusClient(
                fully_qualified_namespace=self.config.fully_qualified_namespace,
                credential=self._credential,
                retry_total=3,
                retry_backoff_factor=0.5,
                retry_mode="exponential",
            )

        sender = self._client.get_queue_sender(self.config.registration_queue)
        try:
            # Lazy AMQP links can drop the first message; open before use
            sender._open()
        except Exception:
            sender.close()
            self._client.close()
            self._client = None
            raise
        self._sender = sender

        logger.info(
            f"Broker connection opened for {self.worker_id} "
            f"(queue={self.config.registration_queue})"
        )

    def _build_message(self, registration: FunctionRegistrationMessage) -> ServiceBusMessage:
        message = ServiceBusMessage(
            body=registration.model_dump_json(),
            content_type="application/json",
            session_id=self.worker_id,
            time_to_live=timedelta(hours=self.config.message_ttl_hours),
        )
        message.application_properties = {
            "worker_id": self.worker_id,
            "node_name": self.node_name,
            "function_count": len(registration.functions),
        }
        return message

    def update_jobs(self, functions: AbstractSet[WorkFunction]) -> None:
        """
        Replace this worker's advertised functions.

        Raises:
            BrokerPublishError on a permanent error or exhausted retries
        """
        if self._sender is None:
            raise BrokerPublishError(self.worker_id, "connection closed")

        registration = FunctionRegistrationMessage.for_functions(
            worker_id=self.worker_id,
            node_name=self.node_name,
            master_name=self.master_name,
            function_names=(function.function_name for function in functions),
        )
        self._send(registration)

    def _send(self, registration: FunctionRegistrationMessage) -> None:
        for attempt in range(self.config.retry_count):
            try:
                self._sender.send_messages(self._build_message(registration))
                logger.info(
                    f"Registration sent for {self.worker_id}: "
                    f"{len(registration.functions)} functions"
                )
                return

            except _PERMANENT_ERRORS as e:
                logger.error(f"Permanent publish failure for {self.worker_id}: {type(e).__name__}")
                raise BrokerPublishError(self.worker_id, f"{type(e).__name__}: {e}") from e

            except (_TRANSIENT_ERRORS + (ServiceBusError,)) as e:
                logger.warning(
                    f"Transient error on attempt {attempt + 1}/{self.config.retry_count}: "
                    f"{type(e).__name__}"
                )
                if attempt == self.config.retry_count - 1:
                    raise BrokerPublishError(
                        self.worker_id,
                        f"failed after {self.config.retry_count} attempts: {e}",
                    ) from e
                time.sleep(self.config.retry_delay_seconds * (2 ** attempt))

    def close(self) -> None:
        """Withdraw every function (best effort) and close the client."""
        if self._sender is not None:
            try:
                self._sender.send_messages(self._build_message(
                    FunctionRegistrationMessage.for_functions(
                        worker_id=self.worker_id,
                        node_name=self.node_name,
                        master_name=self.master_name,
                        function_names=(),
                    )
                ))
            except ServiceBusError as e:
                logger.warning(f"Could not withdraw functions for {self.worker_id}: {e}")
            try:
                self._sender.close()
            except ServiceBusError as e:
                logger.warning(f"Error closing sender for {self.worker_id}: {e}")
            self._sender = None

        if self._client is not None:
            try:
                self._client.close()
            except ServiceBusError as e:
                logger.warning(f"Error closing client for {self.worker_id}: {e}")
            self._client = None

        if self._credential is not None:
            self._credential.close()
            self._credential = None


def service_bus_connection_factory(config: ServiceBusConfig, master_name: str):
    """Connection factory for WorkerManager backed by Service Bus."""

    def _factory(worker_id, node):
        return ServiceBusBrokerConnection(
            config=config,
            worker_id=worker_id,
            node_name=node.name,
            master_name=master_name,
        )

    return _factory


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ServiceBusConfig",
    "ServiceBusBrokerConnection",
    "service_bus_connection_factory",
]
