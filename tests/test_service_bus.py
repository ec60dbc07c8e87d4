# ============================================================================
# SERVICE BUS BROKER CONNECTION TESTS
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Tests - Azure Service Bus publishing
# PURPOSE: Verify registration messages, retry categorization and close
# CREATED: 18 OCT 2026
# ============================================================================
"""
Service Bus Broker Connection Tests

The Azure client and message classes are mocked; no network access.

Covers:
1. Connection string vs managed identity client construction
2. update_jobs() message body and session id
3. Permanent errors fail at once, transient errors retry then fail
4. close() withdraws functions and closes the client

Run with:
    pytest tests/test_service_bus.py -v
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from azure.servicebus.exceptions import MessagingEntityNotFoundError, OperationTimeoutError

from core.config import BrokerDefaults
from core.models import BuildJob, ExecutionNode
from infrastructure.service_bus import (
    ServiceBusBrokerConnection,
    ServiceBusConfig,
    service_bus_connection_factory,
)
from worker.broker import BrokerPublishError
from worker.functions import FunctionFactory


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def config():
    return ServiceBusConfig(
        connection_string="Endpoint=sb://test.servicebus.windows.net/;SharedAccessKeyName=k;SharedAccessKey=v",
        registration_queue="registrations",
        retry_count=3,
        retry_delay_seconds=0,
    )


@pytest.fixture
def sb():
    """Patched ServiceBusClient / ServiceBusMessage and the sender they yield."""
    with patch("infrastructure.service_bus.ServiceBusClient") as client_cls, \
            patch("infrastructure.service_bus.ServiceBusMessage") as message_cls:
        client = client_cls.from_connection_string.return_value
        sender = client.get_queue_sender.return_value
        yield {
            "client_cls": client_cls,
            "client": client,
            "sender": sender,
            "message_cls": message_cls,
        }


@pytest.fixture
def connection(config, sb):
    return ServiceBusBrokerConnection(config, "master_exec-precise-123", "precise-123", "master")


def _functions(*job_names):
    factory = FunctionFactory()
    node = ExecutionNode(name="precise-123")
    return frozenset(
        factory.create(f"build:{name}:scheduler", "start_build", BuildJob(name=name), node, "master", None)
        for name in job_names
    )


def _sent_body(sb, call_index=-1):
    return json.loads(sb["message_cls"].call_args_list[call_index].kwargs["body"])


# ============================================================================
# CONFIG / CONNECT
# ============================================================================

class TestServiceBusConfig:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SERVICE_BUS_NAMESPACE", "ns.servicebus.windows.net")
        monkeypatch.delenv("SERVICE_BUS_CONNECTION_STRING", raising=False)
        config = ServiceBusConfig.from_env(BrokerDefaults(registration_queue="regs", retry_count=5))

        assert config.fully_qualified_namespace == "ns.servicebus.windows.net"
        assert config.registration_queue == "regs"
        assert config.retry_count == 5
        assert not config.use_connection_string

    @pytest.mark.parametrize("retry_count", [0, -1])
    def test_retry_count_must_allow_one_send(self, retry_count):
        with pytest.raises(ValueError, match="retry_count"):
            ServiceBusConfig(connection_string="Endpoint=sb://x/", retry_count=retry_count)

    def test_zero_retries_from_env_rejected(self):
        with pytest.raises(ValueError, match="retry_count"):
            ServiceBusConfig.from_env(BrokerDefaults(retry_count=0))


class TestConnect:
    def test_connection_string_auth(self, connection, sb):
        sb["client_cls"].from_connection_string.assert_called_once()
        sb["client"].get_queue_sender.assert_called_once_with("registrations")
        sb["sender"]._open.assert_called_once()

    def test_managed_identity_auth(self, sb):
        config = ServiceBusConfig(
            fully_qualified_namespace="ns.servicebus.windows.net",
            managed_identity_client_id="client-id",
        )
        with patch("infrastructure.service_bus.DefaultAzureCredential") as credential_cls:
            ServiceBusBrokerConnection(config, "w", "n", "m")

        credential_cls.assert_called_once_with(managed_identity_client_id="client-id")
        kwargs = sb["client_cls"].call_args.kwargs
        assert kwargs["fully_qualified_namespace"] == "ns.servicebus.windows.net"
        assert kwargs["credential"] is credential_cls.return_value

    def test_missing_namespace(self, sb):
        with pytest.raises(ValueError, match="SERVICE_BUS_NAMESPACE"):
            ServiceBusBrokerConnection(ServiceBusConfig(), "w", "n", "m")

    def test_sender_warmup_failure_closes_client(self, config, sb):
        sb["sender"]._open.side_effect = ConnectionError("amqp down")
        with pytest.raises(ConnectionError):
            ServiceBusBrokerConnection(config, "w", "n", "m")
        sb["sender"].close.assert_called_once()
        sb["client"].close.assert_called_once()

    def test_factory_uses_node_name(self, config, sb):
        factory = service_bus_connection_factory(config, "master")
        conn = factory("master_exec-precise-123", ExecutionNode(name="precise-123"))
        assert conn.node_name == "precise-123"
        assert conn.master_name == "master"


# ============================================================================
# PUBLISH
# ============================================================================

class TestUpdateJobs:
    def test_message_contents(self, connection, sb):
        connection.update_jobs(_functions("pep8", "docs"))

        body = _sent_body(sb)
        assert body["worker_id"] == "master_exec-precise-123"
        assert body["node_name"] == "precise-123"
        assert body["master_name"] == "master"
        assert body["functions"] == ["build:docs:scheduler", "build:pep8:scheduler"]

        kwargs = sb["message_cls"].call_args.kwargs
        assert kwargs["session_id"] == "master_exec-precise-123"
        sb["sender"].send_messages.assert_called_once_with(sb["message_cls"].return_value)

    def test_empty_set_is_sent(self, connection, sb):
        connection.update_jobs(frozenset())
        assert _sent_body(sb)["functions"] == []

    def test_permanent_error_not_retried(self, connection, sb):
        sb["sender"].send_messages.side_effect = MessagingEntityNotFoundError(message="queue missing")

        with pytest.raises(BrokerPublishError) as exc_info:
            connection.update_jobs(_functions("pep8"))

        assert exc_info.value.worker_id == "master_exec-precise-123"
        assert sb["sender"].send_messages.call_count == 1

    def test_transient_error_retried_then_fails(self, connection, sb):
        sb["sender"].send_messages.side_effect = OperationTimeoutError(message="timeout")

        with pytest.raises(BrokerPublishError, match="after 3 attempts"):
            connection.update_jobs(_functions("pep8"))

        assert sb["sender"].send_messages.call_count == 3

    def test_transient_error_recovers(self, connection, sb):
        sb["sender"].send_messages.side_effect = [OperationTimeoutError(message="timeout"), None]
        connection.update_jobs(_functions("pep8"))
        assert sb["sender"].send_messages.call_count == 2

    def test_publish_after_close(self, connection):
        connection.close()
        with pytest.raises(BrokerPublishError, match="closed"):
            connection.update_jobs(_functions("pep8"))


# ============================================================================
# CLOSE
# ============================================================================

class TestClose:
    def test_close_withdraws_and_closes(self, connection, sb):
        connection.close()

        assert _sent_body(sb)["functions"] == []
        sb["sender"].close.assert_called_once()
        sb["client"].close.assert_called_once()

    def test_close_twice(self, connection, sb):
        connection.close()
        connection.close()
        sb["client"].close.assert_called_once()

    def test_withdraw_failure_still_closes(self, connection, sb):
        sb["sender"].send_messages.side_effect = OperationTimeoutError(message="timeout")
        connection.close()
        sb["client"].close.assert_called_once()
