"""Tests for the process-level MQ nodes sync."""

import threading

import pytest

from mq_nodes_sync.consumers import NodeListConsumer
from mq_nodes_sync.exceptions import InvalidGroupPathError, StartupTimeoutError, SyncStoppedError
from mq_nodes_sync.models import CycleOutcomeKind, StoreResultCode
from mq_nodes_sync.sync import MqNodesSync


@pytest.fixture
def stopped():
    syncs = []
    yield syncs
    for sync in syncs:
        sync.stop()


def _build(session, consumer, stopped, **kwargs):
    sync = MqNodesSync(session=session, consumer=consumer, group_name="orders", **kwargs)
    stopped.append(sync)
    return sync


def test_group_path_joins_base_dir_and_group(session, consumer, stopped):
    assert _build(session, consumer, stopped).group_path == "/mqs/orders"
    assert _build(session, consumer, stopped, base_dir="/brokers/").group_path == "/brokers/orders"


def test_invalid_group_name_is_rejected(session, consumer):
    with pytest.raises(InvalidGroupPathError):
        MqNodesSync(session=session, consumer=consumer, group_name="")


def test_start_returns_after_first_snapshot(session, consumer, stopped):
    session.responses.append((StoreResultCode.OK, ["10.0.0.1:9000", "10.0.0.2:9000"]))
    sync = _build(session, consumer, stopped, startup_timeout=2.0)

    outcome = sync.start()

    assert session.start_calls == 1
    assert session.connected()
    assert outcome.kind is CycleOutcomeKind.SUCCESS
    assert consumer.deliveries == [["tcp://10.0.0.1:9000", "tcp://10.0.0.2:9000"]]
    assert sync.first_outcome == outcome
    assert sync.is_running


def test_start_waits_for_late_connection(make_session, consumer, stopped):
    session = make_session(connect_on_start=False)
    session.responses.append((StoreResultCode.OK, ["a:1"]))
    sync = _build(session, consumer, stopped, startup_timeout=2.0)
    timer = threading.Timer(0.05, session.set_connected, args=(True,))
    timer.start()

    outcome = sync.start()

    assert outcome.is_success
    assert session.fetch_count == 1


def test_start_unblocks_on_connection_loss_and_keeps_retrying(session, consumer, stopped, wait_until):
    session.responses.append((StoreResultCode.CONNECTION_LOSS, []))
    sync = _build(session, consumer, stopped, startup_timeout=2.0)

    outcome = sync.start()

    assert outcome.kind is CycleOutcomeKind.RETRYABLE_FAILURE
    assert wait_until(lambda: session.fetch_count == 2)
    session.complete(1, StoreResultCode.OK, ["a:1"])
    assert wait_until(lambda: consumer.delivery_count == 1)


def test_start_can_wait_past_connection_loss(session, consumer, stopped):
    session.responses.append((StoreResultCode.CONNECTION_LOSS, []))
    session.responses.append((StoreResultCode.OK, ["a:1"]))
    sync = _build(session, consumer, stopped, startup_timeout=2.0, unblock_on_connection_loss=False)

    outcome = sync.start()

    assert outcome.is_success
    assert consumer.deliveries == [["tcp://a:1"]]


def test_start_returns_fatal_outcome_without_raising(session, consumer, stopped):
    session.responses.append((StoreResultCode.NO_NODE, []))
    sync = _build(session, consumer, stopped, startup_timeout=2.0)

    outcome = sync.start()

    assert outcome.kind is CycleOutcomeKind.FATAL_FAILURE
    assert outcome.code is StoreResultCode.NO_NODE
    assert consumer.delivery_count == 0


def test_start_times_out_waiting_for_connection(make_session, consumer):
    session = make_session(connect_on_start=False)
    sync = MqNodesSync(session=session, consumer=consumer, group_name="orders", startup_timeout=0.1)

    with pytest.raises(StartupTimeoutError) as exc_info:
        sync.start()

    assert exc_info.value.stage == "connection"
    assert session.fetch_count == 0
    assert session.stop_calls == 1
    assert not sync.is_running


def test_start_times_out_waiting_for_first_outcome(session, consumer):
    sync = MqNodesSync(session=session, consumer=consumer, group_name="orders", startup_timeout=0.1)

    with pytest.raises(StartupTimeoutError) as exc_info:
        sync.start()

    assert exc_info.value.stage == "first_outcome"
    assert session.fetch_count == 1


def test_start_is_idempotent_while_running(session, consumer, stopped):
    session.responses.append((StoreResultCode.OK, ["a:1"]))
    sync = _build(session, consumer, stopped, startup_timeout=2.0)

    first = sync.start()
    second = sync.start()

    assert first == second
    assert session.start_calls == 1
    assert session.fetch_count == 1


def test_stop_closes_session_and_stops_refreshing(session, consumer, wait_until):
    session.responses.append((StoreResultCode.OK, ["a:1"]))
    sync = MqNodesSync(session=session, consumer=consumer, group_name="orders", startup_timeout=2.0)
    sync.start()

    sync.stop()
    sync.stop()
    session.fire(0)

    assert session.stop_calls == 1
    assert not sync.is_running
    assert session.fetch_count == 1


def test_start_can_be_retried_after_session_start_fails(session, consumer, stopped, monkeypatch):
    connect = session.start
    failures = [ConnectionError("ensemble unreachable")]

    def start_failing_once():
        if failures:
            session.start_calls += 1
            raise failures.pop()
        connect()

    monkeypatch.setattr(session, "start", start_failing_once)
    session.responses.append((StoreResultCode.OK, ["a:1"]))
    sync = _build(session, consumer, stopped, startup_timeout=2.0)

    with pytest.raises(ConnectionError):
        sync.start()

    assert not sync.is_running
    assert session.stop_calls == 1
    assert session.fetch_count == 0

    outcome = sync.start()

    assert outcome.is_success
    assert session.start_calls == 2
    assert consumer.deliveries == [["tcp://a:1"]]


def test_start_can_be_retried_after_timeout(session, consumer, stopped):
    sync = _build(session, consumer, stopped, startup_timeout=0.5)

    with pytest.raises(StartupTimeoutError):
        sync.start()

    # The abandoned fetch is answered late and must not open the gate
    session.responses.append((StoreResultCode.OK, ["a:1"]))
    session.complete(0, StoreResultCode.OK, ["stale:1"])
    outcome = sync.start()

    assert outcome.endpoints == ("tcp://a:1",)
    assert consumer.deliveries == [["tcp://a:1"]]
    assert session.fetch_count == 2


def test_stopped_sync_cannot_be_restarted(session, consumer):
    session.responses.append((StoreResultCode.OK, ["a:1"]))
    sync = MqNodesSync(session=session, consumer=consumer, group_name="orders", startup_timeout=2.0)
    sync.start()
    sync.stop()

    with pytest.raises(SyncStoppedError):
        sync.start()

    assert session.start_calls == 1
    assert session.fetch_count == 1


def test_consumer_can_stop_the_sync_from_a_delivery(session, wait_until):

    class StoppingConsumer(NodeListConsumer):

        def __init__(self):
            self.sync = None
            self.deliveries = []

        def sync_endpoints(self, endpoints):
            self.deliveries.append(endpoints)
            if len(self.deliveries) == 2:
                self.sync.stop()

    consumer = StoppingConsumer()
    session.responses.append((StoreResultCode.OK, ["a:1"]))
    session.responses.append((StoreResultCode.OK, ["a:1", "b:1"]))
    sync = MqNodesSync(session=session, consumer=consumer, group_name="orders", startup_timeout=2.0)
    consumer.sync = sync
    sync.start()

    session.fire(0)

    assert wait_until(lambda: session.stop_calls == 1)
    assert not sync.is_running
    assert len(consumer.deliveries) == 2
