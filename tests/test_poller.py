"""Tests for the confirmation poller state machine."""

from __future__ import annotations

import httpx
import pytest

from ledgerbench.errors import (
    GatewaySemanticError,
    PollTimeoutError,
    TransportError,
    UnexpectedTerminalState,
)
from ledgerbench.gateway.poller import ConfirmationPoller, PollPolicy, server_reference_id
from ledgerbench.gateway.transport import GatewayTransport
from ledgerbench.models import GatewayContext, TransactionState

from .conftest import FakeGateway, SleepRecorder


class FakeClock:
    """Monotonic clock advanced only by the poller's own sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _poller(context: GatewayContext, gateway: FakeGateway, sleeper, **policy) -> ConfirmationPoller:
    transport = GatewayTransport(context, transport=gateway.transport)
    return ConfirmationPoller(transport, PollPolicy(**policy), sleep=sleeper)


class TestConfirm:
    @pytest.mark.asyncio
    async def test_pending_then_success(self, context: GatewayContext, sleeper: SleepRecorder) -> None:
        final = {"state": "SUCCESS", "output": {"value": "99"}}
        gateway = FakeGateway(statuses=[{"state": "PENDING"}, final])
        poller = _poller(context, gateway, sleeper)

        result = await poller.confirm({"output": {"referenceId": "r1"}})

        assert result.state is TransactionState.SUCCESS
        assert result.succeeded
        assert result.payload == final
        assert result.reference_id == "r1"
        assert result.polls == 2
        assert [r.url.path for r in gateway.status_checks] == [
            "/_services/transactions/r1",
            "/_services/transactions/r1",
        ]
        # initial delay before the first check, one interval after the PENDING check
        assert sleeper.calls == [0.2, 0.5]

    @pytest.mark.asyncio
    async def test_immediate_success_waits_initial_delay_only(
        self, context: GatewayContext, sleeper: SleepRecorder
    ) -> None:
        gateway = FakeGateway(statuses=[{"state": "SUCCESS"}])
        result = await _poller(context, gateway, sleeper).confirm({"output": {"referenceId": "r1"}})

        assert result.succeeded
        assert result.polls == 1
        assert sleeper.calls == [0.2]

    @pytest.mark.asyncio
    async def test_submit_error_skips_polling(self, context: GatewayContext, sleeper: SleepRecorder) -> None:
        gateway = FakeGateway()
        result = await _poller(context, gateway, sleeper).confirm({"error": {"message": "revert"}})

        assert result.state is TransactionState.FAILED
        assert isinstance(result.error, GatewaySemanticError)
        assert result.error.payload == {"message": "revert"}
        assert result.polls == 0
        assert gateway.requests == []
        assert sleeper.calls == []

    @pytest.mark.asyncio
    async def test_missing_reference_id_fails(self, context: GatewayContext, sleeper: SleepRecorder) -> None:
        gateway = FakeGateway()
        result = await _poller(context, gateway, sleeper).confirm({"output": {}})

        assert result.state is TransactionState.FAILED
        assert isinstance(result.error, GatewaySemanticError)
        assert gateway.requests == []

    @pytest.mark.asyncio
    async def test_status_error_is_terminal(self, context: GatewayContext, sleeper: SleepRecorder) -> None:
        # an error-carrying payload is never read for its state
        gateway = FakeGateway(
            statuses=[
                {"state": "PENDING"},
                {"state": "SUCCESS", "error": {"message": "lost"}},
                {"state": "SUCCESS"},
            ]
        )
        result = await _poller(context, gateway, sleeper).confirm({"output": {"referenceId": "r1"}})

        assert result.state is TransactionState.FAILED
        assert isinstance(result.error, GatewaySemanticError)
        assert result.polls == 2
        assert len(gateway.status_checks) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("state", ["FAILED", "REVERTED", None])
    async def test_other_states_are_failures(
        self, context: GatewayContext, sleeper: SleepRecorder, state
    ) -> None:
        payload = {"state": state} if state else {"output": {}}
        gateway = FakeGateway(statuses=[payload])
        result = await _poller(context, gateway, sleeper).confirm({"output": {"referenceId": "r1"}})

        assert result.state is TransactionState.FAILED
        assert isinstance(result.error, UnexpectedTerminalState)
        assert result.error.state == state
        assert result.payload == payload

    @pytest.mark.asyncio
    async def test_transport_error_stops_polling(self, context: GatewayContext, sleeper: SleepRecorder) -> None:
        request = httpx.Request("GET", "http://gateway.test/")
        gateway = FakeGateway(
            statuses=[
                {"state": "PENDING"},
                httpx.ReadTimeout("timed out", request=request),
                {"state": "SUCCESS"},
            ]
        )
        result = await _poller(context, gateway, sleeper).confirm({"output": {"referenceId": "r1"}})

        assert result.state is TransactionState.TRANSPORT_ERROR
        assert isinstance(result.error, TransportError)
        assert result.polls == 2
        assert len(gateway.status_checks) == 2
        assert sleeper.calls == [0.2, 0.5]


class TestBoundedPolicy:
    def test_default_policy_is_unbounded(self) -> None:
        policy = PollPolicy()
        assert policy.initial_delay == 0.2
        assert policy.interval == 0.5
        assert not policy.bounded

    @pytest.mark.asyncio
    async def test_max_attempts(self, context: GatewayContext, sleeper: SleepRecorder) -> None:
        gateway = FakeGateway(statuses=lambda reference_id: {"state": "PENDING"})
        poller = _poller(context, gateway, sleeper, max_attempts=3)

        result = await poller.confirm({"output": {"referenceId": "r1"}})

        assert result.state is TransactionState.TIMEOUT
        assert isinstance(result.error, PollTimeoutError)
        assert result.error.polls == 3
        assert len(gateway.status_checks) == 3
        assert sleeper.calls == [0.2, 0.5, 0.5]

    @pytest.mark.asyncio
    async def test_deadline(self, context: GatewayContext) -> None:
        clock = FakeClock()
        gateway = FakeGateway(statuses=lambda reference_id: {"state": "PENDING"})
        transport = GatewayTransport(context, transport=gateway.transport)
        poller = ConfirmationPoller(
            transport, PollPolicy(deadline=1.5), sleep=clock.sleep, clock=clock
        )

        result = await poller.confirm({"output": {"referenceId": "r1"}})

        assert result.state is TransactionState.TIMEOUT
        assert result.polls == 3
        assert clock.sleeps == [0.2, 0.5, 0.5]

    @pytest.mark.asyncio
    async def test_bound_does_not_change_success_path(
        self, context: GatewayContext, sleeper: SleepRecorder
    ) -> None:
        gateway = FakeGateway(statuses=[{"state": "PENDING"}, {"state": "SUCCESS"}])
        result = await _poller(context, gateway, sleeper, max_attempts=2).confirm(
            {"output": {"referenceId": "r1"}}
        )
        assert result.succeeded
        assert result.polls == 2


class TestServerReferenceId:
    def test_reads_output_reference(self) -> None:
        assert server_reference_id({"output": {"referenceId": "abc"}}) == "abc"

    @pytest.mark.parametrize("payload", [{}, {"output": None}, {"output": {"referenceId": ""}}])
    def test_missing(self, payload) -> None:
        assert server_reference_id(payload) is None
