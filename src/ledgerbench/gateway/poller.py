"""
Confirmation Poller - Wait for an accepted write to reach a terminal state.

The gateway accepts a ``:sendTx`` call immediately and finalizes it out of
band. The poller turns that into a single awaited result:

    SUBMITTED -> PENDING -> SUCCESS | FAILED | TRANSPORT_ERROR | TIMEOUT

Only a status payload whose ``state`` is ``SUCCESS`` counts as success. A
payload carrying ``error`` is terminal and its ``state`` is never read.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from ..errors import (
    GatewaySemanticError,
    LedgerbenchError,
    PollTimeoutError,
    TransportError,
    UnexpectedTerminalState,
)
from ..models import TransactionState
from .transport import GatewayTransport

DEFAULT_INITIAL_DELAY = 0.2
DEFAULT_POLL_INTERVAL = 0.5


@dataclass(frozen=True)
class PollPolicy:
    """
    Timing of the status-check loop, in seconds.

    ``max_attempts`` and ``deadline`` default to None, which polls until the
    gateway reports a terminal state. Setting either bounds the loop and
    turns exhaustion into a TIMEOUT outcome.
    """

    initial_delay: float = DEFAULT_INITIAL_DELAY
    interval: float = DEFAULT_POLL_INTERVAL
    max_attempts: Optional[int] = None
    deadline: Optional[float] = None

    @property
    def bounded(self) -> bool:
        return self.max_attempts is not None or self.deadline is not None


@dataclass(frozen=True)
class PollResult:
    state: TransactionState
    payload: Any = None
    error: Optional[LedgerbenchError] = None
    reference_id: Optional[str] = None
    polls: int = 0

    @property
    def succeeded(self) -> bool:
        return self.state is TransactionState.SUCCESS


def server_reference_id(submit_response: dict[str, Any]) -> Optional[str]:
    """Extract the gateway-assigned reference from a ``:sendTx`` response."""
    output = submit_response.get("output")
    if not isinstance(output, dict):
        return None
    reference_id = output.get("referenceId")
    return str(reference_id) if reference_id else None


class ConfirmationPoller:
    def __init__(
        self,
        transport: GatewayTransport,
        policy: Optional[PollPolicy] = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transport = transport
        self.policy = policy or PollPolicy()
        self._sleep = sleep
        self._clock = clock

    async def confirm(self, submit_response: dict[str, Any]) -> PollResult:
        """
        Drive one write from its submit response to a terminal state.

        Args:
            submit_response: Parsed JSON body returned by the ``:sendTx`` call

        Returns:
            PollResult whose state is terminal
        """
        if submit_response.get("error"):
            return PollResult(
                state=TransactionState.FAILED,
                payload=submit_response,
                error=GatewaySemanticError(
                    f"Gateway rejected the transaction: {submit_response['error']}",
                    payload=submit_response["error"],
                ),
            )

        reference_id = server_reference_id(submit_response)
        if reference_id is None:
            return PollResult(
                state=TransactionState.FAILED,
                payload=submit_response,
                error=GatewaySemanticError(
                    "Submit response carries no output.referenceId",
                    payload=submit_response,
                ),
            )

        return await self._poll(reference_id)

    async def _poll(self, reference_id: str) -> PollResult:
        policy = self.policy
        started = self._clock()
        polls = 0

        await self._sleep(policy.initial_delay)
        while True:
            polls += 1
            try:
                payload = await self.transport.check_status(reference_id)
            except TransportError as exc:
                return PollResult(
                    state=TransactionState.TRANSPORT_ERROR,
                    error=exc,
                    reference_id=reference_id,
                    polls=polls,
                )

            if payload.get("error"):
                return PollResult(
                    state=TransactionState.FAILED,
                    payload=payload,
                    error=GatewaySemanticError(
                        f"Status check for {reference_id} failed: {payload['error']}",
                        payload=payload["error"],
                    ),
                    reference_id=reference_id,
                    polls=polls,
                )

            state = payload.get("state")
            logger.debug("tx.poll reference_id={} poll={} state={}", reference_id, polls, state)

            if state == TransactionState.SUCCESS.value:
                return PollResult(
                    state=TransactionState.SUCCESS,
                    payload=payload,
                    reference_id=reference_id,
                    polls=polls,
                )
            if state != TransactionState.PENDING.value:
                return PollResult(
                    state=TransactionState.FAILED,
                    payload=payload,
                    error=UnexpectedTerminalState(state, payload=payload),
                    reference_id=reference_id,
                    polls=polls,
                )

            if self._exhausted(polls, started):
                return PollResult(
                    state=TransactionState.TIMEOUT,
                    payload=payload,
                    error=PollTimeoutError(reference_id, polls),
                    reference_id=reference_id,
                    polls=polls,
                )
            await self._sleep(policy.interval)

    def _exhausted(self, polls: int, started: float) -> bool:
        policy = self.policy
        if policy.max_attempts is not None and polls >= policy.max_attempts:
            return True
        if policy.deadline is not None:
            # the next poll would start after another interval
            return self._clock() - started + policy.interval > policy.deadline
        return False
