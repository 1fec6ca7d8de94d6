"""
Outcome Reporter - Normalize call and transaction results.

Failures are logged with the contract and method that produced them;
successes are not logged.
"""

from __future__ import annotations

import time
from typing import Any, Optional

from loguru import logger

from ..models import InvocationDescriptor, OutcomeStatus, TransactionState
from .poller import PollResult


def report_success(
    descriptor: InvocationDescriptor,
    payload: Any,
    *,
    time_create: float,
    reference_id: Optional[str] = None,
    state: Optional[TransactionState] = None,
    polls: int = 0,
) -> OutcomeStatus:
    return OutcomeStatus(
        succeeded=True,
        verified=True,
        result=payload,
        reference_id=reference_id,
        state=state,
        polls=polls,
        time_create=time_create,
        time_final=time.monotonic(),
    )


def report_failure(
    descriptor: InvocationDescriptor,
    error: Any,
    *,
    time_create: float,
    reference_id: Optional[str] = None,
    state: Optional[TransactionState] = None,
    polls: int = 0,
) -> OutcomeStatus:
    logger.bind(
        contract=descriptor.contract,
        verb=descriptor.verb,
        kind=descriptor.kind,
        reference_id=reference_id,
    ).error(
        "Failed {} on contract [{}] calling method [{}]: {}",
        descriptor.kind,
        descriptor.contract,
        descriptor.verb,
        error,
    )
    return OutcomeStatus(
        succeeded=False,
        verified=False,
        error=error,
        reference_id=reference_id,
        state=state,
        polls=polls,
        time_create=time_create,
        time_final=time.monotonic(),
    )


def report_read(
    descriptor: InvocationDescriptor,
    payload: Any = None,
    error: Any = None,
    *,
    time_create: float,
) -> OutcomeStatus:
    """Build the outcome of a ``:call`` from its payload or its error."""
    if error is not None:
        return report_failure(descriptor, error, time_create=time_create)
    return report_success(descriptor, payload, time_create=time_create)


def report_write(
    descriptor: InvocationDescriptor,
    result: PollResult,
    *,
    time_create: float,
) -> OutcomeStatus:
    """Build the outcome of a ``:sendTx`` from the poller's terminal state."""
    if result.succeeded:
        return report_success(
            descriptor,
            result.payload,
            time_create=time_create,
            reference_id=result.reference_id,
            state=result.state,
            polls=result.polls,
        )
    return report_failure(
        descriptor,
        result.error,
        time_create=time_create,
        reference_id=result.reference_id,
        state=result.state,
        polls=result.polls,
    )
