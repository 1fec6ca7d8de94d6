"""
Error taxonomy for the ledgerbench gateway engine.

Every class carries an ``exit_code`` so the CLI can map failures to
process exit statuses without string matching.
"""

from __future__ import annotations

from typing import Any, Optional


class LedgerbenchError(RuntimeError):
    exit_code: int = 1


class ConfigurationError(LedgerbenchError):
    """The network configuration is unusable (e.g. no gateway URL)."""

    exit_code = 2


class TransportError(LedgerbenchError):
    """Network or parse failure while talking to the gateway."""

    exit_code = 3


class GatewaySemanticError(LedgerbenchError):
    """A well-formed gateway response that carries an ``error`` field."""

    exit_code = 4

    def __init__(self, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


class UnexpectedTerminalState(LedgerbenchError):
    """A status check reported a state that is neither PENDING nor SUCCESS."""

    exit_code = 5

    def __init__(self, state: Optional[str], payload: Any = None) -> None:
        super().__init__(f"Transaction ended in state {state!r}")
        self.state = state
        self.payload = payload


class PollTimeoutError(LedgerbenchError):
    exit_code = 6

    def __init__(self, reference_id: str, polls: int) -> None:
        super().__init__(
            f"Transaction {reference_id} still pending after {polls} status checks"
        )
        self.reference_id = reference_id
        self.polls = polls


class UnknownContractError(LedgerbenchError):
    exit_code = 7

    def __init__(self, contract: str) -> None:
        super().__init__(f"No binding for contract {contract!r} in the gateway context")
        self.contract = contract


class RequestEncodingError(LedgerbenchError):
    """The invocation arguments cannot be serialized to JSON."""

    exit_code = 8


__all__ = [
    "ConfigurationError",
    "GatewaySemanticError",
    "LedgerbenchError",
    "PollTimeoutError",
    "RequestEncodingError",
    "TransportError",
    "UnexpectedTerminalState",
    "UnknownContractError",
]
