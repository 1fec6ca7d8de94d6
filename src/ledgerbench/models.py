from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from .errors import UnknownContractError


class TransactionState(str, Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    TIMEOUT = "TIMEOUT"

    @property
    def terminal(self) -> bool:
        return self is not TransactionState.PENDING


@dataclass(frozen=True)
class InvocationDescriptor:
    contract: str
    verb: str
    args: Optional[Mapping[str, Any]] = None
    read_only: bool = False

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "InvocationDescriptor":
        """Build a descriptor from the harness shape ``{contract, verb, args, readOnly}``."""
        return cls(
            contract=payload["contract"],
            verb=payload["verb"],
            args=payload.get("args") or None,
            read_only=bool(payload.get("readOnly", payload.get("read_only", False))),
        )

    @property
    def kind(self) -> str:
        return "call" if self.read_only else "tx"


@dataclass(frozen=True)
class ContractBinding:
    id: str
    path: str

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ContractBinding":
        raw_id = payload.get("id")
        return cls(id="" if raw_id is None else str(raw_id), path=payload["path"])


@dataclass(frozen=True)
class GatewayContext:
    """Connection-scoped state for one benchmark round.

    ``headers`` and ``contracts`` are exposed as read-only mappings so any
    number of in-flight invocations can share one context.
    """

    url: str
    headers: Mapping[str, str]
    contracts: Mapping[str, ContractBinding]
    chain_id: Optional[Union[int, str]] = None
    client_index: int = -1

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "contracts", MappingProxyType(dict(self.contracts)))

    def binding_for(self, contract: str) -> ContractBinding:
        try:
            return self.contracts[contract]
        except KeyError:
            raise UnknownContractError(contract) from None


@dataclass(frozen=True)
class EncodedRequest:
    path: str
    body: dict[str, Any]
    reference_id: Optional[str] = None


@dataclass(frozen=True)
class OutcomeStatus:
    """Normalized result of one invocation, consumed by the benchmark harness."""

    succeeded: bool
    verified: bool
    result: Any = None
    error: Any = None
    reference_id: Optional[str] = None
    state: Optional[TransactionState] = None
    polls: int = 0
    time_create: float = field(default_factory=time.monotonic)
    time_final: Optional[float] = None

    @property
    def latency(self) -> Optional[float]:
        if self.time_final is None:
            return None
        return self.time_final - self.time_create

    def to_dict(self) -> dict[str, Any]:
        error = self.error
        if isinstance(error, BaseException):
            error = str(error)
        return {
            "succeeded": self.succeeded,
            "verified": self.verified,
            "result": self.result,
            "error": error,
            "referenceId": self.reference_id,
            "state": self.state.value if self.state else None,
            "polls": self.polls,
            "latency": self.latency,
        }


__all__ = [
    "ContractBinding",
    "EncodedRequest",
    "GatewayContext",
    "InvocationDescriptor",
    "OutcomeStatus",
    "TransactionState",
]
