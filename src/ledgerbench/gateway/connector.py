"""
Gateway Connector - Harness-facing entry point.

Holds the gateway configuration for a worker, assembles the per-round
GatewayContext and runs invocations against it. ``invoke`` never raises
for an invocation-level failure: every error ends up in the returned
OutcomeStatus so one failed call cannot abort a round.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Iterable, Mapping, Optional

import httpx
from loguru import logger

from ..config import GatewayConfig, parse_gateway_url
from ..errors import ConfigurationError, GatewaySemanticError, LedgerbenchError
from ..models import ContractBinding, GatewayContext, InvocationDescriptor, OutcomeStatus
from .encoder import encode_request
from .poller import ConfirmationPoller, PollPolicy
from .reporter import report_failure, report_read, report_write
from .transport import DEFAULT_TIMEOUT, GatewayTransport


class GatewayConnector:
    def __init__(
        self,
        config: GatewayConfig,
        worker_index: int = -1,
        *,
        policy: Optional[PollPolicy] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Any = asyncio.sleep,
    ) -> None:
        self.check_config(config)
        self.config = config
        self.worker_index = worker_index
        self.policy = policy or PollPolicy()
        self.timeout = timeout
        self.context: Optional[GatewayContext] = None
        self._http_transport = transport
        self._sleep = sleep
        self._transport: Optional[GatewayTransport] = None

    @staticmethod
    def check_config(config: GatewayConfig) -> None:
        """Raise ConfigurationError if the gateway cannot be reached at all."""
        if not getattr(config, "url", None):
            raise ConfigurationError(
                "No URL given to access the gateway SUT. Please check your network configuration."
            )
        parse_gateway_url(config.url)

    def init(self) -> bool:
        return True

    async def install_smart_contract(self) -> None:
        """Contracts are deployed out of band; their paths come from the config."""

    def prepare_worker_arguments(self, number: int) -> list[dict[str, Any]]:
        """Hand the contract bindings to each worker (one entry per index 0..number)."""
        return [{"contracts": dict(self.config.contracts)} for _ in range(number + 1)]

    def get_context(self, round_index: int, args: Mapping[str, Any]) -> GatewayContext:
        """
        Assemble the gateway context for a round.

        Args:
            round_index: Zero-based round index (unused, the context is the same per round)
            args: Worker arguments as produced by prepare_worker_arguments

        Returns:
            The context shared by every invocation of the round
        """
        contracts = {
            name: ContractBinding.from_dict(info)
            for name, info in (args.get("contracts") or {}).items()
        }
        self.context = GatewayContext(
            url=self.config.url,
            headers={
                "Content-Type": "application/json",
                "X-Auth-Userid": self.config.from_user,
                "X-Auth-ApplicationId": self.config.from_application,
            },
            contracts=contracts,
            chain_id=self.config.chain_id,
            client_index=self.worker_index,
        )
        logger.debug(
            "context.ready round={} worker={} contracts={}",
            round_index,
            self.worker_index,
            sorted(contracts),
        )
        return self.context

    async def release_context(self) -> None:
        if self._transport is not None:
            await self._transport.aclose()
            self._transport = None

    async def __aenter__(self) -> "GatewayConnector":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.release_context()

    async def _gateway(self) -> GatewayTransport:
        if self.context is None:
            raise ConfigurationError("No gateway context; call get_context() first")
        previous = self._transport
        if previous is None or previous.context is not self.context:
            # replaced before the await: concurrent invocations never get a closed client
            self._transport = GatewayTransport(
                self.context,
                timeout=self.timeout,
                transport=self._http_transport,
            )
            if previous is not None:
                await previous.aclose()
        return self._transport

    async def invoke(self, descriptor: InvocationDescriptor) -> OutcomeStatus:
        """Submit one invocation and return its normalized outcome."""
        time_create = time.monotonic()
        try:
            gateway = await self._gateway()
            binding = gateway.context.binding_for(descriptor.contract)
            request = encode_request(descriptor, binding)

            if descriptor.read_only:
                payload = await gateway.submit(request.path, request.body)
                if payload.get("error"):
                    error = GatewaySemanticError(
                        f"Gateway rejected the call: {payload['error']}",
                        payload=payload["error"],
                    )
                    return report_read(descriptor, error=error, time_create=time_create)
                return report_read(descriptor, payload, time_create=time_create)

            submitted = await gateway.submit(request.path, request.body)
            poller = ConfirmationPoller(gateway, self.policy, sleep=self._sleep)
            result = await poller.confirm(submitted)
            return report_write(descriptor, result, time_create=time_create)
        except LedgerbenchError as exc:
            return report_failure(descriptor, exc, time_create=time_create)

    async def invoke_many(self, descriptors: Iterable[InvocationDescriptor]) -> list[OutcomeStatus]:
        """Run invocations concurrently; results keep the input order."""
        return list(await asyncio.gather(*(self.invoke(d) for d in descriptors)))

    async def check_status(self, reference_id: str) -> dict[str, Any]:
        """Single status lookup, surfaced as-is (no polling)."""
        gateway = await self._gateway()
        return await gateway.check_status(reference_id)
