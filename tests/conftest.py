from __future__ import annotations

import json
from typing import Any, Callable, Iterator, Optional, Union

import httpx
import pytest
from loguru import logger

from ledgerbench.config import GatewayConfig
from ledgerbench.models import ContractBinding, GatewayContext

GATEWAY_URL = "http://gateway.test"
STATUS_PREFIX = "/_services/transactions/"

StatusReply = Union[dict, Exception]


class FakeGateway:
    """In-memory gateway behind httpx.MockTransport.

    ``statuses`` is either a list consumed one entry per status check or a
    callable ``(reference_id) -> reply``. A reply that is an exception is
    raised from the transport, like a dropped connection.
    """

    def __init__(
        self,
        *,
        read: Optional[dict] = None,
        submit: Optional[Union[dict, Callable[[httpx.Request], dict]]] = None,
        statuses: Union[list[StatusReply], Callable[[str], StatusReply], None] = None,
    ) -> None:
        self.read_response = read if read is not None else {}
        self.submit_response = submit
        self.statuses = statuses if statuses is not None else []
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def submits(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @property
    def status_checks(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith(STATUS_PREFIX)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.startswith(STATUS_PREFIX):
            reference_id = path[len(STATUS_PREFIX):]
            if callable(self.statuses):
                reply = self.statuses(reference_id)
            else:
                reply = self.statuses.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return httpx.Response(200, json=reply)

        if path.endswith(":call"):
            return httpx.Response(200, json=self.read_response)

        if callable(self.submit_response):
            return httpx.Response(200, json=self.submit_response(request))
        if self.submit_response is not None:
            return httpx.Response(200, json=self.submit_response)
        body = json.loads(request.content)
        return httpx.Response(
            200, json={"output": {"referenceId": "srv-" + body["txMeta"]["referenceId"]}}
        )


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def context() -> GatewayContext:
    return GatewayContext(
        url=GATEWAY_URL,
        headers={
            "Content-Type": "application/json",
            "X-Auth-Userid": "bench-user",
            "X-Auth-ApplicationId": "bench-app",
        },
        contracts={"Asset": ContractBinding(id="asset", path="/assets")},
    )


@pytest.fixture()
def gateway_config() -> GatewayConfig:
    return GatewayConfig.from_dict(
        {
            "url": GATEWAY_URL,
            "chainId": 1337,
            "fromUser": "bench-user",
            "fromApplication": "bench-app",
            "contracts": {"Asset": {"id": "asset", "path": "/assets"}},
        }
    )


@pytest.fixture()
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def log_records() -> Iterator[list[Any]]:
    """Capture loguru records emitted during a test."""
    records: list[Any] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
