"""
Request Encoder - Build gateway request bodies for contract invocations.

Reads go to ``{path}/{verb}:call`` with a bare ``arguments`` object.
Writes go to ``{path}/{verb}:sendTx`` and carry a ``txMeta`` block with a
client reference id that the gateway uses to derive its own reference.
"""

from __future__ import annotations

from typing import Any, Optional

from ..models import ContractBinding, EncodedRequest, InvocationDescriptor
from ..utils import new_reference_id

CALL_SUFFIX = ":call"
SEND_TX_SUFFIX = ":sendTx"


def request_path(descriptor: InvocationDescriptor, binding: ContractBinding) -> str:
    suffix = CALL_SUFFIX if descriptor.read_only else SEND_TX_SUFFIX
    return f"{binding.path}/{descriptor.verb}{suffix}"


def encode_request(
    descriptor: InvocationDescriptor,
    binding: ContractBinding,
    reference_id: Optional[str] = None,
) -> EncodedRequest:
    """
    Encode one invocation.

    Args:
        descriptor: The invocation to encode
        binding: Routing info of the target contract
        reference_id: Client reference for writes (default: a fresh token).
            Ignored for reads.

    Returns:
        EncodedRequest with the target path, JSON body and the reference id
        (None for reads)
    """
    arguments: dict[str, Any] = dict(descriptor.args) if descriptor.args else {}
    path = request_path(descriptor, binding)

    if descriptor.read_only:
        return EncodedRequest(path=path, body={"arguments": arguments})

    reference_id = reference_id or new_reference_id()
    body = {
        "txMeta": {
            "executionMode": "",
            "referenceId": reference_id,
        },
        "arguments": arguments,
    }
    return EncodedRequest(path=path, body=body, reference_id=reference_id)
