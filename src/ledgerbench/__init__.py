__all__ = [
    # Models
    "ContractBinding",
    "EncodedRequest",
    "GatewayContext",
    "InvocationDescriptor",
    "OutcomeStatus",
    "TransactionState",
    # Configuration
    "GatewayConfig",
    "Settings",
    "load_network_config",
    # Engine
    "ConfirmationPoller",
    "GatewayConnector",
    "GatewayTransport",
    "PollPolicy",
    "PollResult",
    "encode_request",
    # Errors
    "ConfigurationError",
    "GatewaySemanticError",
    "LedgerbenchError",
    "PollTimeoutError",
    "RequestEncodingError",
    "TransportError",
    "UnexpectedTerminalState",
    "UnknownContractError",
]

from .errors import (
    ConfigurationError,
    GatewaySemanticError,
    LedgerbenchError,
    PollTimeoutError,
    RequestEncodingError,
    TransportError,
    UnexpectedTerminalState,
    UnknownContractError,
)
from .models import (
    ContractBinding,
    EncodedRequest,
    GatewayContext,
    InvocationDescriptor,
    OutcomeStatus,
    TransactionState,
)
from .config import GatewayConfig, Settings, load_network_config
from .gateway.connector import GatewayConnector
from .gateway.encoder import encode_request
from .gateway.poller import ConfirmationPoller, PollPolicy, PollResult
from .gateway.transport import GatewayTransport
