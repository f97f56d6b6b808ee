from .client import NetlifyClient, OperationHandler
from .config import ClientConfig
from .exceptions import (
    NetlifyApiError,
    MissingParameterError,
    TransportError,
    HTTPError,
    ResponseParseError,
    TicketTimeoutError,
    UnknownOperationError,
    RegistryError,
)
from .internal.http.retry import RetryPolicy, RetryEngine, MAX_RETRY
from .internal.http.transport import AiohttpTransport, Transport, TransportFailure
from .internal.parser.openapi import OperationRegistry
from .internal.types.models import (
    OperationDescriptor,
    OperationParameter,
    ParameterLocation,
    ResolvedRequest,
    RawResponse,
)
from .tickets import TicketExchangeCoordinator

__all__ = [
    "NetlifyClient",
    "OperationHandler",
    "ClientConfig",
    "NetlifyApiError",
    "MissingParameterError",
    "TransportError",
    "HTTPError",
    "ResponseParseError",
    "TicketTimeoutError",
    "UnknownOperationError",
    "RegistryError",
    "RetryPolicy",
    "RetryEngine",
    "MAX_RETRY",
    "AiohttpTransport",
    "Transport",
    "TransportFailure",
    "OperationRegistry",
    "OperationDescriptor",
    "OperationParameter",
    "ParameterLocation",
    "ResolvedRequest",
    "RawResponse",
    "TicketExchangeCoordinator",
]
