import logging
from types import MappingProxyType
from typing import Optional, Dict, Any, Mapping, Union

from .config import ClientConfig
from .internal.http.request import build_request, merge_params
from .internal.http.response import interpret
from .internal.http.retry import RetryEngine, RetryPolicy
from .internal.http.transport import AiohttpTransport, Transport
from .internal.parser.openapi import OperationRegistry
from .internal.types.models import OperationDescriptor, ResolvedRequest
from .tickets import TicketExchangeCoordinator

logger = logging.getLogger(__name__)


class OperationHandler:
    """Вызываемая операция, привязанная к клиенту"""

    def __init__(self, client: "NetlifyClient", descriptor: OperationDescriptor):
        self.client = client
        self.descriptor = descriptor

    @property
    def operation_id(self) -> str:
        return self.descriptor.operation_id

    async def __call__(
        self,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return await self.client._dispatch(self.descriptor, params, headers)

    def __repr__(self) -> str:
        return f"<OperationHandler {self.operation_id} {self.descriptor.verb} {self.descriptor.path}>"


class NetlifyClient:
    """
    REST клиент, собранный из реестра операций.

    Операции доступны через словарь handlers, построенный один раз:

        client = NetlifyClient(registry, access_token="...")
        site = await client.call("getSite", {"site_id": "123"})
        handler = client.operation("listSites")
        sites = await handler({"page": 2})
    """

    def __init__(
        self,
        registry: OperationRegistry,
        access_token: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.registry = registry
        self._owns_transport = transport is None
        self.transport = transport or AiohttpTransport(timeout=self.config.timeout)
        self.retry_engine = RetryEngine(
            self.transport, retry_policy or self.config.retry_policy()
        )
        self._access_token: Optional[str] = None
        self.set_token(access_token or self.config.access_token)

        self._handlers = MappingProxyType(
            {op.operation_id: OperationHandler(self, op) for op in registry}
        )

    @property
    def base_path(self) -> str:
        return self.config.base_path

    @property
    def global_params(self) -> Dict[str, Any]:
        return self.config.global_params

    @property
    def default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.config.user_agent,
            "Accept": "application/json",
        }

    @property
    def operations(self) -> Mapping[str, OperationHandler]:
        return self._handlers

    def operation(self, operation_id: str) -> OperationHandler:
        """Handler по operationId (UnknownOperationError если нет)"""
        descriptor = self.registry.get(operation_id)
        return self._handlers[descriptor.operation_id]

    def get_token(self) -> Optional[str]:
        return self._access_token

    def set_token(self, token: Optional[str]) -> None:
        """Пустое значение удаляет токен и заголовок Authorization"""
        self._access_token = token or None

    def build_request(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> ResolvedRequest:
        return self._build(self.registry.get(operation_id), params, headers)

    def _build(
        self,
        descriptor: OperationDescriptor,
        params: Optional[Mapping[str, Any]],
        headers: Optional[Mapping[str, str]],
    ) -> ResolvedRequest:
        return build_request(
            descriptor,
            self.base_path,
            merge_params(self.global_params, params),
            self.default_headers,
            access_token=self._access_token,
            headers=headers,
            proxy=self.config.proxy,
        )

    async def _dispatch(
        self,
        descriptor: OperationDescriptor,
        params: Optional[Mapping[str, Any]],
        headers: Optional[Mapping[str, str]],
    ) -> Any:
        request = self._build(descriptor, params, headers)
        outcome = await self.retry_engine.execute(request)
        return interpret(outcome, request)

    async def call(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return await self.operation(operation_id)(params, headers)

    async def get_access_token(
        self,
        ticket: Union[str, Mapping[str, Any]],
        poll_interval_ms: Optional[float] = None,
        timeout_ms: Optional[float] = None,
    ) -> str:
        """Ожидание авторизации тикета и обмен на токен, токен сохраняется в клиенте"""
        if poll_interval_ms is None:
            poll_interval_ms = self.config.poll_interval_ms
        if timeout_ms is None:
            timeout_ms = self.config.timeout_ms
        coordinator = TicketExchangeCoordinator(
            self, poll_interval_ms=poll_interval_ms, timeout_ms=timeout_ms
        )
        return await coordinator.run(ticket)

    async def close(self):
        if self._owns_transport:
            await self.transport.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
