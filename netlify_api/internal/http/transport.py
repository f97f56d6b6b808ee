import asyncio
import logging
from typing import Optional, Protocol

import aiohttp
from aiohttp import ClientError, ClientTimeout, ClientSession, TCPConnector

from ..types.models import MultipartBody, RawResponse, ResolvedRequest

logger = logging.getLogger(__name__)


class TransportFailure(Exception):
    """Запрос не получил ответа; оригинальная ошибка в __cause__"""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(str(cause) or type(cause).__name__)


class Transport(Protocol):
    async def send(self, request: ResolvedRequest) -> RawResponse:
        """Отправка запроса. Ошибки сети выбрасываются как TransportFailure"""
        ...


class ConnectionPool:
    """Пул соединений для эффективного управления ресурсами"""

    def __init__(self, max_connections: int = 100, max_connections_per_host: int = 10):
        self.max_connections = max_connections
        self.max_connections_per_host = max_connections_per_host
        self._connector: Optional[TCPConnector] = None

    def get_connector(self) -> TCPConnector:
        if self._connector is None or self._connector.closed:
            self._connector = TCPConnector(
                limit=self.max_connections,
                limit_per_host=self.max_connections_per_host,
                ttl_dns_cache=30,
                use_dns_cache=True,
                keepalive_timeout=60,
                enable_cleanup_closed=True,
            )
        return self._connector

    async def close(self):
        if self._connector and not self._connector.closed:
            await self._connector.close()


def encode_multipart(body: MultipartBody) -> aiohttp.FormData:
    form_data = aiohttp.FormData()
    for field_name, value in body.fields:
        if callable(value):
            value = value()
        if isinstance(value, (bytes, bytearray)) or hasattr(value, "read"):
            form_data.add_field(
                field_name,
                value,
                filename=(
                    body.filenames.get(field_name)
                    or getattr(value, "name", None)
                    or f"{field_name}.bin"
                ),
                content_type="application/octet-stream",
            )
        elif isinstance(value, list):
            for item in value:
                form_data.add_field(field_name, str(item))
        else:
            form_data.add_field(field_name, str(value))
    return form_data


class AiohttpTransport:
    """HTTP транспорт на базе aiohttp с переиспользуемой сессией"""

    def __init__(
        self,
        timeout: int = 30,
        max_connections: int = 100,
        max_connections_per_host: int = 10,
    ):
        self._timeout = timeout
        self._session: Optional[ClientSession] = None
        self._session_lock = asyncio.Lock()
        self._connection_pool = ConnectionPool(max_connections, max_connections_per_host)

    async def _ensure_session(self) -> ClientSession:
        if self._session is not None and not self._session.closed:
            return self._session

        async with self._session_lock:
            # Двойная проверка внутри блокировки
            if self._session is not None and not self._session.closed:
                return self._session

            self._session = ClientSession(
                connector=self._connection_pool.get_connector(),
                connector_owner=False,
                timeout=ClientTimeout(total=self._timeout, connect=10),
                trust_env=False,  # Прокси задается явно через ResolvedRequest.proxy
            )
        return self._session

    async def send(self, request: ResolvedRequest) -> RawResponse:
        session = await self._ensure_session()

        data = request.body
        if isinstance(data, MultipartBody):
            data = encode_multipart(data)

        logger.debug(f"Making {request.method} request to {request.url}")
        try:
            async with session.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                data=data,
                proxy=request.proxy,
            ) as response:
                body = await response.read()
                logger.debug(f"Response status: {response.status}")
                return RawResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=body,
                )
        except (ClientError, asyncio.TimeoutError, OSError) as exc:
            raise TransportFailure(exc) from exc

    async def close(self):
        """Закрытие сессии и освобождение ресурсов"""
        async with self._session_lock:
            if self._session and not self._session.closed:
                await self._session.close()
            self._session = None

        await self._connection_pool.close()
