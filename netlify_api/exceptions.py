"""
Иерархия ошибок клиента
"""

from typing import Any, Optional


class NetlifyApiError(Exception):
    """Базовая ошибка клиента"""


class MissingParameterError(NetlifyApiError):
    """Обязательный параметр не передан (проверяется до отправки запроса)"""

    def __init__(self, name: str, operation_id: str, location: str = "path"):
        self.name = name
        self.operation_id = operation_id
        self.location = location
        super().__init__(
            f"Missing required {location} parameter '{name}' for {operation_id}"
        )


class TransportError(NetlifyApiError):
    """Запрос не дошел до сервера (DNS, соединение, таймаут сокета)"""

    def __init__(self, cause: BaseException, url: str, method: str):
        self.cause = cause
        self.url = url
        self.method = method
        super().__init__(f"{method} {url}: {cause}")


class HTTPError(NetlifyApiError):
    """Сервер ответил статусом вне диапазона 2xx"""

    def __init__(
        self,
        status: int,
        url: str,
        method: str,
        data: Any = None,
        text: Optional[str] = None,
    ):
        self.status = status
        self.url = url
        self.method = method
        self.data = data
        self.text = text
        message = f"[{status}] {method} {url}"
        if text:
            message = f"{message}: {text}"
        super().__init__(message)


class ResponseParseError(NetlifyApiError):
    """Успешный ответ, тело которого не удалось разобрать"""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        text: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.status = status
        self.text = text
        self.cause = cause
        super().__init__(message)


class TicketTimeoutError(NetlifyApiError, TimeoutError):
    """Тикет не был авторизован за отведенное время"""

    def __init__(self, ticket_id: str, timeout_ms: float):
        self.ticket_id = ticket_id
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Timeout while waiting for ticket grant ({ticket_id}, {timeout_ms} ms)"
        )


class UnknownOperationError(NetlifyApiError, KeyError):
    """Операции с таким operationId нет в реестре"""

    def __init__(self, operation_id: str):
        self.operation_id = operation_id
        super().__init__(operation_id)

    def __str__(self) -> str:
        return f"Unknown operation: {self.operation_id}"


class RegistryError(NetlifyApiError):
    """Описание операций некорректно (дубликаты, неизвестное расположение параметра)"""
