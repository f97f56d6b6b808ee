import json
import logging
from typing import Any, Optional

from ...exceptions import HTTPError, ResponseParseError, TransportError
from ..types.models import AttemptOutcome, RawResponse, ResolvedRequest

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPES = ("text/", "application/xml")


def decode_text(response: RawResponse) -> str:
    try:
        return response.body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ResponseParseError(
            "Response body is not valid UTF-8 text",
            status=response.status,
            cause=exc,
        ) from exc


def _error_body(response: RawResponse) -> tuple:
    """Тело ошибки: (json или None, текст)"""
    text = response.body.decode("utf-8", errors="replace")
    try:
        data = json.loads(text) if text else None
    except ValueError:
        data = None
    return data, text


def parse_success(response: RawResponse) -> Any:
    """Разбор успешного ответа по content-type"""
    if response.status == 204 or not response.body:
        return None

    content_type = response.content_type

    if "json" in content_type:
        text = decode_text(response)
        try:
            return json.loads(text)
        except ValueError as exc:
            raise ResponseParseError(
                f"Invalid JSON in response: {exc}",
                status=response.status,
                text=text,
                cause=exc,
            ) from exc

    if content_type.startswith(TEXT_CONTENT_TYPES):
        return decode_text(response)

    if not content_type:
        # Тип не объявлен: текст, если тело в UTF-8, иначе байты как есть
        try:
            return response.body.decode("utf-8")
        except UnicodeDecodeError:
            return response.body

    return response.body


def interpret(outcome: AttemptOutcome, request: ResolvedRequest) -> Any:
    """
    Итог RetryEngine -> значение или исключение.

    Raises:
        TransportError: ответ так и не был получен
        HTTPError: статус вне 2xx
        ResponseParseError: успешный статус, но тело не разбирается
    """
    if outcome.error is not None:
        raise TransportError(outcome.error, url=request.url, method=request.method) from outcome.error

    response: Optional[RawResponse] = outcome.response
    if not response.ok:
        data, text = _error_body(response)
        logger.debug(f"{request.method} {request.url} -> {response.status}")
        raise HTTPError(
            response.status,
            url=request.url,
            method=request.method,
            data=data,
            text=text,
        )

    return parse_success(response)
