"""
Сборка HTTP запроса из описания операции и параметров вызова
"""

import json
import logging
from typing import Optional, Dict, Any, List, Mapping, Tuple
from urllib.parse import quote, urlencode

from ...exceptions import MissingParameterError
from ..types.models import (
    MultipartBody,
    OperationDescriptor,
    OperationParameter,
    ParameterLocation,
    ResolvedRequest,
)
from ..utils import serialize_value, serialize_query_value, is_file_like

logger = logging.getLogger(__name__)

# Ключ body по умолчанию, если имя body параметра не передано
DEFAULT_BODY_KEY = "body"


def merge_params(
    global_params: Optional[Mapping[str, Any]],
    call_params: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """
    Объединение параметров.

    Порядок: сначала глобальные параметры клиента, затем параметры вызова.
    При совпадении ключей побеждает параметр вызова, других правил нет.
    """
    merged: Dict[str, Any] = {}
    if global_params:
        merged.update(global_params)
    if call_params:
        merged.update(call_params)
    return merged


def merge_headers(*layers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Слияние заголовков без учета регистра, последний слой побеждает"""
    headers: Dict[str, str] = {}
    for layer in layers:
        if not layer:
            continue
        for name, value in layer.items():
            for existing in [k for k in headers if k.lower() == name.lower()]:
                del headers[existing]
            headers[name] = value
    return headers


def check_required(descriptor: OperationDescriptor, params: Mapping[str, Any]) -> None:
    for parameter in descriptor.parameters:
        if not parameter.required:
            continue
        key = parameter.name
        if parameter.location == ParameterLocation.BODY and key not in params:
            key = DEFAULT_BODY_KEY
        if params.get(key) is None:
            raise MissingParameterError(
                parameter.name, descriptor.operation_id, parameter.location.value
            )


def build_path(descriptor: OperationDescriptor, params: Dict[str, Any]) -> str:
    """Подстановка path параметров; использованные удаляются из params"""
    path = descriptor.path
    for parameter in descriptor.by_location(ParameterLocation.PATH):
        value = params.pop(parameter.name, None)
        if value is None:
            continue
        path = path.replace(
            "{" + parameter.name + "}", quote(str(serialize_query_value(value)), safe="")
        )
    return path


def build_query(
    descriptor: OperationDescriptor, params: Dict[str, Any]
) -> List[Tuple[str, Any]]:
    """Query параметры в порядке объявления"""
    query = []
    for parameter in descriptor.by_location(ParameterLocation.QUERY):
        value = params.pop(parameter.name, None)
        if value is None:
            continue
        value = serialize_query_value(value)
        if isinstance(value, list):
            query.extend((parameter.name, item) for item in value)
        else:
            query.append((parameter.name, value))
    return query


def build_param_headers(
    descriptor: OperationDescriptor, params: Dict[str, Any]
) -> Dict[str, str]:
    headers = {}
    for parameter in descriptor.by_location(ParameterLocation.HEADER):
        value = params.pop(parameter.name, None)
        if value is not None:
            headers[parameter.name] = str(serialize_query_value(value))
    return headers


def _add_multipart_field(multipart: MultipartBody, name: str, value: Any) -> None:
    # Поток читается один раз, иначе повторная попытка отправит пустое тело
    if hasattr(value, "read"):
        filename = getattr(value, "name", None)
        value = value.read()
        if isinstance(value, str):
            value = value.encode("utf-8")
        multipart.add_field(name, value, filename if isinstance(filename, str) else None)
    else:
        multipart.add_field(name, value)


def build_body(
    parameter: Optional[OperationParameter], params: Dict[str, Any]
) -> Tuple[Any, Optional[str]]:
    """
    Сериализация body параметра.

    Returns:
        (payload, content_type). JSON отдается байтами с content_type,
        файлы - MultipartBody без content_type (boundary ставит транспорт).
    """
    if parameter is None:
        return None, None

    key = parameter.name if parameter.name in params else DEFAULT_BODY_KEY
    if key not in params:
        return None, None
    value = params.pop(key)
    if value is None:
        return None, None

    if parameter.is_binary or is_file_like(value) or callable(value):
        multipart = MultipartBody()
        if isinstance(value, dict):
            for field_name, field_value in value.items():
                _add_multipart_field(multipart, field_name, field_value)
        else:
            _add_multipart_field(multipart, parameter.name, value)
        return multipart, None

    payload = json.dumps(serialize_value(value)).encode("utf-8")
    return payload, "application/json"


def build_request(
    descriptor: OperationDescriptor,
    base_path: str,
    params: Mapping[str, Any],
    default_headers: Mapping[str, str],
    access_token: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
    proxy: Optional[str] = None,
) -> ResolvedRequest:
    """
    Сборка ResolvedRequest.

    Args:
        descriptor: Описание операции
        base_path: scheme://host/prefix
        params: Уже объединенные параметры (см. merge_params)
        default_headers: User-Agent, Accept
        access_token: Текущий токен клиента, None если не задан
        headers: Заголовки вызова, перекрывают все остальные
        proxy: Прокси транспорта, если настроен

    Raises:
        MissingParameterError: обязательный параметр не передан
    """
    check_required(descriptor, params)

    working = dict(params)
    path = build_path(descriptor, working)
    query = build_query(descriptor, working)
    param_headers = build_param_headers(descriptor, working)
    body, content_type = build_body(descriptor.body_parameter, working)

    if working:
        logger.debug(
            f"{descriptor.operation_id}: ignoring undeclared parameters {sorted(working)}"
        )

    url = f"{base_path}{path}"
    if query:
        url = f"{url}?{urlencode(query)}"

    auth_headers = {"Authorization": f"Bearer {access_token}"} if access_token else None
    content_headers = {"Content-Type": content_type} if content_type else None

    return ResolvedRequest(
        url=url,
        method=descriptor.verb,
        headers=merge_headers(
            default_headers, auth_headers, content_headers, param_headers, headers
        ),
        body=body,
        proxy=proxy,
    )
