"""Сериализация значений параметров для body и query"""

import base64
from datetime import datetime, date
from typing import Any


def serialize_value(value: Any) -> Any:
    """
    Рекурсивная сериализация значений для JSON body.

    Даты превращаются в ISO строки, bytes в base64,
    pydantic модели в словари.
    """
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    elif isinstance(value, bytes):
        return base64.b64encode(value).decode("utf-8")
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    elif hasattr(value, "model_dump"):
        return serialize_value(value.model_dump())
    else:
        return value


def serialize_query_value(value: Any) -> Any:
    """Сериализация для query параметров"""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    elif isinstance(value, bool):
        # В query boolean передается строкой
        return str(value).lower()
    elif isinstance(value, (list, tuple)):
        return [serialize_query_value(item) for item in value]
    elif value is None:
        return ""
    else:
        return str(value)


def is_file_like(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray)) or hasattr(value, "read")
