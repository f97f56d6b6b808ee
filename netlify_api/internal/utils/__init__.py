"""Утилиты клиента"""

from .serialization import (
    serialize_value,
    serialize_query_value,
    is_file_like,
)

__all__ = [
    "serialize_value",
    "serialize_query_value",
    "is_file_like",
]
