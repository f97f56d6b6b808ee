from enum import Enum
from typing import Optional, Union, Any, Dict, List, Mapping, Tuple
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, field_validator


class ParameterLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    BODY = "body"


class OperationParameter(BaseModel):
    """Параметр операции из OpenAPI"""

    model_config = ConfigDict(frozen=True)

    name: str
    location: ParameterLocation
    required: bool = False
    schema_: Dict[str, Any] = {}

    @property
    def is_binary(self) -> bool:
        """Файловый параметр, отправляется как multipart"""
        return (
            self.schema_.get("format") == "binary"
            or self.schema_.get("type") == "file"
        )


class OperationDescriptor(BaseModel):
    """Описание одной операции API"""

    model_config = ConfigDict(frozen=True)

    operation_id: str
    verb: str
    path: str
    parameters: Tuple[OperationParameter, ...] = ()

    @field_validator("verb", mode="before")
    def verb_upper(cls, value):
        return str(value).upper()

    @field_validator("parameters", mode="before")
    def parameters_tuple(cls, value):
        if isinstance(value, list):
            return tuple(value)
        return value

    def by_location(self, location: ParameterLocation) -> List[OperationParameter]:
        return [p for p in self.parameters if p.location == location]

    @property
    def body_parameter(self) -> Optional[OperationParameter]:
        body = self.by_location(ParameterLocation.BODY)
        return body[0] if body else None


@dataclass
class MultipartBody:
    """
    Поля multipart формы; кодируются транспортом при каждой попытке.

    Значение поля - bytes, строка или callable без аргументов, который
    вызывается на каждой попытке и возвращает свежее содержимое.
    """

    fields: List[Tuple[str, Any]] = field(default_factory=list)
    filenames: Dict[str, str] = field(default_factory=dict)

    def add_field(self, name: str, value: Any, filename: Optional[str] = None) -> None:
        self.fields.append((name, value))
        if filename:
            self.filenames[name] = filename


@dataclass
class ResolvedRequest:
    url: str
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Union[bytes, MultipartBody, None] = None
    proxy: Optional[str] = None


@dataclass
class RawResponse:
    """Ответ транспорта: статус, заголовки и прочитанное тело"""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def content_type(self) -> str:
        return (self.header("Content-Type") or "").lower()

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass
class RetryAttemptState:
    attempt_index: int
    max_attempts: int

    @property
    def exhausted(self) -> bool:
        return self.attempt_index + 1 >= self.max_attempts


@dataclass
class AttemptOutcome:
    """Результат последней попытки: ответ или ошибка транспорта"""

    state: RetryAttemptState
    response: Optional[RawResponse] = None
    error: Optional[BaseException] = None
