import json
import logging
import os
from types import MappingProxyType
from typing import Dict, Any, Iterator, List, Mapping, Optional

import httpx
import jsonref

from ...exceptions import RegistryError, UnknownOperationError
from ..types.models import OperationDescriptor, OperationParameter, ParameterLocation

logger = logging.getLogger(__name__)

HTTP_VERBS = ("get", "put", "post", "delete", "options", "head", "patch")

# Swagger 2 formData параметры собираются в body
LOCATION_ALIASES = {
    "path": ParameterLocation.PATH,
    "query": ParameterLocation.QUERY,
    "header": ParameterLocation.HEADER,
    "body": ParameterLocation.BODY,
    "formData": ParameterLocation.BODY,
}


class OperationRegistry:
    """Неизменяемый реестр операций, ключ - operationId"""

    def __init__(self, operations: List[OperationDescriptor]):
        by_id: Dict[str, OperationDescriptor] = {}
        for operation in operations:
            if operation.operation_id in by_id:
                raise RegistryError(
                    f"Duplicate operationId: {operation.operation_id}"
                )
            by_id[operation.operation_id] = operation
        self._operations = MappingProxyType(by_id)

    def __iter__(self) -> Iterator[OperationDescriptor]:
        return iter(self._operations.values())

    def __len__(self) -> int:
        return len(self._operations)

    def __contains__(self, operation_id: str) -> bool:
        return operation_id in self._operations

    def get(self, operation_id: str) -> OperationDescriptor:
        try:
            return self._operations[operation_id]
        except KeyError:
            raise UnknownOperationError(operation_id) from None

    @property
    def operations(self) -> Mapping[str, OperationDescriptor]:
        return self._operations

    @classmethod
    def from_openapi(cls, openapi_dict: Dict[str, Any]) -> "OperationRegistry":
        """Сборка реестра из OpenAPI 3 / Swagger 2 документа"""
        return cls(OpenApiParser(resolve_refs(openapi_dict)).parse())

    @classmethod
    def from_source(cls, source: str) -> "OperationRegistry":
        """Загрузка из локального JSON файла или по URL"""
        return cls(OpenApiParser(load_openapi(source)).parse())


def load_openapi(source: str) -> Dict[str, Any]:
    """Загрузка спецификации с разрешением $ref"""
    if source.startswith(("http://", "https://")):
        logger.debug(f"Fetching OpenAPI document from {source}")
        response = httpx.get(url=source, follow_redirects=True)
        response.raise_for_status()
        openapi_spec = response.json()
    elif os.path.exists(source):
        with open(source, "r", encoding="utf-8") as f:
            openapi_spec = json.load(f)
    else:
        raise RegistryError(f"OpenAPI document not found: {source}")

    return resolve_refs(openapi_spec)


def resolve_refs(openapi_spec: Dict[str, Any]) -> Dict[str, Any]:
    return dict(jsonref.loads(json.dumps(openapi_spec)))


class OpenApiParser:
    """Парсер OpenAPI документа в список OperationDescriptor"""

    def __init__(self, openapi_dict: Dict[str, Any]):
        self.openapi_dict = openapi_dict

    def parse(self) -> List[OperationDescriptor]:
        operations = []
        for path, path_item in self.openapi_dict.get("paths", {}).items():
            shared = path_item.get("parameters", [])
            for verb in HTTP_VERBS:
                operation = path_item.get(verb)
                if operation is None:
                    continue
                operations.append(self._parse_operation(path, verb, operation, shared))
        return operations

    def _parse_operation(
        self,
        path: str,
        verb: str,
        operation: Dict[str, Any],
        shared: List[Dict[str, Any]],
    ) -> OperationDescriptor:
        operation_id = operation.get("operationId")
        if not operation_id:
            raise RegistryError(f"Operation {verb.upper()} {path} has no operationId")

        # Параметры операции переопределяют параметры пути с тем же (name, in)
        merged: Dict[tuple, Dict[str, Any]] = {}
        for raw in list(shared) + list(operation.get("parameters", [])):
            merged[(raw.get("name"), raw.get("in"))] = raw

        parameters = [
            self._parse_parameter(operation_id, raw) for raw in merged.values()
        ]

        request_body = operation.get("requestBody")
        if request_body is not None:
            parameters.append(self._parse_request_body(request_body))

        return OperationDescriptor(
            operation_id=operation_id,
            verb=verb,
            path=path,
            parameters=parameters,
        )

    @staticmethod
    def _parse_parameter(operation_id: str, raw: Dict[str, Any]) -> OperationParameter:
        location = LOCATION_ALIASES.get(raw.get("in"))
        if location is None:
            raise RegistryError(
                f"{operation_id}: unsupported location '{raw.get('in')}' "
                f"for parameter '{raw.get('name')}'"
            )

        schema = dict(raw.get("schema") or {})
        # Swagger 2 хранит тип прямо в параметре
        if "type" in raw and "type" not in schema:
            schema["type"] = raw["type"]
        if "format" in raw and "format" not in schema:
            schema["format"] = raw["format"]

        return OperationParameter(
            name=raw["name"],
            location=location,
            # path параметры всегда обязательны
            required=bool(raw.get("required")) or location == ParameterLocation.PATH,
            schema_=schema,
        )

    @staticmethod
    def _parse_request_body(request_body: Dict[str, Any]) -> OperationParameter:
        content = request_body.get("content", {})
        schema: Optional[Dict[str, Any]] = None
        for content_type in (
            "application/json",
            "multipart/form-data",
            "application/octet-stream",
        ):
            if content_type in content:
                schema = dict(content[content_type].get("schema") or {})
                if content_type != "application/json":
                    schema.setdefault("format", "binary")
                break
        if schema is None and content:
            schema = dict(next(iter(content.values())).get("schema") or {})

        return OperationParameter(
            name="body",
            location=ParameterLocation.BODY,
            required=bool(request_body.get("required")),
            schema_=schema or {},
        )
