"""
Error taxonomy shared by every service.

Services raise exactly one `ServiceError`, tagged with an `ErrorKind`.
Translating a kind into an HTTP status is a pure function kept at the bottom of
this module, so the transport boundary never inspects messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse


class ErrorKind(str, Enum):
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    INVALID_PAGINATION = "INVALID_PAGINATION"
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
    ACCESS_DENIED = "ACCESS_DENIED"
    RELATED_ENTITY_MISSING = "RELATED_ENTITY_MISSING"
    ENTITY_NOT_UPDATED = "ENTITY_NOT_UPDATED"
    ENTITY_NOT_DELETED = "ENTITY_NOT_DELETED"
    DUPLICATE_KEY = "DUPLICATE_KEY"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"


DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_IDENTIFIER: "Invalid ID",
    ErrorKind.INVALID_PAGINATION: "Pagination parameters must be positive integers.",
    ErrorKind.ENTITY_NOT_FOUND: "Entity Not Found",
    ErrorKind.ACCESS_DENIED: "Access Denied",
    ErrorKind.RELATED_ENTITY_MISSING: "The provided related entity is not exists",
    ErrorKind.ENTITY_NOT_UPDATED: "Entity Not Updated",
    ErrorKind.ENTITY_NOT_DELETED: "Entity Not Deleted",
    ErrorKind.DUPLICATE_KEY: "The provided fields are already in use.",
    ErrorKind.INVALID_CREDENTIALS: "Invalid email/username or password.",
}


class ServiceError(RuntimeError):
    def __init__(self, kind: ErrorKind, message: str | None = None, **payload: Any) -> None:
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        self.payload = payload
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"ServiceError({self.kind.value}, {self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, **self.payload}


def _field_label(field: str) -> str:
    # list_id -> listID
    head, *rest = field.split("_")
    return head + "".join("ID" if part == "id" else part.title() for part in rest)


def related_missing(field: str, value: str | None = None) -> ServiceError:
    return ServiceError(
        ErrorKind.RELATED_ENTITY_MISSING,
        f"The provided {_field_label(field)} is not exists",
        field=field,
        value=value,
    )


def duplicate_key(fields: list[str]) -> ServiceError:
    return ServiceError(
        ErrorKind.DUPLICATE_KEY,
        f"The fields [{','.join(fields)}] are already in use.",
        fields=fields,
    )


_HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_IDENTIFIER: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_PAGINATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ENTITY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.RELATED_ENTITY_MISSING: 422,
    ErrorKind.ENTITY_NOT_UPDATED: 422,
    ErrorKind.ENTITY_NOT_DELETED: 422,
    ErrorKind.DUPLICATE_KEY: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
}


def http_status(kind: ErrorKind) -> int:
    return _HTTP_STATUS[kind]


def to_http_exception(error: ServiceError) -> HTTPException:
    return HTTPException(status_code=http_status(error.kind), detail=error.to_dict())


def install_error_handler(app: FastAPI) -> None:
    """
    Render every `ServiceError` as `{"error": {...}}` with the mapped status.
    """

    @app.exception_handler(ServiceError)
    async def _service_error_handler(_: Request, exc: ServiceError) -> JSONResponse:
        return JSONResponse(status_code=http_status(exc.kind), content={"error": exc.to_dict()})
