"""
Error kinds surfaced by the storefront API.

Services and dependencies raise ``StoreError``; the handlers registered in
``storefront.main`` turn every one of them into the same JSON body:
``{"success": false, "error": <message>, "kind": <kind>}``.
"""
from enum import Enum

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    INVALID_SIGNATURE = "invalid_signature"
    VALIDATION_ERROR = "validation_error"
    CONFLICT = "conflict"
    UPSTREAM_GATEWAY_ERROR = "upstream_gateway_error"


STATUS_CODES = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INSUFFICIENT_STOCK: 400,
    ErrorKind.INVALID_SIGNATURE: 400,
    ErrorKind.VALIDATION_ERROR: 422,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UPSTREAM_GATEWAY_ERROR: 502,
}


class StoreError(Exception):
    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "kind": self.kind.value}


def error_response(exc: StoreError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind == ErrorKind.UNAUTHORIZED else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def store_error_handler(request: Request, exc: StoreError):
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    # First problem only; clients show a single toast.
    errors = exc.errors()
    if errors:
        first = errors[0]
        where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{where}: {first.get('msg')}" if where else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return error_response(StoreError(ErrorKind.VALIDATION_ERROR, message))
