from fastapi import HTTPException, Request, status
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.responses import JSONResponse


class APIError(HTTPException):
    """
    HTTPException carrying an optional machine-readable code.
    Rendered as {"error": detail, "code": code}.
    """

    def __init__(self, status_code: int, error: str, code: str | None = None, headers: dict | None = None):
        super().__init__(status_code=status_code, detail=error, headers=headers)
        self.code = code


class Unauthorized(APIError):
    def __init__(self, error: str = "Invalid or expired token"):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            error,
            headers={"WWW-Authenticate": "Bearer"},
        )


class SessionInvalidated(APIError):
    def __init__(self):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            "Session invalidated",
            code="SESSION_INVALIDATED",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    body = {"error": exc.detail}
    code = getattr(exc, "code", None)
    if code:
        body["code"] = code
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))
