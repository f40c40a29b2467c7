"""
Procedure errors

Every API procedure reports failures with one of a small set of codes so the
front end can decide between a toast, a redirect to login or an
access-denied screen without parsing messages.
"""

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

CODE_TO_STATUS = {
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "INTERNAL_SERVER_ERROR": 500,
}


class ProcedureError(Exception):
    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    @property
    def status_code(self) -> int:
        return CODE_TO_STATUS.get(self.code, 500)


class BadRequestError(ProcedureError):
    code = "BAD_REQUEST"


class UnauthorizedError(ProcedureError):
    code = "UNAUTHORIZED"


class ForbiddenError(ProcedureError):
    code = "FORBIDDEN"


class NotFoundError(ProcedureError):
    code = "NOT_FOUND"


class ConflictError(ProcedureError):
    code = "CONFLICT"


async def procedure_error_handler(request: Request, exc: ProcedureError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "message": exc.message},
    )
