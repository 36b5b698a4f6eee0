from typing import NoReturn

from fastapi import HTTPException


class AppError(Exception):
    """Domain error rendered as {"error": message, "code": code}."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationFailed(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"


class IllegalTransition(AppError):
    status_code = 409
    code = "ILLEGAL_TRANSITION"


def abort(status_code: int, code: str, message: str) -> NoReturn:
    raise HTTPException(status_code=status_code, detail={"code": code, "message": message})


def _auth_401(code: str, message: str) -> HTTPException:
    # keep WWW-Authenticate so Bearer clients recognise the challenge
    return HTTPException(
        status_code=401,
        detail={"code": code, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )
