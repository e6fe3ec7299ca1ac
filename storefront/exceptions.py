from fastapi import Request
from fastapi.responses import JSONResponse
from typing import Callable, Optional


class APIException(Exception):
    """ Base class for all exceptions raised by the storefront services. """
    error = "error"
    default_detail = "Something went wrong"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFoundException(APIException):
    """ Exception is raised when a product, coupon, cart, cart item or order does not exist. """
    error = "not_found"
    default_detail = "Resource not found"


class InvalidStateException(APIException):
    """ Exception is raised when an operation is not allowed in the current state (empty cart, invalid coupon, processed order). """
    error = "invalid_state"
    default_detail = "Operation not allowed in the current state"


class InsufficientStockException(APIException):
    """ Exception is raised when the requested quantity exceeds available stock. """
    error = "insufficient_stock"
    default_detail = "Product has insufficient stock"


class UnauthorizedException(APIException):
    """ Exception is raised when a user acts on another user's order without being an admin. """
    error = "unauthorized"
    default_detail = "You are not authorized to perform this action"


class ConflictException(APIException):
    """ Exception is raised when creating a resource that already exists. """
    error = "conflict"
    default_detail = "Resource already exists"


class AuthenticationRequiredException(APIException):
    """ Exception is raised when the request carries no valid access token. """
    error = "authentication_required"
    default_detail = "Authentication required!"


def create_exception_handler(status_code: int) -> Callable[[Request, Exception], JSONResponse]:
    async def exception_handler(request: Request, exception: APIException):
        return JSONResponse(
            content={"detail": exception.detail, "error": exception.error},
            status_code=status_code
        )

    return exception_handler
