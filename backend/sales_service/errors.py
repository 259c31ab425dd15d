"""
Error taxonomy shared by services, adapters and routes.

Services raise these; routes translate them to ``HTTPException`` using the
``status_code`` each class carries. Catch by type, never by message.
"""


class SalesServiceException(Exception):
    status_code = 500
    code = "internal"


class InvalidArgument(SalesServiceException):
    """Missing or malformed field, unknown product, over-quantity return line."""

    status_code = 400
    code = "invalid_argument"


class Unauthenticated(SalesServiceException):
    """Caller metadata missing, branch outside the caller's scope, or a row of another tenant."""

    status_code = 401
    code = "unauthenticated"


class PermissionDenied(SalesServiceException):
    """Edit refused because the order is locked by a return or a delivery."""

    status_code = 403
    code = "permission_denied"


class NotFound(SalesServiceException):
    status_code = 404
    code = "not_found"


class AlreadyExists(SalesServiceException):
    status_code = 409
    code = "already_exists"


class FailedPrecondition(SalesServiceException):
    """Order has no outstanding quantity left, or fulfillment already started."""

    status_code = 412
    code = "failed_precondition"


class Cancelled(SalesServiceException):
    status_code = 499
    code = "cancelled"


class Internal(SalesServiceException):
    status_code = 500
    code = "internal"
