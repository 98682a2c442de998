"""
Ledger error taxonomy and the DRF exception handler that renders it.

Services raise these errors; views let them propagate and the handler maps
each type to its HTTP status.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for all ledger errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "ledger_error"

    def __init__(self, message: str = "", code: str = None):
        super().__init__(message)
        self.message = message or self.__class__.__doc__
        if code:
            self.code = code


class ValidationError(LedgerError):
    """Malformed or contradictory input."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class NotFoundError(LedgerError):
    """Unknown order, item or catalog entry."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(LedgerError):
    """The request conflicts with the current state of the resource."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class TransientIntegrationError(LedgerError):
    """A collaborator could not be reached."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "integration_unavailable"


def ledger_exception_handler(exc, context):
    """
    Render LedgerError subclasses as ``{"error": code, "detail": message}``.
    Anything else falls through to DRF's default handler.
    """
    if not isinstance(exc, LedgerError):
        return exception_handler(exc, context)

    request = context.get("request")
    path = request.path if request is not None else ""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{exc.__class__.__name__} on {path}: {exc.message}")

    return Response({"error": exc.code, "detail": exc.message}, status=exc.status_code)
