"""
Custom exceptions and DRF exception handler for the EMI planner.
"""

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class LoanNotFoundError(APIException):
    """Raised when a loan does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Loan not found.'
    default_code = 'loan_not_found'


class InvalidLoanError(APIException):
    """Raised when loan terms leave nothing to amortize or cannot be changed."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid loan terms.'
    default_code = 'invalid_loan'


class LoanClosedError(APIException):
    """Raised when a payment is attempted on a closed loan."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Loan is already closed.'
    default_code = 'loan_closed'


class InstallmentNotFoundError(APIException):
    """Raised when a schedule entry does not exist for the loan."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Installment not found.'
    default_code = 'installment_not_found'


class InstallmentAlreadyPaidError(APIException):
    """Raised when an installment has already been paid."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Installment already paid.'
    default_code = 'installment_already_paid'


class DataIngestionError(Exception):
    """Raised when data ingestion fails."""

    pass


def custom_exception_handler(exc, context):
    """
    Custom DRF exception handler that returns consistent error responses.

    Handles all DRF exceptions and adds logging for server errors.
    """
    response = exception_handler(exc, context)

    if response is not None:
        error_data = {
            'error': True,
            'status_code': response.status_code,
            'detail': response.data,
        }
        response.data = error_data
    else:
        # Unhandled exceptions: log and return 500
        logger.exception(
            "Unhandled exception in %s",
            context.get('view', 'unknown'),
            exc_info=exc,
        )
        response = Response(
            {
                'error': True,
                'status_code': 500,
                'detail': 'An unexpected error occurred. Please try again later.',
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response
