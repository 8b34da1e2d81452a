"""
Loan views for the EMI planner.

Views are thin; all business logic is in the service layer.
"""

import logging

from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.exceptions import LoanNotFoundError
from apps.loans.serializers import (
    LoanInputSerializer,
    LoanOverviewSerializer,
    LoanResponseSerializer,
    PayInstallmentSerializer,
    ScheduleEntrySerializer,
)
from apps.loans.services import LoanService

logger = logging.getLogger(__name__)


def _get_loan_or_404(loan_id):
    loan = LoanService.get_loan(loan_id)
    if loan is None:
        raise LoanNotFoundError(detail=f"Loan with ID {loan_id} not found.")
    return loan


class LoanPagination(PageNumberPagination):
    """Pagination for the loan list."""
    page_size = 10
    page_size_query_param = 'page_size'
    max_page_size = 100


class LoanListCreateView(APIView):
    """
    GET  /api/loans
    POST /api/loans

    List loans (filter with ?status= and ?type=) or create a loan
    or purchase EMI together with its EMI schedule.
    """

    def get(self, request):
        """Handle listing loans."""
        loans = LoanService.list_loans(
            status=request.query_params.get('status'),
            loan_type=request.query_params.get('type'),
        )

        paginator = LoanPagination()
        page = paginator.paginate_queryset(loans, request, view=self)
        serializer = LoanResponseSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def post(self, request):
        """Handle loan creation."""
        serializer = LoanInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        loan = LoanService.create_loan(serializer.validated_data)

        return Response(
            LoanResponseSerializer(loan).data,
            status=status.HTTP_201_CREATED,
        )


class LoanDetailView(APIView):
    """
    GET    /api/loans/<loan_id>
    PATCH  /api/loans/<loan_id>
    DELETE /api/loans/<loan_id>
    """

    def get(self, request, loan_id):
        """Handle viewing a single loan."""
        loan = _get_loan_or_404(loan_id)
        return Response(LoanResponseSerializer(loan).data)

    def patch(self, request, loan_id):
        """Handle partial loan update; terms changes rebuild the schedule."""
        loan = _get_loan_or_404(loan_id)

        serializer = LoanInputSerializer(loan, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        loan = LoanService.update_loan(loan, serializer.validated_data)

        return Response(LoanResponseSerializer(loan).data)

    def delete(self, request, loan_id):
        """Handle loan deletion."""
        loan = _get_loan_or_404(loan_id)
        LoanService.delete_loan(loan)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LoanScheduleView(APIView):
    """
    GET /api/loans/<loan_id>/schedule

    Full EMI schedule of a loan, in installment order.
    """

    def get(self, request, loan_id):
        loan = _get_loan_or_404(loan_id)
        entries = LoanService.get_schedule(loan)

        return Response(
            {
                'loan_id': loan.pk,
                'emi_amount': str(loan.emi_amount),
                'schedule': ScheduleEntrySerializer(entries, many=True).data,
            },
            status=status.HTTP_200_OK,
        )


class PayInstallmentView(APIView):
    """
    POST /api/loans/<loan_id>/pay

    Record payment of an installment (the earliest unpaid by default).
    """

    def post(self, request, loan_id):
        """Handle installment payment."""
        loan = _get_loan_or_404(loan_id)

        serializer = PayInstallmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        entry = LoanService.pay_installment(
            loan_id=loan.pk,
            installment_number=serializer.validated_data.get('installment_number'),
            amount=serializer.validated_data.get('amount'),
            payment_date=serializer.validated_data.get('payment_date'),
        )
        loan.refresh_from_db()

        return Response(
            {
                'installment': ScheduleEntrySerializer(entry).data,
                'loan': LoanResponseSerializer(loan).data,
            },
            status=status.HTTP_200_OK,
        )


class LoanOverviewView(APIView):
    """
    GET /api/loans/overview

    Dashboard summary of active loans; ?currency= limits it to one currency.
    """

    def get(self, request):
        currency = request.query_params.get('currency')
        overview = LoanService.overview(
            currency=currency.upper() if currency else None,
        )
        return Response(LoanOverviewSerializer(overview).data)
