"""
Core views for the EMI planner.
"""

import logging

from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.tasks import ingest_loan_data, process_auto_debit_payments

logger = logging.getLogger(__name__)


def health_check(request):
    """
    GET /health/

    Simple health check endpoint for Docker and load balancer probes.
    Exempt from API key authentication.
    """
    return JsonResponse({'status': 'healthy'}, status=200)


class TriggerIngestionView(APIView):
    """
    POST /api/ingest-data

    Trigger background ingestion of loans from loan_data.xlsx.
    """

    def post(self, request):
        """Trigger data ingestion task."""
        loan_task = ingest_loan_data.delay()

        logger.info("Loan ingestion triggered: task=%s", loan_task.id)

        return Response(
            {
                'message': 'Loan ingestion task has been triggered.',
                'loan_task_id': loan_task.id,
            },
            status=status.HTTP_202_ACCEPTED,
        )


class TriggerPaymentProcessingView(APIView):
    """
    POST /api/process-payments

    Trigger background payment of due installments on auto-debit loans.
    """

    def post(self, request):
        task = process_auto_debit_payments.delay()

        logger.info("Auto-debit processing triggered: task=%s", task.id)

        return Response(
            {
                'message': 'Auto-debit processing task has been triggered.',
                'task_id': task.id,
            },
            status=status.HTTP_202_ACCEPTED,
        )
