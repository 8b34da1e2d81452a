"""
Calculator views for the EMI planner.

Stateless previews; nothing is persisted.
"""

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.calculators.serializers import (
    EmiCalculatorSerializer,
    EmiResultSerializer,
    PurchaseEmiCalculatorSerializer,
)
from apps.core.utils import calculate_emi_details, format_currency

logger = logging.getLogger(__name__)

FORMATTED_FIELDS = (
    'financed_amount',
    'monthly_payment',
    'total_payment',
    'total_interest',
)


def _build_result(details, currency, include_breakdown):
    """Shape calculate_emi_details() output for the response serializer."""
    result = dict(details)
    if not include_breakdown:
        result.pop('breakdown')
    result['formatted'] = {
        field: format_currency(details[field], currency)
        for field in FORMATTED_FIELDS
    }
    return EmiResultSerializer(result).data


class EmiCalculatorView(APIView):
    """
    POST /api/calculators/emi

    Monthly installment, totals and optional month-by-month breakdown
    for a loan.
    """

    def post(self, request):
        """Handle EMI calculation."""
        serializer = EmiCalculatorSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        details = calculate_emi_details(
            data['principal'],
            data['interest_rate'],
            data['tenure_months'],
        )
        logger.debug(
            "EMI preview: principal=%s, rate=%s%%, tenure=%d -> emi=%s",
            data['principal'],
            data['interest_rate'],
            data['tenure_months'],
            details['monthly_payment'],
        )

        return Response(
            _build_result(
                details,
                data.get('currency', settings.DEFAULT_CURRENCY),
                data['include_breakdown'],
            ),
            status=status.HTTP_200_OK,
        )


class PurchaseEmiCalculatorView(APIView):
    """
    POST /api/calculators/purchase-emi

    EMI preview for a purchase after the down payment. A down payment
    that covers the purchase yields an all-zero preview.
    """

    def post(self, request):
        """Handle purchase EMI preview."""
        serializer = PurchaseEmiCalculatorSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        details = calculate_emi_details(
            data['purchase_amount'],
            data['interest_rate'],
            data['tenure_months'],
            down_payment=data['down_payment'],
        )

        return Response(
            _build_result(
                details,
                data.get('currency', settings.DEFAULT_CURRENCY),
                include_breakdown=False,
            ),
            status=status.HTTP_200_OK,
        )
