"""
Calculator serializers for the EMI planner.

Request bounds follow the loan and purchase-EMI forms that call these
endpoints for their live previews.
"""

from decimal import Decimal

from rest_framework import serializers


class EmiCalculatorSerializer(serializers.Serializer):
    """Serializer for the loan EMI calculator request."""

    principal = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0.01'),
        help_text="Loan principal amount.",
    )
    interest_rate = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal('0'),
        max_value=Decimal('100'),
        help_text="Annual interest rate (%).",
    )
    tenure_months = serializers.IntegerField(
        min_value=1,
        max_value=480,
        help_text="Loan tenure in months.",
    )
    include_breakdown = serializers.BooleanField(default=False)
    currency = serializers.CharField(min_length=3, max_length=3, required=False)

    def validate_currency(self, value):
        return value.upper()


class PurchaseEmiCalculatorSerializer(serializers.Serializer):
    """Serializer for the purchase EMI preview request."""

    purchase_amount = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('1'),
        help_text="Purchase price of the item.",
    )
    down_payment = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0'),
        default=Decimal('0.00'),
        help_text="Amount paid upfront.",
    )
    interest_rate = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal('0'),
        max_value=Decimal('50'),
        help_text="Annual interest rate (%).",
    )
    tenure_months = serializers.IntegerField(
        min_value=1,
        max_value=120,
        help_text="Number of monthly installments.",
    )
    currency = serializers.CharField(min_length=3, max_length=3, required=False)

    def validate_currency(self, value):
        return value.upper()


class BreakdownRowSerializer(serializers.Serializer):
    month = serializers.IntegerField()
    emi = serializers.DecimalField(max_digits=15, decimal_places=2)
    principal = serializers.DecimalField(max_digits=15, decimal_places=2)
    interest = serializers.DecimalField(max_digits=15, decimal_places=2)
    balance = serializers.DecimalField(max_digits=15, decimal_places=2)


class EmiResultSerializer(serializers.Serializer):
    """Serializer for EMI calculator responses."""

    financed_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    monthly_payment = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_payment = serializers.DecimalField(max_digits=17, decimal_places=2)
    total_interest = serializers.DecimalField(max_digits=17, decimal_places=2)
    principal_percentage = serializers.DecimalField(max_digits=5, decimal_places=2)
    interest_percentage = serializers.DecimalField(max_digits=5, decimal_places=2)
    breakdown = BreakdownRowSerializer(many=True, required=False)
    formatted = serializers.DictField(child=serializers.CharField(), required=False)
