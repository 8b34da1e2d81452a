"""
Loan serializers for the EMI planner.
"""

from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from apps.loans.models import Loan

# Purchase EMIs are shorter and cheaper than general loans
PURCHASE_MAX_INTEREST_RATE = Decimal('50')
PURCHASE_MAX_TENURE_MONTHS = 120


class LoanInputSerializer(serializers.Serializer):
    """Serializer for loan and purchase-EMI create/update requests."""

    lender = serializers.CharField(
        max_length=200,
        help_text="Bank, lender or store/vendor name.",
    )
    type = serializers.ChoiceField(
        choices=Loan.LoanType.choices,
        default=Loan.LoanType.PERSONAL,
    )
    principal_amount = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0.01'),
        help_text="Loan amount or purchase price.",
    )
    down_payment = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0'),
        default=Decimal('0.00'),
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
    start_date = serializers.DateField()
    payment_day = serializers.IntegerField(min_value=1, max_value=31, default=1)
    currency = serializers.CharField(min_length=3, max_length=3, required=False)
    auto_debit = serializers.BooleanField(default=False)
    reminder_days = serializers.IntegerField(min_value=0, max_value=30, default=3)
    item_name = serializers.CharField(
        max_length=200, required=False, allow_blank=True,
    )
    purchase_category = serializers.ChoiceField(
        choices=Loan.PurchaseCategory.choices,
        required=False,
        allow_blank=True,
    )
    item_condition = serializers.ChoiceField(
        choices=Loan.ItemCondition.choices,
        required=False,
        allow_blank=True,
    )
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_currency(self, value):
        return value.upper()

    def validate(self, attrs):
        """Cross-field rules, checked against the instance on partial updates."""
        def current(field, fallback=None):
            if field in attrs:
                return attrs[field]
            if self.instance is not None:
                return getattr(self.instance, field)
            return fallback

        loan_type = current('type', Loan.LoanType.PERSONAL)
        principal = current('principal_amount')
        down_payment = current('down_payment', Decimal('0'))

        if principal is not None and down_payment >= principal:
            raise serializers.ValidationError({
                'down_payment': 'Down payment must be less than the principal amount.'
            })

        if loan_type == Loan.LoanType.PURCHASE_EMI:
            errors = {}
            if not current('item_name', ''):
                errors['item_name'] = 'Item/Product name is required.'
            if current('interest_rate', Decimal('0')) > PURCHASE_MAX_INTEREST_RATE:
                errors['interest_rate'] = 'Interest rate cannot exceed 50%.'
            if current('tenure_months', 1) > PURCHASE_MAX_TENURE_MONTHS:
                errors['tenure_months'] = 'Tenure cannot exceed 120 months.'
            if errors:
                raise serializers.ValidationError(errors)

        if self.instance is None and 'currency' not in attrs:
            attrs['currency'] = settings.DEFAULT_CURRENCY

        return attrs


class LoanResponseSerializer(serializers.Serializer):
    """Serializer for loan detail and list responses."""

    loan_id = serializers.IntegerField(source='pk')
    lender = serializers.CharField()
    type = serializers.CharField()
    status = serializers.CharField()
    principal_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    down_payment = serializers.DecimalField(max_digits=15, decimal_places=2)
    outstanding_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    interest_rate = serializers.DecimalField(max_digits=5, decimal_places=2)
    emi_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    tenure_months = serializers.IntegerField()
    start_date = serializers.DateField()
    payment_day = serializers.IntegerField()
    next_due_date = serializers.DateField(allow_null=True)
    last_payment_date = serializers.DateField(allow_null=True)
    currency = serializers.CharField()
    auto_debit = serializers.BooleanField()
    reminder_days = serializers.IntegerField()
    item_name = serializers.CharField()
    purchase_category = serializers.CharField()
    item_condition = serializers.CharField()
    notes = serializers.CharField()
    installments_left = serializers.IntegerField()


class ScheduleEntrySerializer(serializers.Serializer):
    """Serializer for one EMI schedule entry."""

    installment_number = serializers.IntegerField()
    due_date = serializers.DateField()
    emi_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    principal_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    interest_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    outstanding_balance = serializers.DecimalField(max_digits=15, decimal_places=2)
    is_paid = serializers.BooleanField()
    payment_date = serializers.DateField(allow_null=True)
    actual_payment_amount = serializers.DecimalField(
        max_digits=15, decimal_places=2, allow_null=True,
    )
    late_fee_days = serializers.IntegerField()


class PayInstallmentSerializer(serializers.Serializer):
    """Serializer for installment payment request."""

    installment_number = serializers.IntegerField(
        min_value=1,
        required=False,
        help_text="Installment to pay; the earliest unpaid one if omitted.",
    )
    amount = serializers.DecimalField(
        max_digits=15,
        decimal_places=2,
        min_value=Decimal('0.01'),
        required=False,
        help_text="Amount paid; defaults to the scheduled EMI.",
    )
    payment_date = serializers.DateField(required=False)


class LoanOverviewSerializer(serializers.Serializer):
    """Serializer for the loan dashboard summary."""

    total_active_loans = serializers.IntegerField()
    total_outstanding_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_monthly_emi = serializers.DecimalField(max_digits=15, decimal_places=2)
    overdue_payments = serializers.IntegerField()
    overdue_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    next_payment_date = serializers.DateField(allow_null=True)
    next_payment_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_paid_this_month = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_pending_this_month = serializers.DecimalField(max_digits=15, decimal_places=2)
