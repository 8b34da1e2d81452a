"""
Loan and EMI schedule models for the EMI planner.
"""

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Loan(models.Model):
    """
    A loan or purchase EMI repaid in equal monthly installments.

    Purchase EMIs are loans of type PURCHASE_EMI with the item details
    filled in and an optional down payment.
    """

    class LoanType(models.TextChoices):
        PERSONAL = 'personal', 'Personal'
        HOME = 'home', 'Home'
        CAR = 'car', 'Car'
        EDUCATION = 'education', 'Education'
        BUSINESS = 'business', 'Business'
        PURCHASE_EMI = 'purchase_emi', 'Purchase EMI'
        CREDIT_CARD = 'credit_card', 'Credit card'
        OTHER = 'other', 'Other'

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        CLOSED = 'closed', 'Closed'
        DEFAULTED = 'defaulted', 'Defaulted'

    class PurchaseCategory(models.TextChoices):
        ELECTRONICS = 'electronics', 'Electronics'
        FURNITURE = 'furniture', 'Furniture'
        APPLIANCES = 'appliances', 'Appliances'
        JEWELRY = 'jewelry', 'Jewelry'
        GADGETS = 'gadgets', 'Gadgets'
        CLOTHING = 'clothing', 'Clothing'
        SPORTS = 'sports', 'Sports'
        TRAVEL = 'travel', 'Travel'
        OTHER = 'other', 'Other'

    class ItemCondition(models.TextChoices):
        NEW = 'new', 'New'
        REFURBISHED = 'refurbished', 'Refurbished'
        USED = 'used', 'Used'

    lender = models.CharField(
        max_length=200,
        help_text="Bank, lender or store/vendor name."
    )
    type = models.CharField(
        max_length=20,
        choices=LoanType.choices,
        default=LoanType.PERSONAL,
        db_index=True,
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    principal_amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Loan amount or purchase price.",
    )
    down_payment = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Amount paid upfront (purchase EMIs).",
    )
    outstanding_amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Principal still to be repaid.",
    )
    interest_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
        help_text="Annual interest rate (percentage).",
    )
    emi_amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Monthly installment (reducing-balance amortization).",
    )
    tenure_months = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Number of monthly installments."
    )
    start_date = models.DateField()
    payment_day = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(31)],
        help_text="Day of month installments fall due."
    )
    next_due_date = models.DateField(null=True, blank=True)
    last_payment_date = models.DateField(null=True, blank=True)
    currency = models.CharField(max_length=3, default='BDT')
    auto_debit = models.BooleanField(default=False, db_index=True)
    reminder_days = models.PositiveSmallIntegerField(
        default=3,
        validators=[MaxValueValidator(30)],
    )

    item_name = models.CharField(max_length=200, blank=True, default='')
    purchase_category = models.CharField(
        max_length=20,
        choices=PurchaseCategory.choices,
        blank=True,
        default='',
    )
    item_condition = models.CharField(
        max_length=20,
        choices=ItemCondition.choices,
        blank=True,
        default='',
    )
    notes = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'loans'
        ordering = ['-created_at']
        indexes = [
            models.Index(
                fields=['status', 'auto_debit'],
                name='idx_loan_status_autodebit'
            ),
        ]

    def __str__(self):
        return f"{self.lender} - {self.get_type_display()} Loan"

    @property
    def financed_amount(self):
        """Principal minus down payment, never negative."""
        return max(Decimal('0.00'), self.principal_amount - self.down_payment)

    @property
    def installments_left(self):
        # list_loans annotates the count
        if hasattr(self, 'unpaid_installments'):
            return self.unpaid_installments
        return self.schedules.filter(is_paid=False).count()


class EmiSchedule(models.Model):
    """One installment of a loan's amortization schedule."""

    loan = models.ForeignKey(
        Loan,
        on_delete=models.CASCADE,
        related_name='schedules',
    )
    installment_number = models.PositiveIntegerField()
    due_date = models.DateField(db_index=True)
    emi_amount = models.DecimalField(max_digits=15, decimal_places=2)
    principal_amount = models.DecimalField(max_digits=15, decimal_places=2)
    interest_amount = models.DecimalField(max_digits=15, decimal_places=2)
    outstanding_balance = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        help_text="Balance left after this installment.",
    )
    is_paid = models.BooleanField(default=False, db_index=True)
    payment_date = models.DateField(null=True, blank=True)
    actual_payment_amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        null=True,
        blank=True,
    )
    late_fee_days = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'emi_schedules'
        ordering = ['loan', 'installment_number']
        constraints = [
            models.UniqueConstraint(
                fields=['loan', 'installment_number'],
                name='uniq_schedule_installment',
            ),
        ]

    def __str__(self):
        return (
            f"Loan #{self.loan_id} installment {self.installment_number} "
            f"due {self.due_date}"
        )
