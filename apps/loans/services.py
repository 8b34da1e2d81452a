"""
Loan service layer.

Creates loans and purchase EMIs, keeps their EMI schedules in sync
with the loan terms, and records installment payments.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.db.models import Count, Q, Sum

from apps.core.exceptions import (
    InstallmentAlreadyPaidError,
    InstallmentNotFoundError,
    InvalidLoanError,
    LoanClosedError,
)
from apps.core.utils import (
    amortization_schedule,
    calculate_emi,
    installment_due_date,
    late_fee_days,
)
from apps.loans.models import EmiSchedule, Loan

logger = logging.getLogger(__name__)

# Changing any of these invalidates the EMI and the schedule
TERM_FIELDS = (
    'principal_amount',
    'down_payment',
    'interest_rate',
    'tenure_months',
    'start_date',
    'payment_day',
)


class ScheduleService:
    """Builds the persisted amortization schedule for a loan."""

    @staticmethod
    def generate(loan: Loan) -> list:
        """
        Replace the loan's schedule with a freshly computed one.

        Sets next_due_date to the first installment's due date.

        Args:
            loan: A saved Loan with at least one month of tenure.

        Returns:
            List of created EmiSchedule instances.
        """
        loan.schedules.all().delete()

        rows = amortization_schedule(
            loan.principal_amount,
            loan.interest_rate,
            loan.tenure_months,
            loan.down_payment,
        )
        entries = [
            EmiSchedule(
                loan=loan,
                installment_number=row['month'],
                due_date=installment_due_date(
                    loan.start_date, row['month'], loan.payment_day,
                ),
                emi_amount=row['emi'],
                principal_amount=row['principal'],
                interest_amount=row['interest'],
                outstanding_balance=row['balance'],
            )
            for row in rows
        ]
        created = EmiSchedule.objects.bulk_create(entries)

        loan.next_due_date = entries[0].due_date if entries else None
        loan.save(update_fields=['next_due_date', 'updated_at'])

        logger.debug(
            "Loan #%d: generated %d schedule entries", loan.pk, len(created)
        )
        return created


class LoanService:
    """Service for loan creation, updates and repayment."""

    @staticmethod
    def _apply_terms(loan: Loan) -> None:
        """Recompute EMI and outstanding amount from the loan terms."""
        financed = loan.financed_amount
        if financed <= 0:
            raise InvalidLoanError(
                detail='Down payment covers the full amount; nothing to finance.'
            )
        loan.emi_amount = calculate_emi(
            financed, loan.interest_rate, loan.tenure_months,
        )
        loan.outstanding_amount = financed

    @classmethod
    @transaction.atomic
    def create_loan(cls, validated_data: dict) -> Loan:
        """
        Create a loan and its full EMI schedule.

        Args:
            validated_data: Dict of Loan field values from the serializer.

        Returns:
            The newly created Loan instance.

        Raises:
            InvalidLoanError: If the down payment leaves nothing to finance.
        """
        loan = Loan(**validated_data)
        cls._apply_terms(loan)
        loan.save()

        ScheduleService.generate(loan)

        logger.info(
            "Loan #%d created: lender=%s, type=%s, financed=%s, rate=%s%%, "
            "tenure=%d, emi=%s",
            loan.pk,
            loan.lender,
            loan.type,
            loan.outstanding_amount,
            loan.interest_rate,
            loan.tenure_months,
            loan.emi_amount,
        )
        return loan

    @classmethod
    @transaction.atomic
    def update_loan(cls, loan: Loan, validated_data: dict) -> Loan:
        """
        Update a loan, recomputing EMI and schedule when its terms change.

        Terms cannot be changed once any installment has been paid.

        Raises:
            InvalidLoanError: If terms change on a loan with payments, or
                the new terms leave nothing to finance.
        """
        terms_changed = any(
            field in validated_data
            and validated_data[field] != getattr(loan, field)
            for field in TERM_FIELDS
        )

        if terms_changed and loan.schedules.filter(is_paid=True).exists():
            raise InvalidLoanError(
                detail='Loan terms cannot change after installments are paid.'
            )

        for field, value in validated_data.items():
            setattr(loan, field, value)

        if terms_changed:
            cls._apply_terms(loan)

        loan.save()

        if terms_changed:
            ScheduleService.generate(loan)
            logger.info(
                "Loan #%d terms updated: emi=%s, tenure=%d",
                loan.pk,
                loan.emi_amount,
                loan.tenure_months,
            )

        return loan

    @staticmethod
    def get_loan(loan_id: int) -> Optional[Loan]:
        """
        Retrieve a single loan by ID.

        Returns:
            Loan instance or None.
        """
        try:
            return Loan.objects.get(pk=loan_id)
        except Loan.DoesNotExist:
            return None

    @staticmethod
    def list_loans(status: Optional[str] = None, loan_type: Optional[str] = None):
        """Loans, newest first, optionally filtered by status and type."""
        loans = Loan.objects.annotate(
            unpaid_installments=Count(
                'schedules', filter=Q(schedules__is_paid=False),
            ),
        )
        if status:
            loans = loans.filter(status=status)
        if loan_type:
            loans = loans.filter(type=loan_type)
        return loans.order_by('-created_at', '-pk')

    @staticmethod
    def get_schedule(loan: Loan):
        return loan.schedules.order_by('installment_number')

    @staticmethod
    def delete_loan(loan: Loan) -> None:
        loan_id = loan.pk
        loan.delete()
        logger.info("Loan #%d deleted", loan_id)

    @classmethod
    @transaction.atomic
    def pay_installment(
        cls,
        loan_id: int,
        installment_number: Optional[int] = None,
        amount: Optional[Decimal] = None,
        payment_date: Optional[date] = None,
    ) -> EmiSchedule:
        """
        Mark an installment as paid and roll the loan forward.

        Pays the given installment, or the earliest unpaid one. The loan's
        outstanding amount drops by the installment's principal share and
        the loan closes once every installment is paid.

        Args:
            loan_id: The loan's primary key.
            installment_number: Installment to pay; earliest unpaid if None.
            amount: Amount actually paid; defaults to the scheduled EMI.
            payment_date: Defaults to today.

        Returns:
            The updated EmiSchedule entry.

        Raises:
            LoanClosedError: If the loan is closed or fully paid.
            InstallmentNotFoundError: If the installment does not exist.
            InstallmentAlreadyPaidError: If the installment is already paid.
        """
        loan = Loan.objects.select_for_update().get(pk=loan_id)

        if loan.status == Loan.Status.CLOSED:
            raise LoanClosedError(detail=f"Loan #{loan.pk} is already closed.")

        unpaid = loan.schedules.select_for_update().filter(
            is_paid=False,
        ).order_by('installment_number')

        if installment_number is None:
            entry = unpaid.first()
            if entry is None:
                raise LoanClosedError(
                    detail=f"Loan #{loan.pk} has no unpaid installments."
                )
        else:
            try:
                entry = loan.schedules.get(installment_number=installment_number)
            except EmiSchedule.DoesNotExist:
                raise InstallmentNotFoundError(
                    detail=(
                        f"Installment {installment_number} not found "
                        f"for loan #{loan.pk}."
                    )
                )
            if entry.is_paid:
                raise InstallmentAlreadyPaidError(
                    detail=(
                        f"Installment {installment_number} of loan #{loan.pk} "
                        f"was paid on {entry.payment_date}."
                    )
                )

        payment_date = payment_date or date.today()

        entry.is_paid = True
        entry.payment_date = payment_date
        entry.actual_payment_amount = (
            amount if amount is not None else entry.emi_amount
        )
        entry.late_fee_days = late_fee_days(entry.due_date, payment_date)
        entry.save()

        loan.outstanding_amount = max(
            Decimal('0.00'), loan.outstanding_amount - entry.principal_amount,
        )
        loan.last_payment_date = payment_date

        next_entry = unpaid.exclude(pk=entry.pk).first()
        if next_entry is None:
            loan.status = Loan.Status.CLOSED
            loan.outstanding_amount = Decimal('0.00')
            loan.next_due_date = None
        else:
            loan.next_due_date = next_entry.due_date
        loan.save()

        logger.info(
            "Loan #%d: installment %d paid on %s (amount=%s, late_days=%d, "
            "outstanding=%s, status=%s)",
            loan.pk,
            entry.installment_number,
            payment_date,
            entry.actual_payment_amount,
            entry.late_fee_days,
            loan.outstanding_amount,
            loan.status,
        )
        return entry

    @classmethod
    def process_due_auto_debits(cls, today: Optional[date] = None) -> dict:
        """
        Pay every due installment of active auto-debit loans.

        Returns:
            Dict with the number of loans touched and installments paid.
        """
        today = today or date.today()
        loan_ids = EmiSchedule.objects.filter(
            loan__status=Loan.Status.ACTIVE,
            loan__auto_debit=True,
            is_paid=False,
            due_date__lte=today,
        ).values_list('loan_id', flat=True).distinct()

        loans_processed = 0
        installments_paid = 0

        for loan_id in list(loan_ids):
            due_numbers = list(
                EmiSchedule.objects.filter(
                    loan_id=loan_id, is_paid=False, due_date__lte=today,
                ).order_by('installment_number').values_list(
                    'installment_number', flat=True,
                )
            )
            for number in due_numbers:
                cls.pay_installment(
                    loan_id, installment_number=number, payment_date=today,
                )
                installments_paid += 1
            loans_processed += 1

        return {
            'loans_processed': loans_processed,
            'installments_paid': installments_paid,
        }

    @staticmethod
    def overdue_loans(grace_days: int = 0, today: Optional[date] = None):
        """Active loans with an unpaid installment past due beyond the grace period."""
        today = today or date.today()
        cutoff = today - timedelta(days=grace_days)
        return Loan.objects.filter(
            status=Loan.Status.ACTIVE,
            schedules__is_paid=False,
            schedules__due_date__lt=cutoff,
        ).distinct()

    @staticmethod
    def overview(currency: Optional[str] = None, today: Optional[date] = None) -> dict:
        """
        Dashboard summary of active loans and this month's installments.

        Args:
            currency: Only loans in this currency; all loans if None.
            today: Reference date; defaults to today.

        Returns:
            Dict of counts and Decimal totals. Amounts are 0.00 when
            there is nothing to sum.
        """
        today = today or date.today()
        zero = Decimal('0.00')

        loans = Loan.objects.all()
        if currency:
            loans = loans.filter(currency=currency)
        active = loans.filter(status=Loan.Status.ACTIVE)

        totals = active.aggregate(
            total_active_loans=Count('pk'),
            total_outstanding_amount=Sum('outstanding_amount'),
            total_monthly_emi=Sum('emi_amount'),
        )

        unpaid = EmiSchedule.objects.filter(loan__in=active, is_paid=False)
        overdue = unpaid.filter(due_date__lt=today).aggregate(
            overdue_payments=Count('pk'),
            overdue_amount=Sum('emi_amount'),
        )

        next_entry = unpaid.filter(due_date__gte=today).order_by(
            'due_date', 'installment_number',
        ).first()
        next_payment_date = next_entry.due_date if next_entry else None
        next_payment_amount = zero
        if next_payment_date is not None:
            next_payment_amount = unpaid.filter(
                due_date=next_payment_date,
            ).aggregate(amount=Sum('emi_amount'))['amount']

        paid_this_month = EmiSchedule.objects.filter(
            loan__in=loans,
            is_paid=True,
            payment_date__year=today.year,
            payment_date__month=today.month,
        ).aggregate(amount=Sum('actual_payment_amount'))['amount']
        pending_this_month = unpaid.filter(
            due_date__year=today.year,
            due_date__month=today.month,
        ).aggregate(amount=Sum('emi_amount'))['amount']

        return {
            'total_active_loans': totals['total_active_loans'],
            'total_outstanding_amount': totals['total_outstanding_amount'] or zero,
            'total_monthly_emi': totals['total_monthly_emi'] or zero,
            'overdue_payments': overdue['overdue_payments'],
            'overdue_amount': overdue['overdue_amount'] or zero,
            'next_payment_date': next_payment_date,
            'next_payment_amount': next_payment_amount or zero,
            'total_paid_this_month': paid_this_month or zero,
            'total_pending_this_month': pending_this_month or zero,
        }
