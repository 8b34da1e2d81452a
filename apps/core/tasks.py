"""
Celery tasks for loan ingestion and scheduled repayment processing.

Reads loan_data.xlsx using pandas and upserts loans with their EMI
schedules; pays due installments of auto-debit loans.
"""

import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path

import pandas as pd
from celery import shared_task
from django.conf import settings
from django.db import IntegrityError, transaction

from apps.core.exceptions import DataIngestionError
from apps.core.utils import calculate_emi

logger = logging.getLogger(__name__)

REQUIRED_LOAN_COLUMNS = (
    'loan_id',
    'lender',
    'principal_amount',
    'interest_rate',
    'tenure_months',
    'start_date',
)

TRUTHY_VALUES = ('true', '1', 'yes', 'y')

# Alternative headers seen in exported sheets
COLUMN_ALIASES = {
    'loan_amount': 'principal_amount',
    'amount': 'principal_amount',
    'tenure': 'tenure_months',
    'monthly_payment': 'emi_amount',
    'monthly_repayment': 'emi_amount',
    'emi': 'emi_amount',
    'bank': 'lender',
}


def _cell(row, column, default=None):
    value = row.get(column, default)
    if value is None or pd.isna(value):
        return default
    return value


def _flag(value):
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_VALUES
    return bool(value)


def _normalize_columns(df):
    columns = [str(col).strip().lower().replace(' ', '_') for col in df.columns]
    df.columns = [COLUMN_ALIASES.get(col, col) for col in columns]

    missing = [col for col in REQUIRED_LOAN_COLUMNS if col not in df.columns]
    if missing:
        raise DataIngestionError(
            f"loan_data.xlsx is missing columns: {', '.join(missing)}"
        )
    return df


@shared_task(
    bind=True,
    name='core.ingest_loan_data',
    max_retries=3,
    default_retry_delay=10,
)
def ingest_loan_data(self):
    """
    Ingest loans from loan_data.xlsx.

    Rows are upserted by loan_id. The EMI is computed when the sheet
    does not provide one, and each loan's schedule is regenerated.

    This task is idempotent; safe to run multiple times.
    """
    from apps.loans.models import Loan
    from apps.loans.services import ScheduleService

    file_path = Path(settings.DATA_DIR) / 'loan_data.xlsx'

    if not file_path.exists():
        logger.error("Loan data file not found: %s", file_path)
        return {'status': 'error', 'message': f'File not found: {file_path}'}

    try:
        logger.info("Starting loan data ingestion from %s", file_path)

        df = _normalize_columns(pd.read_excel(file_path))
        logger.info("Read %d rows from loan_data.xlsx", len(df))
    except DataIngestionError as exc:
        logger.error("Loan data ingestion aborted: %s", exc)
        return {'status': 'error', 'message': str(exc)}
    except Exception as exc:
        logger.exception("Loan data ingestion failed")
        raise self.retry(exc=exc)

    created_count = 0
    updated_count = 0
    error_count = 0

    for index, row in df.iterrows():
        try:
            loan_id = _cell(row, 'loan_id')
            if loan_id is None:
                logger.warning("Row %d: missing loan_id, skipping", index)
                error_count += 1
                continue

            start_date = pd.to_datetime(_cell(row, 'start_date'), errors='coerce')
            if pd.isna(start_date):
                logger.warning("Row %d: invalid start_date, skipping", index)
                error_count += 1
                continue

            principal = Decimal(str(_cell(row, 'principal_amount', 0)))
            down_payment = Decimal(str(_cell(row, 'down_payment', 0)))
            interest_rate = Decimal(str(_cell(row, 'interest_rate', 0)))
            tenure = int(_cell(row, 'tenure_months', 0))

            if principal - down_payment <= 0 or tenure < 1:
                logger.warning(
                    "Row %d: nothing to amortize (principal=%s, down=%s, "
                    "tenure=%d), skipping",
                    index,
                    principal,
                    down_payment,
                    tenure,
                )
                error_count += 1
                continue

            payment_day = int(_cell(row, 'payment_day', start_date.day))
            if not 1 <= payment_day <= 31:
                logger.warning(
                    "Row %d: payment_day %d out of range, skipping",
                    index,
                    payment_day,
                )
                error_count += 1
                continue

            loan_type = str(_cell(row, 'type', Loan.LoanType.PERSONAL)).strip().lower()
            if loan_type not in Loan.LoanType.values:
                loan_type = Loan.LoanType.OTHER

            emi_amount = _cell(row, 'emi_amount')
            if emi_amount is None:
                emi_amount = calculate_emi(
                    principal - down_payment, interest_rate, tenure,
                )

            loan_data = {
                'lender': str(_cell(row, 'lender', '')).strip(),
                'type': loan_type,
                'principal_amount': principal,
                'down_payment': down_payment,
                'outstanding_amount': principal - down_payment,
                'interest_rate': interest_rate,
                'emi_amount': Decimal(str(emi_amount)),
                'tenure_months': tenure,
                'start_date': start_date.date(),
                'payment_day': payment_day,
                'currency': str(
                    _cell(row, 'currency', settings.DEFAULT_CURRENCY)
                ).strip().upper(),
                'auto_debit': _flag(_cell(row, 'auto_debit', False)),
                'status': Loan.Status.ACTIVE,
                'last_payment_date': None,
            }

            with transaction.atomic():
                loan, created = Loan.objects.update_or_create(
                    pk=int(loan_id),
                    defaults=loan_data,
                )
                ScheduleService.generate(loan)

            if created:
                created_count += 1
            else:
                updated_count += 1

        except (ValueError, TypeError, InvalidOperation, IntegrityError) as e:
            logger.warning("Row %d: failed to process: %s", index, str(e))
            error_count += 1
            continue

    result = {
        'status': 'success',
        'total_rows': len(df),
        'created': created_count,
        'updated': updated_count,
        'errors': error_count,
    }
    logger.info("Loan data ingestion complete: %s", result)
    return result


@shared_task(
    bind=True,
    name='core.process_auto_debit_payments',
    max_retries=3,
    default_retry_delay=60,
)
def process_auto_debit_payments(self):
    """
    Pay every due installment of active auto-debit loans.

    Safe to run repeatedly: paid installments are never paid twice.
    """
    from apps.loans.services import LoanService

    try:
        result = LoanService.process_due_auto_debits()
    except Exception as exc:
        logger.exception("Auto-debit processing failed")
        raise self.retry(exc=exc)

    result['status'] = 'success'
    logger.info("Auto-debit processing complete: %s", result)
    return result


@shared_task(name='core.mark_overdue_loans')
def mark_overdue_loans():
    """Report active loans with installments overdue past the grace period."""
    from apps.loans.services import LoanService

    grace_days = settings.DEFAULT_GRACE_DAYS
    overdue_ids = list(
        LoanService.overdue_loans(grace_days=grace_days).values_list(
            'pk', flat=True,
        )
    )

    if overdue_ids:
        logger.warning(
            "%d loan(s) overdue beyond %d grace day(s): %s",
            len(overdue_ids),
            grace_days,
            overdue_ids,
        )
    return {'status': 'success', 'overdue': len(overdue_ids), 'loan_ids': overdue_ids}
