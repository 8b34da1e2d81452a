"""
Core utility functions for the EMI planner.

Contains the EMI (equated monthly installment) math shared by the
loan and purchase-EMI flows, plus date and currency helpers.
All financial calculations use Python's Decimal for precision.
"""

import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, getcontext
from typing import Optional

from dateutil.relativedelta import relativedelta

# Set high precision for intermediate financial calculations
getcontext().prec = 28

TWO_PLACES = Decimal('0.01')
ZERO = Decimal('0.00')

CURRENCY_SYMBOLS = {
    'USD': '$',
    'BDT': '৳',
    'INR': '₹',
    'EUR': '€',
    'GBP': '£',
    'JPY': '¥',
    'CAD': 'C$',
    'AUD': 'A$',
}

COMPACT_UNITS = ('', 'K', 'M', 'B', 'T')


def to_decimal(value) -> Decimal:
    """Coerce int, float, str or Decimal to Decimal via its string form."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places (ROUND_HALF_UP)."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _monthly_payment(
    principal: Decimal,
    annual_rate: Decimal,
    tenure_months: int,
) -> Decimal:
    """Unrounded fixed installment for a positive principal."""
    if annual_rate == 0:
        return principal / Decimal(tenure_months)

    monthly_rate = annual_rate / Decimal('1200')
    power_term = (Decimal('1') + monthly_rate) ** tenure_months
    return principal * monthly_rate * power_term / (power_term - Decimal('1'))


def _check_terms(annual_rate: Decimal, tenure_months: int) -> None:
    if annual_rate < 0:
        raise ValueError("Interest rate cannot be negative.")
    if tenure_months < 1:
        raise ValueError("Tenure must be at least 1 month.")


def compute_emi(
    principal,
    annual_rate_percent,
    tenure_months: int,
    down_payment=0,
) -> dict:
    """
    Calculate the EMI and repayment totals for a reducing-balance loan.

    EMI = P × r × (1+r)^n / ((1+r)^n - 1)

    Where:
        P = principal financed (principal - down_payment)
        r = monthly interest rate (annual_rate_percent / 12 / 100)
        n = tenure in months

    A 0% rate falls back to straight-line division. When the down payment
    covers the whole principal (or the principal is not positive) every
    figure is zero; this is what a half-filled form should preview.

    Args:
        principal: Loan or purchase amount. Accepts Decimal, float, int or str.
        annual_rate_percent: Annual interest rate as percentage (e.g., 12.5).
        tenure_months: Number of monthly installments (must be >= 1).
        down_payment: Amount paid upfront, subtracted from the principal.

    Returns:
        Dict with monthly_payment, total_payment and total_interest,
        each a Decimal quantized to 2 decimal places (ROUND_HALF_UP).

    Raises:
        ValueError: If the rate is negative or tenure is below 1 month.
    """
    financed = to_decimal(principal) - to_decimal(down_payment)
    annual_rate = to_decimal(annual_rate_percent)
    tenure_months = int(tenure_months)

    _check_terms(annual_rate, tenure_months)

    if financed <= 0:
        return {
            'monthly_payment': ZERO,
            'total_payment': ZERO,
            'total_interest': ZERO,
        }

    # Totals are taken from the unrounded installment
    emi = _monthly_payment(financed, annual_rate, tenure_months)
    total_payment = emi * tenure_months

    return {
        'monthly_payment': quantize_money(emi),
        'total_payment': quantize_money(total_payment),
        'total_interest': quantize_money(total_payment - financed),
    }


def calculate_emi(principal, annual_rate, tenure_months: int) -> Decimal:
    """Return only the monthly installment, quantized to 2 decimal places."""
    return compute_emi(principal, annual_rate, tenure_months)['monthly_payment']


def amortization_schedule(
    principal,
    annual_rate_percent,
    tenure_months: int,
    down_payment=0,
) -> list:
    """
    Build the month-by-month reducing-balance breakdown.

    Each row holds month, emi, principal, interest and balance. Interest is
    charged on the running balance and the remainder of the installment
    reduces it; the balance never drops below zero. Values are kept at full
    precision while iterating and only quantized in the returned rows.
    """
    financed = to_decimal(principal) - to_decimal(down_payment)
    annual_rate = to_decimal(annual_rate_percent)
    tenure_months = int(tenure_months)

    _check_terms(annual_rate, tenure_months)

    if financed <= 0:
        return []

    emi = _monthly_payment(financed, annual_rate, tenure_months)
    monthly_rate = annual_rate / Decimal('1200')
    balance = financed
    rows = []

    for month in range(1, tenure_months + 1):
        interest = balance * monthly_rate
        principal_part = emi - interest
        balance = max(Decimal('0'), balance - principal_part)
        if month == tenure_months:
            # Drop the residue left by 28-digit arithmetic
            balance = Decimal('0')

        rows.append({
            'month': month,
            'emi': quantize_money(emi),
            'principal': quantize_money(principal_part),
            'interest': quantize_money(interest),
            'balance': quantize_money(balance),
        })

    return rows


def calculate_emi_details(
    principal,
    annual_rate_percent,
    tenure_months: int,
    down_payment=0,
) -> dict:
    """
    EMI totals plus the principal/interest split and monthly breakdown.

    Returns:
        The compute_emi() dict extended with financed_amount,
        principal_percentage, interest_percentage and breakdown.
    """
    totals = compute_emi(
        principal, annual_rate_percent, tenure_months, down_payment,
    )
    financed = max(
        Decimal('0'), to_decimal(principal) - to_decimal(down_payment)
    )

    total_payment = totals['total_payment']
    if total_payment > 0:
        principal_pct = quantize_money(financed / total_payment * 100)
        interest_pct = quantize_money(
            totals['total_interest'] / total_payment * 100
        )
    else:
        principal_pct = ZERO
        interest_pct = ZERO

    return {
        **totals,
        'financed_amount': quantize_money(financed),
        'principal_percentage': principal_pct,
        'interest_percentage': interest_pct,
        'breakdown': amortization_schedule(
            principal, annual_rate_percent, tenure_months, down_payment,
        ),
    }


def installment_due_date(
    start_date: date,
    installment_number: int,
    payment_day: Optional[int] = None,
) -> date:
    """
    Due date of the Nth installment (1-based).

    The start date is advanced by N months. If payment_day is given the
    day of month is moved to it, clamped to the end of shorter months.
    """
    if installment_number < 1:
        raise ValueError("Installment number must be at least 1.")
    if payment_day is None:
        return start_date + relativedelta(months=installment_number)
    return start_date + relativedelta(
        months=installment_number, day=payment_day,
    )


def next_payment_date(payment_day: int = 1, today: Optional[date] = None) -> date:
    """
    Next payment date for a given day of month.

    Examples:
        next_payment_date(15, date(2024, 3, 10)) → 2024-03-15
        next_payment_date(15, date(2024, 3, 15)) → 2024-04-15
        next_payment_date(31, date(2024, 4, 10)) → 2024-04-30
    """
    today = today or date.today()
    if today.day < payment_day:
        candidate = today + relativedelta(day=payment_day)
        if candidate > today:
            return candidate
    return today + relativedelta(months=1, day=payment_day)


def late_fee_days(due_date: date, today: Optional[date] = None) -> int:
    """Whole days an installment is past due; 0 if not yet due."""
    today = today or date.today()
    return max(0, (today - due_date).days)


def _compact_scale(magnitude: Decimal, unit_index: int) -> Decimal:
    scaled = magnitude / (Decimal(1000) ** unit_index)
    return scaled.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)


def format_currency(amount, currency: str = 'BDT', compact: bool = False) -> str:
    """
    Format an amount for display with the currency symbol.

    Unknown currency codes are used as their own symbol.

    Examples:
        format_currency(1234.5, 'USD') → '$1,234.50'
        format_currency(1500000, 'INR', compact=True) → '₹1.5M'
    """
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    amount = to_decimal(amount)
    sign = '-' if amount < 0 else ''
    magnitude = abs(amount)

    if compact and magnitude >= 1000:
        unit_index = min(
            int(math.floor(math.log10(magnitude) / 3)),
            len(COMPACT_UNITS) - 1,
        )
        scaled = _compact_scale(magnitude, unit_index)
        # 999999 rounds to 1000.0K; carry into the next unit
        if scaled >= 1000 and unit_index < len(COMPACT_UNITS) - 1:
            unit_index += 1
            scaled = _compact_scale(magnitude, unit_index)
        text = f"{scaled:f}"
        if text.endswith('.0'):
            text = text[:-2]
        return f"{sign}{symbol}{text}{COMPACT_UNITS[unit_index]}"

    return f"{sign}{symbol}{quantize_money(magnitude):,.2f}"
