"""
Tests for the amortization breakdown, schedule dates and currency formatting.
"""

from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from apps.core.utils import (
    amortization_schedule,
    calculate_emi_details,
    format_currency,
    installment_due_date,
    late_fee_days,
    next_payment_date,
)


class AmortizationScheduleTests(SimpleTestCase):
    """Month-by-month reducing-balance breakdown."""

    def test_one_row_per_month(self):
        rows = amortization_schedule(100000, 12, 12)
        self.assertEqual([row['month'] for row in rows], list(range(1, 13)))

    def test_first_month_interest_on_full_principal(self):
        rows = amortization_schedule(100000, 12, 12)
        self.assertEqual(rows[0]['emi'], Decimal('8884.88'))
        self.assertEqual(rows[0]['interest'], Decimal('1000.00'))
        self.assertEqual(rows[0]['principal'], Decimal('7884.88'))
        self.assertEqual(rows[0]['balance'], Decimal('92115.12'))

    def test_balance_reaches_zero(self):
        rows = amortization_schedule(Decimal('333333'), Decimal('7.77'), 17)
        self.assertEqual(rows[-1]['balance'], Decimal('0.00'))

    def test_interest_is_front_loaded(self):
        rows = amortization_schedule(500000, 10, 60)
        interests = [row['interest'] for row in rows]
        principals = [row['principal'] for row in rows]
        self.assertEqual(interests, sorted(interests, reverse=True))
        self.assertEqual(principals, sorted(principals))

    def test_principal_parts_sum_to_principal(self):
        rows = amortization_schedule(250000, 9, 24)
        total = sum(row['principal'] for row in rows)
        self.assertAlmostEqual(float(total), 250000, delta=0.15)

    def test_zero_rate_has_no_interest(self):
        rows = amortization_schedule(1200, 0, 12)
        for row in rows:
            self.assertEqual(row['interest'], Decimal('0.00'))
            self.assertEqual(row['principal'], Decimal('100.00'))
        self.assertEqual(rows[5]['balance'], Decimal('600.00'))

    def test_nothing_financed_gives_empty_schedule(self):
        self.assertEqual(amortization_schedule(1000, 10, 6, down_payment=1000), [])

    def test_invalid_tenure(self):
        with self.assertRaises(ValueError):
            amortization_schedule(1000, 10, 0)


class EMIDetailsTests(SimpleTestCase):
    """Totals with principal/interest split."""

    def test_percentages(self):
        details = calculate_emi_details(100000, 12, 12)
        self.assertEqual(details['financed_amount'], Decimal('100000.00'))
        self.assertEqual(details['principal_percentage'], Decimal('93.79'))
        self.assertEqual(details['interest_percentage'], Decimal('6.21'))
        self.assertEqual(len(details['breakdown']), 12)

    def test_zero_rate_is_all_principal(self):
        details = calculate_emi_details(1200, 0, 12)
        self.assertEqual(details['principal_percentage'], Decimal('100.00'))
        self.assertEqual(details['interest_percentage'], Decimal('0.00'))

    def test_down_payment(self):
        details = calculate_emi_details(60000, 0, 10, down_payment=10000)
        self.assertEqual(details['financed_amount'], Decimal('50000.00'))
        self.assertEqual(details['monthly_payment'], Decimal('5000.00'))

    def test_fully_covered_purchase(self):
        details = calculate_emi_details(5000, 18, 6, down_payment=8000)
        self.assertEqual(details['financed_amount'], Decimal('0.00'))
        self.assertEqual(details['monthly_payment'], Decimal('0.00'))
        self.assertEqual(details['principal_percentage'], Decimal('0.00'))
        self.assertEqual(details['breakdown'], [])


class ScheduleDateTests(SimpleTestCase):
    """Due dates, next payment date and late days."""

    def test_due_date_advances_by_months(self):
        self.assertEqual(
            installment_due_date(date(2024, 1, 15), 1), date(2024, 2, 15),
        )
        self.assertEqual(
            installment_due_date(date(2024, 1, 15), 12), date(2025, 1, 15),
        )

    def test_due_date_uses_payment_day(self):
        self.assertEqual(
            installment_due_date(date(2024, 1, 15), 1, payment_day=5),
            date(2024, 2, 5),
        )

    def test_payment_day_clamped_to_month_end(self):
        self.assertEqual(
            installment_due_date(date(2024, 1, 31), 1, payment_day=31),
            date(2024, 2, 29),
        )
        self.assertEqual(
            installment_due_date(date(2023, 1, 31), 1), date(2023, 2, 28),
        )

    def test_installment_number_must_be_positive(self):
        with self.assertRaises(ValueError):
            installment_due_date(date(2024, 1, 1), 0)

    def test_next_payment_date_this_month(self):
        self.assertEqual(
            next_payment_date(15, today=date(2024, 3, 10)), date(2024, 3, 15),
        )

    def test_next_payment_date_on_payment_day_moves_to_next_month(self):
        self.assertEqual(
            next_payment_date(15, today=date(2024, 3, 15)), date(2024, 4, 15),
        )

    def test_next_payment_date_short_month(self):
        self.assertEqual(
            next_payment_date(31, today=date(2024, 4, 10)), date(2024, 4, 30),
        )
        self.assertEqual(
            next_payment_date(31, today=date(2024, 4, 30)), date(2024, 5, 31),
        )

    def test_next_payment_date_december_rollover(self):
        self.assertEqual(
            next_payment_date(1, today=date(2024, 12, 20)), date(2025, 1, 1),
        )

    def test_late_fee_days(self):
        self.assertEqual(late_fee_days(date(2024, 3, 1), date(2024, 3, 11)), 10)
        self.assertEqual(late_fee_days(date(2024, 3, 1), date(2024, 3, 1)), 0)
        self.assertEqual(late_fee_days(date(2024, 3, 10), date(2024, 3, 1)), 0)


class FormatCurrencyTests(SimpleTestCase):
    """Display formatting."""

    def test_known_symbols(self):
        self.assertEqual(format_currency(1234.5, 'USD'), '$1,234.50')
        self.assertEqual(format_currency(Decimal('8884.88'), 'INR'), '₹8,884.88')
        self.assertEqual(format_currency(100), '৳100.00')

    def test_unknown_currency_uses_code(self):
        self.assertEqual(format_currency(10, 'CHF'), 'CHF10.00')

    def test_negative(self):
        self.assertEqual(format_currency(-50, 'EUR'), '-€50.00')

    def test_compact(self):
        self.assertEqual(format_currency(1500000, 'INR', compact=True), '₹1.5M')
        self.assertEqual(format_currency(1000, 'USD', compact=True), '$1K')
        self.assertEqual(format_currency(999, 'USD', compact=True), '$999.00')
        self.assertEqual(format_currency(2500000000, 'GBP', compact=True), '£2.5B')

    def test_compact_rounding_carries_to_next_unit(self):
        self.assertEqual(format_currency(999999, 'USD', compact=True), '$1M')
        self.assertEqual(format_currency(999950, 'USD', compact=True), '$1M')
        self.assertEqual(format_currency(999949, 'USD', compact=True), '$999.9K')
        self.assertEqual(
            format_currency(999999999, 'USD', compact=True), '$1B',
        )
        self.assertEqual(
            format_currency(-999999, 'EUR', compact=True), '-€1M',
        )
