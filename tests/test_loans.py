"""
Tests for loan creation, updates, schedules and listing.
"""

from datetime import date
from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from apps.core.exceptions import InvalidLoanError
from apps.loans.models import EmiSchedule, Loan
from apps.loans.services import LoanService


def loan_payload(**overrides):
    payload = {
        'lender': 'City Bank',
        'type': 'personal',
        'principal_amount': '100000.00',
        'interest_rate': '12.00',
        'tenure_months': 12,
        'start_date': '2024-01-15',
        'payment_day': 5,
    }
    payload.update(overrides)
    return payload


@override_settings(API_KEYS=['test-key'], DEFAULT_CURRENCY='BDT')
class CreateLoanTests(TestCase):
    """Test POST /api/loans."""

    def setUp(self):
        self.client = APIClient()
        self.url = '/api/loans'
        self.header = {'HTTP_X_API_KEY': 'test-key'}

    def test_create_loan(self):
        """Created loan carries the computed EMI and a full schedule."""
        response = self.client.post(
            self.url, loan_payload(), format='json', **self.header,
        )
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['emi_amount'], '8884.88')
        self.assertEqual(data['outstanding_amount'], '100000.00')
        self.assertEqual(data['status'], 'active')
        self.assertEqual(data['currency'], 'BDT')
        self.assertEqual(data['next_due_date'], '2024-02-05')
        self.assertEqual(data['installments_left'], 12)

        loan = Loan.objects.get(pk=data['loan_id'])
        self.assertEqual(loan.schedules.count(), 12)
        last = loan.schedules.get(installment_number=12)
        self.assertEqual(last.due_date, date(2025, 1, 5))
        self.assertEqual(last.outstanding_balance, Decimal('0.00'))

    def test_create_zero_rate_loan(self):
        response = self.client.post(
            self.url,
            loan_payload(principal_amount='1200', interest_rate='0'),
            format='json',
            **self.header,
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['emi_amount'], '100.00')

    def test_create_purchase_emi_with_down_payment(self):
        response = self.client.post(self.url, loan_payload(
            type='purchase_emi',
            lender='Gadget Store',
            item_name='Laptop',
            purchase_category='electronics',
            item_condition='new',
            principal_amount='60000',
            down_payment='10000',
            interest_rate='0',
            tenure_months=10,
            currency='inr',
        ), format='json', **self.header)
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['emi_amount'], '5000.00')
        self.assertEqual(data['outstanding_amount'], '50000.00')
        self.assertEqual(data['currency'], 'INR')
        self.assertEqual(data['item_name'], 'Laptop')

    def test_purchase_emi_requires_item_name(self):
        response = self.client.post(self.url, loan_payload(
            type='purchase_emi',
        ), format='json', **self.header)
        self.assertEqual(response.status_code, 400)
        self.assertIn('item_name', response.json()['detail'])

    def test_purchase_emi_limits(self):
        response = self.client.post(self.url, loan_payload(
            type='purchase_emi',
            item_name='Sofa',
            interest_rate='55',
            tenure_months=150,
        ), format='json', **self.header)
        self.assertEqual(response.status_code, 400)
        detail = response.json()['detail']
        self.assertIn('interest_rate', detail)
        self.assertIn('tenure_months', detail)

    def test_down_payment_must_be_below_principal(self):
        response = self.client.post(self.url, loan_payload(
            principal_amount='5000', down_payment='5000',
        ), format='json', **self.header)
        self.assertEqual(response.status_code, 400)
        self.assertIn('down_payment', response.json()['detail'])

    def test_invalid_payment_day(self):
        response = self.client.post(
            self.url, loan_payload(payment_day=32), format='json', **self.header,
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('payment_day', response.json()['detail'])

    def test_service_rejects_nothing_to_finance(self):
        with self.assertRaises(InvalidLoanError):
            LoanService.create_loan({
                'lender': 'Store',
                'principal_amount': Decimal('1000'),
                'down_payment': Decimal('1000'),
                'interest_rate': Decimal('10'),
                'tenure_months': 6,
                'start_date': date(2024, 1, 1),
            })
        self.assertEqual(Loan.objects.count(), 0)


@override_settings(API_KEYS=['test-key'])
class ViewAndUpdateLoanTests(TestCase):
    """Test GET/PATCH/DELETE /api/loans/<id> and the schedule endpoint."""

    def setUp(self):
        self.client = APIClient()
        self.header = {'HTTP_X_API_KEY': 'test-key'}
        self.loan = LoanService.create_loan({
            'lender': 'City Bank',
            'principal_amount': Decimal('100000'),
            'interest_rate': Decimal('12'),
            'tenure_months': 12,
            'start_date': date(2024, 1, 15),
            'payment_day': 5,
            'currency': 'BDT',
        })
        self.url = f'/api/loans/{self.loan.pk}'

    def test_view_loan(self):
        response = self.client.get(self.url, **self.header)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['loan_id'], self.loan.pk)
        self.assertEqual(data['lender'], 'City Bank')
        self.assertEqual(data['emi_amount'], '8884.88')

    def test_view_missing_loan(self):
        response = self.client.get('/api/loans/99999', **self.header)
        self.assertEqual(response.status_code, 404)
        data = response.json()
        self.assertTrue(data['error'])
        self.assertIn('99999', data['detail']['detail'])

    def test_schedule(self):
        response = self.client.get(f'{self.url}/schedule', **self.header)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['emi_amount'], '8884.88')
        self.assertEqual(len(data['schedule']), 12)
        first = data['schedule'][0]
        self.assertEqual(first['installment_number'], 1)
        self.assertEqual(first['due_date'], '2024-02-05')
        self.assertEqual(first['interest_amount'], '1000.00')
        self.assertFalse(first['is_paid'])

    def test_patch_terms_recomputes_emi_and_schedule(self):
        response = self.client.patch(self.url, {
            'interest_rate': '0',
            'principal_amount': '1200',
        }, format='json', **self.header)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['emi_amount'], '100.00')
        self.assertEqual(data['outstanding_amount'], '1200.00')
        amounts = set(
            self.loan.schedules.values_list('emi_amount', flat=True)
        )
        self.assertEqual(amounts, {Decimal('100.00')})

    def test_patch_tenure_regenerates_schedule(self):
        response = self.client.patch(
            self.url, {'tenure_months': 24}, format='json', **self.header,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.loan.schedules.count(), 24)
        self.assertEqual(response.json()['emi_amount'], '4707.35')

    def test_patch_non_terms_keeps_schedule(self):
        schedule_ids = list(self.loan.schedules.values_list('pk', flat=True))
        response = self.client.patch(
            self.url, {'notes': 'Renegotiate next year'}, format='json', **self.header,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['notes'], 'Renegotiate next year')
        self.assertEqual(
            list(self.loan.schedules.values_list('pk', flat=True)),
            schedule_ids,
        )

    def test_patch_terms_after_payment_rejected(self):
        LoanService.pay_installment(self.loan.pk, payment_date=date(2024, 2, 5))
        response = self.client.patch(
            self.url, {'tenure_months': 6}, format='json', **self.header,
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.loan.schedules.count(), 12)

    def test_delete_loan(self):
        response = self.client.delete(self.url, **self.header)
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Loan.objects.filter(pk=self.loan.pk).exists())
        self.assertFalse(EmiSchedule.objects.filter(loan_id=self.loan.pk).exists())


@override_settings(API_KEYS=['test-key'])
class ListLoansTests(TestCase):
    """Test GET /api/loans with filters and pagination."""

    def setUp(self):
        self.client = APIClient()
        self.header = {'HTTP_X_API_KEY': 'test-key'}
        for i in range(12):
            LoanService.create_loan({
                'lender': f'Lender {i}',
                'type': 'car' if i % 3 == 0 else 'personal',
                'principal_amount': Decimal('10000') + i,
                'interest_rate': Decimal('9.5'),
                'tenure_months': 6,
                'start_date': date(2024, 1, 1),
            })
        Loan.objects.filter(lender='Lender 1').update(status=Loan.Status.CLOSED)

    def test_paginated(self):
        response = self.client.get('/api/loans', **self.header)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['count'], 12)
        self.assertEqual(len(data['results']), 10)
        self.assertIsNotNone(data['next'])

    def test_page_size(self):
        response = self.client.get('/api/loans?page_size=5&page=3', **self.header)
        self.assertEqual(len(response.json()['results']), 2)

    def test_filter_by_type(self):
        response = self.client.get('/api/loans?type=car', **self.header)
        data = response.json()
        self.assertEqual(data['count'], 4)
        self.assertTrue(all(item['type'] == 'car' for item in data['results']))

    def test_filter_by_status(self):
        response = self.client.get('/api/loans?status=closed', **self.header)
        data = response.json()
        self.assertEqual(data['count'], 1)
        self.assertEqual(data['results'][0]['lender'], 'Lender 1')

    def test_installments_left_annotated(self):
        loan = Loan.objects.get(lender='Lender 2')
        LoanService.pay_installment(loan.pk, payment_date=date(2024, 2, 1))

        listed = LoanService.list_loans().get(pk=loan.pk)
        self.assertEqual(listed.unpaid_installments, 5)
        self.assertEqual(listed.installments_left, 5)

        response = self.client.get('/api/loans?page_size=20', **self.header)
        left = {
            item['lender']: item['installments_left']
            for item in response.json()['results']
        }
        self.assertEqual(left['Lender 2'], 5)
        self.assertEqual(left['Lender 3'], 6)
