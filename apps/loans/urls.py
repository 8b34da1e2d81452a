"""
Loan URL configuration.
"""

from django.urls import path

from apps.loans.views import (
    LoanDetailView,
    LoanListCreateView,
    LoanOverviewView,
    LoanScheduleView,
    PayInstallmentView,
)

urlpatterns = [
    path('loans', LoanListCreateView.as_view(), name='loan-list'),
    path('loans/overview', LoanOverviewView.as_view(), name='loan-overview'),
    path('loans/<int:loan_id>', LoanDetailView.as_view(), name='loan-detail'),
    path(
        'loans/<int:loan_id>/schedule',
        LoanScheduleView.as_view(),
        name='loan-schedule',
    ),
    path(
        'loans/<int:loan_id>/pay',
        PayInstallmentView.as_view(),
        name='loan-pay',
    ),
]
