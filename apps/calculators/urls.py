"""
Calculator URL configuration.
"""

from django.urls import path

from apps.calculators.views import EmiCalculatorView, PurchaseEmiCalculatorView

urlpatterns = [
    path('calculators/emi', EmiCalculatorView.as_view(), name='emi-calculator'),
    path(
        'calculators/purchase-emi',
        PurchaseEmiCalculatorView.as_view(),
        name='purchase-emi-calculator',
    ),
]
