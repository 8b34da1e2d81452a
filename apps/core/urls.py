"""
Core app URL configuration for background task triggers.
"""

from django.urls import path

from apps.core.views import TriggerIngestionView, TriggerPaymentProcessingView

urlpatterns = [
    path(
        'ingest-data',
        TriggerIngestionView.as_view(),
        name='ingest-data',
    ),
    path(
        'process-payments',
        TriggerPaymentProcessingView.as_view(),
        name='process-payments',
    ),
]
