from django.contrib import admin

from apps.loans.models import EmiSchedule, Loan


class EmiScheduleInline(admin.TabularInline):
    model = EmiSchedule
    extra = 0
    readonly_fields = (
        'installment_number', 'due_date', 'emi_amount',
        'principal_amount', 'interest_amount', 'outstanding_balance',
    )


@admin.register(Loan)
class LoanAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'lender', 'type', 'status', 'principal_amount',
        'interest_rate', 'tenure_months', 'emi_amount',
        'outstanding_amount', 'next_due_date', 'auto_debit',
    )
    list_filter = ('type', 'status', 'auto_debit', 'start_date')
    search_fields = ('lender', 'item_name')
    readonly_fields = ('created_at', 'updated_at')
    inlines = (EmiScheduleInline,)
