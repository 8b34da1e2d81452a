# Generated manually for loans

from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Loan',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('lender', models.CharField(help_text='Bank, lender or store/vendor name.', max_length=200)),
                ('type', models.CharField(choices=[('personal', 'Personal'), ('home', 'Home'), ('car', 'Car'), ('education', 'Education'), ('business', 'Business'), ('purchase_emi', 'Purchase EMI'), ('credit_card', 'Credit card'), ('other', 'Other')], db_index=True, default='personal', max_length=20)),
                ('status', models.CharField(choices=[('active', 'Active'), ('closed', 'Closed'), ('defaulted', 'Defaulted')], db_index=True, default='active', max_length=20)),
                ('principal_amount', models.DecimalField(decimal_places=2, help_text='Loan amount or purchase price.', max_digits=15, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('down_payment', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Amount paid upfront (purchase EMIs).', max_digits=15, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('outstanding_amount', models.DecimalField(decimal_places=2, help_text='Principal still to be repaid.', max_digits=15, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('interest_rate', models.DecimalField(decimal_places=2, help_text='Annual interest rate (percentage).', max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0')), django.core.validators.MaxValueValidator(Decimal('100'))])),
                ('emi_amount', models.DecimalField(decimal_places=2, help_text='Monthly installment (reducing-balance amortization).', max_digits=15, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('tenure_months', models.PositiveIntegerField(help_text='Number of monthly installments.', validators=[django.core.validators.MinValueValidator(1)])),
                ('start_date', models.DateField()),
                ('payment_day', models.PositiveSmallIntegerField(default=1, help_text='Day of month installments fall due.', validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(31)])),
                ('next_due_date', models.DateField(blank=True, null=True)),
                ('last_payment_date', models.DateField(blank=True, null=True)),
                ('currency', models.CharField(default='BDT', max_length=3)),
                ('auto_debit', models.BooleanField(db_index=True, default=False)),
                ('reminder_days', models.PositiveSmallIntegerField(default=3, validators=[django.core.validators.MaxValueValidator(30)])),
                ('item_name', models.CharField(blank=True, default='', max_length=200)),
                ('purchase_category', models.CharField(blank=True, choices=[('electronics', 'Electronics'), ('furniture', 'Furniture'), ('appliances', 'Appliances'), ('jewelry', 'Jewelry'), ('gadgets', 'Gadgets'), ('clothing', 'Clothing'), ('sports', 'Sports'), ('travel', 'Travel'), ('other', 'Other')], default='', max_length=20)),
                ('item_condition', models.CharField(blank=True, choices=[('new', 'New'), ('refurbished', 'Refurbished'), ('used', 'Used')], default='', max_length=20)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'loans',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', 'auto_debit'], name='idx_loan_status_autodebit')],
            },
        ),
        migrations.CreateModel(
            name='EmiSchedule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('installment_number', models.PositiveIntegerField()),
                ('due_date', models.DateField(db_index=True)),
                ('emi_amount', models.DecimalField(decimal_places=2, max_digits=15)),
                ('principal_amount', models.DecimalField(decimal_places=2, max_digits=15)),
                ('interest_amount', models.DecimalField(decimal_places=2, max_digits=15)),
                ('outstanding_balance', models.DecimalField(decimal_places=2, help_text='Balance left after this installment.', max_digits=15)),
                ('is_paid', models.BooleanField(db_index=True, default=False)),
                ('payment_date', models.DateField(blank=True, null=True)),
                ('actual_payment_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True)),
                ('late_fee_days', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('loan', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedules', to='loans.loan')),
            ],
            options={
                'db_table': 'emi_schedules',
                'ordering': ['loan', 'installment_number'],
                'constraints': [models.UniqueConstraint(fields=('loan', 'installment_number'), name='uniq_schedule_installment')],
            },
        ),
    ]
