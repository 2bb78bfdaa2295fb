import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django_extensions.db.fields
from django.conf import settings
from django.db import migrations, models


def money(**kwargs):
    return models.DecimalField(
        decimal_places=2,
        default=Decimal('0.00'),
        max_digits=15,
        validators=[django.core.validators.MinValueValidator(Decimal('0.00'))],
        **kwargs,
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Vehicle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created', django_extensions.db.fields.CreationDateTimeField(auto_now_add=True, verbose_name='created')),
                ('modified', django_extensions.db.fields.ModificationDateTimeField(auto_now=True, verbose_name='modified')),
                ('vehicle_no', models.CharField(max_length=20, unique=True)),
                ('chassis_no', models.CharField(blank=True, max_length=50, null=True)),
                ('make', models.CharField(max_length=150)),
                ('model_name', models.CharField(blank=True, max_length=150, null=True)),
                ('year', models.PositiveIntegerField(blank=True, null=True)),
                ('color', models.CharField(blank=True, max_length=50, null=True)),
                ('fuel_type', models.CharField(choices=[('Petrol', 'Petrol'), ('Diesel', 'Diesel'), ('CNG', 'CNG'), ('Electric', 'Electric'), ('Hybrid', 'Hybrid')], default='Petrol', max_length=20)),
                ('kilometers', models.CharField(blank=True, max_length=50, null=True)),
                ('status', models.CharField(choices=[('On Modification', 'On Modification'), ('In Stock', 'In Stock'), ('Reserved', 'Reserved'), ('Sold', 'Sold'), ('Processing', 'Processing'), ('DELETED', 'Deleted')], default='On Modification', max_length=30)),
                ('purchase_price', money()),
                ('purchase_date', models.DateTimeField(blank=True, null=True)),
                ('seller_name', models.CharField(blank=True, max_length=150, null=True)),
                ('seller_contact', models.CharField(blank=True, max_length=50, null=True)),
                ('agent_name', models.CharField(blank=True, max_length=150, null=True)),
                ('agent_commission', money()),
                ('modification_cost', money()),
                ('other_cost', money()),
                ('deductions_notes', models.TextField(blank=True, null=True)),
                ('asking_price', models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True)),
                ('sale_price', money(help_text='Final price the vehicle was sold for')),
                ('sale_date', models.DateTimeField(blank=True, null=True)),
                ('customer_name', models.CharField(blank=True, max_length=150, null=True)),
                ('customer_contact', models.CharField(blank=True, max_length=50, null=True)),
                ('payment_cash', money()),
                ('payment_bank_transfer', money()),
                ('payment_online', money()),
                ('payment_loan', money()),
                ('security_cheque_enabled', models.BooleanField(default=False)),
                ('security_cheque_bank_name', models.CharField(blank=True, default='', max_length=150)),
                ('security_cheque_account_number', models.CharField(blank=True, default='', max_length=50)),
                ('security_cheque_number', models.CharField(blank=True, default='', max_length=50)),
                ('security_cheque_amount', money()),
                ('remaining_amount', money(help_text='Still owed by the customer')),
                ('remaining_amount_to_seller', money(help_text='Still owed by the dealership to the seller')),
                ('pending_payment_type', models.CharField(blank=True, choices=[('', 'Settled'), ('PENDING_FROM_CUSTOMER', 'Pending from customer'), ('PENDING_TO_SELLER', 'Pending to seller'), ('PENDING_BOTH', 'Pending both ways')], default='', max_length=30)),
                ('version', models.PositiveIntegerField(default=0, editable=False)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_vehicles', to=settings.AUTH_USER_MODEL)),
                ('modified_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='modified_vehicles', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-id'],
            },
        ),
        migrations.CreateModel(
            name='PaymentSettlement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created', django_extensions.db.fields.CreationDateTimeField(auto_now_add=True, verbose_name='created')),
                ('modified', django_extensions.db.fields.ModificationDateTimeField(auto_now=True, verbose_name='modified')),
                ('reference', models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ('settlement_type', models.CharField(choices=[('FROM_CUSTOMER', 'Received from customer'), ('TO_SELLER', 'Paid to seller')], max_length=20)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=15, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('payment_mode', models.CharField(choices=[('cash', 'Cash'), ('bankTransfer', 'Bank Transfer'), ('online', 'Online (UPI)'), ('loan', 'Loan')], max_length=20)),
                ('settled_at', models.DateTimeField()),
                ('notes', models.TextField(blank=True, default='')),
                ('posted_to_instrument', models.BooleanField(default=False, help_text="Amount already added to the vehicle's cash/bank/online/loan total")),
                ('reversal_of', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='reversed_by', to='vehicles.paymentsettlement')),
                ('settled_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payment_settlements', to=settings.AUTH_USER_MODEL)),
                ('vehicle', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='settlements', to='vehicles.vehicle')),
            ],
            options={
                'ordering': ['-settled_at', '-id'],
            },
        ),
    ]
