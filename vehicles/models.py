import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django_extensions.db.models import TimeStampedModel

from vehicles import ledger
from vehicles.ledger import (
    PaymentMode,
    PendingPaymentType,
    SecurityCheque,
    SettlementEvent,
    SettlementType,
    VehicleSaleRecord,
    VehicleStatus,
)


def money_field(**kwargs):
    kwargs.setdefault("default", Decimal("0.00"))
    return models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        **kwargs,
    )


def local(value):
    """Aware datetimes in the configured TIME_ZONE, so report dates match calendar dates."""
    return timezone.localtime(value) if value is not None else None


class Vehicle(TimeStampedModel):
    """
    A vehicle from purchase to sale, including its payment ledger.

    Balance fields (remaining_amount, remaining_amount_to_seller,
    pending_payment_type) and the payment instruments are only changed
    through vehicles.services, which runs the ledger functions under a row
    lock and bumps `version`.
    """
    FUEL_TYPE_CHOICES = [
        ("Petrol", "Petrol"),
        ("Diesel", "Diesel"),
        ("CNG", "CNG"),
        ("Electric", "Electric"),
        ("Hybrid", "Hybrid"),
    ]

    # Identification
    vehicle_no = models.CharField(max_length=20, unique=True)   # e.g. MH23AY4632
    chassis_no = models.CharField(max_length=50, null=True, blank=True)
    make = models.CharField(max_length=150)                     # company, e.g. Maruti, Hyundai
    model_name = models.CharField(max_length=150, null=True, blank=True)
    year = models.PositiveIntegerField(null=True, blank=True)
    color = models.CharField(max_length=50, null=True, blank=True)
    fuel_type = models.CharField(max_length=20, choices=FUEL_TYPE_CHOICES, default="Petrol")
    kilometers = models.CharField(max_length=50, null=True, blank=True)

    status = models.CharField(
        max_length=30,
        choices=VehicleStatus.CHOICES,
        default=VehicleStatus.ON_MODIFICATION,
    )

    # Purchase
    purchase_price = money_field()
    purchase_date = models.DateTimeField(null=True, blank=True)
    seller_name = models.CharField(max_length=150, null=True, blank=True)
    seller_contact = models.CharField(max_length=50, null=True, blank=True)
    agent_name = models.CharField(max_length=150, null=True, blank=True)
    agent_commission = money_field()
    modification_cost = money_field()
    other_cost = money_field()
    deductions_notes = models.TextField(null=True, blank=True)
    asking_price = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)

    # Sale
    sale_price = money_field(help_text="Final price the vehicle was sold for")
    sale_date = models.DateTimeField(null=True, blank=True)
    customer_name = models.CharField(max_length=150, null=True, blank=True)
    customer_contact = models.CharField(max_length=50, null=True, blank=True)

    payment_cash = money_field()
    payment_bank_transfer = money_field()
    payment_online = money_field()
    payment_loan = money_field()

    security_cheque_enabled = models.BooleanField(default=False)
    security_cheque_bank_name = models.CharField(max_length=150, blank=True, default="")
    security_cheque_account_number = models.CharField(max_length=50, blank=True, default="")
    security_cheque_number = models.CharField(max_length=50, blank=True, default="")
    security_cheque_amount = money_field()

    # Outstanding balances
    remaining_amount = money_field(help_text="Still owed by the customer")
    remaining_amount_to_seller = money_field(help_text="Still owed by the dealership to the seller")
    pending_payment_type = models.CharField(
        max_length=30,
        choices=PendingPaymentType.CHOICES,
        default=PendingPaymentType.NONE,
        blank=True,
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_vehicles",
    )
    modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="modified_vehicles",
    )
    version = models.PositiveIntegerField(default=0, editable=False)

    class Meta:
        ordering = ['-id']

    def __str__(self):
        return f"{self.make} {self.model_name or ''} ({self.vehicle_no})".replace("  ", " ")

    def save(self, *args, **kwargs):
        self.vehicle_no = (self.vehicle_no or "").replace(" ", "").replace("-", "").upper()
        super().save(*args, **kwargs)

    # ------------------------------------------------------------------
    # Ledger mapping
    # ------------------------------------------------------------------

    @property
    def security_cheque(self):
        return SecurityCheque(
            enabled=self.security_cheque_enabled,
            bank_name=self.security_cheque_bank_name,
            account_number=self.security_cheque_account_number,
            cheque_number=self.security_cheque_number,
            amount=self.security_cheque_amount,
        )

    def to_record(self):
        """Snapshot of this vehicle as a ledger record, settlements included."""
        return VehicleSaleRecord(
            pk=self.pk,
            vehicle_no=self.vehicle_no,
            make=self.make,
            model=self.model_name or "",
            fuel_type=self.fuel_type,
            status=self.status,
            purchase_price=self.purchase_price,
            modification_cost=self.modification_cost,
            agent_commission=self.agent_commission,
            other_cost=self.other_cost,
            sale_price=self.sale_price,
            payment_cash=self.payment_cash,
            payment_bank_transfer=self.payment_bank_transfer,
            payment_online=self.payment_online,
            payment_loan=self.payment_loan,
            security_cheque=self.security_cheque,
            remaining_amount=self.remaining_amount,
            remaining_amount_to_seller=self.remaining_amount_to_seller,
            pending_payment_type=self.pending_payment_type,
            settlements=self._settlement_events(),
            purchase_date=local(self.purchase_date),
            sale_date=local(self.sale_date),
            created_at=local(self.created),
        )

    def _settlement_events(self):
        if not self.pk:
            return ()
        # append order; the ledger breaks settled_at ties by position
        rows = sorted(self.settlements.all(), key=lambda s: (s.settled_at, s.pk))
        return [s.to_event() for s in rows]

    def apply_record(self, record):
        """Copy the ledger-owned fields of `record` back onto this row (unsaved)."""
        for name in (
            "status",
            "purchase_price",
            "modification_cost",
            "agent_commission",
            "other_cost",
            "sale_price",
            "payment_cash",
            "payment_bank_transfer",
            "payment_online",
            "payment_loan",
            "remaining_amount",
            "remaining_amount_to_seller",
            "pending_payment_type",
            "purchase_date",
            "sale_date",
        ):
            setattr(self, name, getattr(record, name))
        cheque = record.security_cheque
        self.security_cheque_enabled = cheque.enabled
        self.security_cheque_bank_name = cheque.bank_name
        self.security_cheque_account_number = cheque.account_number
        self.security_cheque_number = cheque.cheque_number
        self.security_cheque_amount = cheque.amount

    # ------------------------------------------------------------------
    # Derived figures
    # ------------------------------------------------------------------

    @property
    def total_payment_received(self):
        return round(ledger.total_payment_received(self.to_record()), 2)

    @property
    def total_cost(self):
        return round(ledger.total_cost(self.to_record()), 2)

    @property
    def net_profit(self):
        return round(ledger.net_profit(self.to_record()), 2)

    @property
    def margin(self):
        return ledger.margin(self.to_record())

    @property
    def is_settled(self):
        return self.remaining_amount == 0 and self.remaining_amount_to_seller == 0


class PaymentSettlement(TimeStampedModel):
    """
    One partial payment against a vehicle balance.

    Append-only: rows are never updated or deleted. A mistaken settlement is
    corrected by a reversal row pointing at it through `reversal_of`.
    """
    vehicle = models.ForeignKey(
        Vehicle, related_name="settlements", on_delete=models.PROTECT
    )
    reference = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    settlement_type = models.CharField(max_length=20, choices=SettlementType.CHOICES)
    amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    payment_mode = models.CharField(max_length=20, choices=PaymentMode.CHOICES)
    settled_at = models.DateTimeField()
    settled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payment_settlements",
    )
    notes = models.TextField(blank=True, default="")
    posted_to_instrument = models.BooleanField(
        default=False,
        help_text="Amount already added to the vehicle's cash/bank/online/loan total",
    )
    reversal_of = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversed_by",
    )

    class Meta:
        ordering = ['-settled_at', '-id']

    def __str__(self):
        label = "Reversal" if self.reversal_of_id else self.get_settlement_type_display()
        return f"{label}: {self.amount} via {self.payment_mode} for {self.vehicle.vehicle_no}"

    def to_event(self):
        return SettlementEvent(
            reference=self.reference,
            settlement_type=self.settlement_type,
            amount=self.amount,
            payment_mode=self.payment_mode,
            settled_at=self.settled_at,
            settled_by=self.settled_by_id,
            notes=self.notes,
            posted_to_instrument=self.posted_to_instrument,
            reversal_of=self.reversal_of.reference if self.reversal_of_id else None,
        )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Payment settlements are append-only and cannot be modified")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Payment settlements are append-only and cannot be deleted")
