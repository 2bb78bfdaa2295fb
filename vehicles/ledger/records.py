"""
Typed records the ledger operates on.

Every amount is normalized through coerce_numeric when a record is built, so
the ledger functions never re-check types.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from .exceptions import InputShapeError, ValidationError
from .money import coerce_numeric


class VehicleStatus:
    ON_MODIFICATION = "On Modification"
    IN_STOCK = "In Stock"
    RESERVED = "Reserved"
    SOLD = "Sold"
    PROCESSING = "Processing"
    DELETED = "DELETED"

    CHOICES = [
        (ON_MODIFICATION, "On Modification"),
        (IN_STOCK, "In Stock"),
        (RESERVED, "Reserved"),
        (SOLD, "Sold"),
        (PROCESSING, "Processing"),
        (DELETED, "Deleted"),
    ]


class SettlementType:
    FROM_CUSTOMER = "FROM_CUSTOMER"
    TO_SELLER = "TO_SELLER"

    CHOICES = [
        (FROM_CUSTOMER, "Received from customer"),
        (TO_SELLER, "Paid to seller"),
    ]
    VALUES = (FROM_CUSTOMER, TO_SELLER)


class PaymentMode:
    CASH = "cash"
    BANK_TRANSFER = "bankTransfer"
    ONLINE = "online"
    LOAN = "loan"

    CHOICES = [
        (CASH, "Cash"),
        (BANK_TRANSFER, "Bank Transfer"),
        (ONLINE, "Online (UPI)"),
        (LOAN, "Loan"),
    ]
    VALUES = (CASH, BANK_TRANSFER, ONLINE, LOAN)

    # record field each instrument accumulates into
    FIELDS = {
        CASH: "payment_cash",
        BANK_TRANSFER: "payment_bank_transfer",
        ONLINE: "payment_online",
        LOAN: "payment_loan",
    }


class PendingPaymentType:
    NONE = ""
    FROM_CUSTOMER = "PENDING_FROM_CUSTOMER"
    TO_SELLER = "PENDING_TO_SELLER"
    BOTH = "PENDING_BOTH"

    CHOICES = [
        (NONE, "Settled"),
        (FROM_CUSTOMER, "Pending from customer"),
        (TO_SELLER, "Pending to seller"),
        (BOTH, "Pending both ways"),
    ]


def require_choice(value, allowed, constraint):
    if value not in allowed:
        raise ValidationError(
            f"Invalid value {value!r}. Expected one of: {', '.join(allowed)}.",
            constraint=constraint,
        )
    return value


@dataclass(frozen=True)
class SecurityCheque:
    enabled: bool = False
    bank_name: str = ""
    account_number: str = ""
    cheque_number: str = ""
    amount: Decimal = Decimal("0")

    def __post_init__(self):
        object.__setattr__(self, "amount", coerce_numeric(self.amount))
        object.__setattr__(self, "enabled", bool(self.enabled))


@dataclass(frozen=True)
class SettlementEvent:
    settlement_type: str
    amount: Decimal
    payment_mode: str
    settled_at: datetime
    settled_by: object = None
    notes: str = ""
    posted_to_instrument: bool = False
    reversal_of: Optional[uuid.UUID] = None
    reference: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        object.__setattr__(self, "amount", coerce_numeric(self.amount))

    @property
    def is_reversal(self):
        return self.reversal_of is not None

    @property
    def signed_amount(self):
        """Amount as it counts towards settled totals."""
        return -self.amount if self.is_reversal else self.amount


AMOUNT_FIELDS = (
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
)


@dataclass(frozen=True)
class VehicleSaleRecord:
    vehicle_no: str = ""
    make: str = ""
    model: str = ""
    fuel_type: str = ""
    status: str = VehicleStatus.ON_MODIFICATION

    purchase_price: Decimal = Decimal("0")
    modification_cost: Decimal = Decimal("0")
    agent_commission: Decimal = Decimal("0")
    other_cost: Decimal = Decimal("0")

    sale_price: Decimal = Decimal("0")
    payment_cash: Decimal = Decimal("0")
    payment_bank_transfer: Decimal = Decimal("0")
    payment_online: Decimal = Decimal("0")
    payment_loan: Decimal = Decimal("0")
    security_cheque: SecurityCheque = field(default_factory=SecurityCheque)

    remaining_amount: Decimal = Decimal("0")
    remaining_amount_to_seller: Decimal = Decimal("0")
    pending_payment_type: str = PendingPaymentType.NONE
    settlements: Tuple[SettlementEvent, ...] = ()

    purchase_date: Optional[datetime] = None
    sale_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    pk: Optional[int] = None

    def __post_init__(self):
        for name in AMOUNT_FIELDS:
            object.__setattr__(self, name, coerce_numeric(getattr(self, name)))
        if self.security_cheque is None:
            object.__setattr__(self, "security_cheque", SecurityCheque())
        object.__setattr__(self, "settlements", tuple(self.settlements or ()))

    @property
    def is_sold(self):
        return self.status == VehicleStatus.SOLD


def ensure_record(record):
    if record is None:
        raise InputShapeError("A vehicle sale record is required")
    if not isinstance(record, VehicleSaleRecord):
        raise InputShapeError(
            f"Expected VehicleSaleRecord, got {type(record).__name__}"
        )
    return record
