"""
Payment settlement and profit ledger.

Pure functions over VehicleSaleRecord values: no Django imports, no I/O.
Persistence and per-vehicle locking live in vehicles.services.
"""

from .balances import (
    apply_settlement,
    pending_payment_type,
    record_purchase,
    record_sale,
    reverse_settlement,
)
from .composition import total_payment_received
from .exceptions import InputShapeError, LedgerError, ValidationError
from .history import find_event, history, is_reversed, is_settled, settled_total
from .money import coerce_numeric, format_inr, to_money
from .profit import (
    aggregate,
    comparison_matrix,
    margin,
    net_profit,
    pending_payments,
    sold_vehicles,
    total_cost,
    vehicle_profit,
)
from .records import (
    PaymentMode,
    PendingPaymentType,
    SecurityCheque,
    SettlementEvent,
    SettlementType,
    VehicleSaleRecord,
    VehicleStatus,
)

__all__ = [
    "InputShapeError",
    "LedgerError",
    "PaymentMode",
    "PendingPaymentType",
    "SecurityCheque",
    "SettlementEvent",
    "SettlementType",
    "ValidationError",
    "VehicleSaleRecord",
    "VehicleStatus",
    "aggregate",
    "apply_settlement",
    "coerce_numeric",
    "comparison_matrix",
    "find_event",
    "format_inr",
    "history",
    "is_reversed",
    "is_settled",
    "margin",
    "net_profit",
    "pending_payment_type",
    "pending_payments",
    "record_purchase",
    "record_sale",
    "reverse_settlement",
    "settled_total",
    "sold_vehicles",
    "to_money",
    "total_cost",
    "total_payment_received",
    "vehicle_profit",
]
