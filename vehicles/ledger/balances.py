"""
REMAINING-BALANCE ENGINE

Owns the two outstanding balances of a vehicle:
- remaining_amount: still owed BY the customer
- remaining_amount_to_seller: still owed TO the original seller/agent

RULES:
- Every function returns a new record; the record passed in is never
  mutated, so a rejected call leaves the caller's record untouched
- Preconditions fail with ValidationError before anything is built
- Over-amount settlements are rejected, never clamped
- Callers must serialize mutations per vehicle (see services)
"""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

from .composition import total_payment_received
from .exceptions import InputShapeError, ValidationError
from .history import find_event, is_reversed
from .money import coerce_numeric
from .records import (
    PaymentMode,
    PendingPaymentType,
    SecurityCheque,
    SettlementEvent,
    SettlementType,
    VehicleStatus,
    ensure_record,
    require_choice,
)

ZERO = Decimal("0")


def pending_payment_type(remaining_amount, remaining_amount_to_seller):
    """The single place the pending tag is derived from the two balances."""
    from_customer = coerce_numeric(remaining_amount) > 0
    to_seller = coerce_numeric(remaining_amount_to_seller) > 0
    if from_customer and to_seller:
        return PendingPaymentType.BOTH
    if from_customer:
        return PendingPaymentType.FROM_CUSTOMER
    if to_seller:
        return PendingPaymentType.TO_SELLER
    return PendingPaymentType.NONE


def _with_balances(record, **changes):
    updated = replace(record, **changes)
    return replace(
        updated,
        pending_payment_type=pending_payment_type(
            updated.remaining_amount, updated.remaining_amount_to_seller
        ),
    )


def _non_negative(value, name):
    amount = coerce_numeric(value)
    if amount < 0:
        raise ValidationError(
            f"{name.replace('_', ' ').capitalize()} cannot be negative.",
            constraint=f"{name}_non_negative",
            requested=amount,
        )
    return amount


def _now(at):
    return at or datetime.now(timezone.utc)


def record_purchase(
    record,
    purchase_price,
    *,
    paid_cash=0,
    paid_bank_transfer=0,
    deductions=0,
    agent_commission=0,
    modification_cost=0,
    other_cost=0,
    purchase_date=None,
):
    """
    Fix the cost components and open the balance owed to the seller.

    Whatever part of the purchase price was not paid (cash, bank transfer)
    or deducted stays on remaining_amount_to_seller.
    """
    ensure_record(record)
    if record.is_sold:
        raise ValidationError(
            "Purchase details cannot change after the vehicle is sold.",
            constraint="purchase_before_sale",
        )
    price = _non_negative(purchase_price, "purchase_price")
    paid = (
        _non_negative(paid_cash, "paid_cash")
        + _non_negative(paid_bank_transfer, "paid_bank_transfer")
        + _non_negative(deductions, "deductions")
    )
    return _with_balances(
        record,
        purchase_price=price,
        agent_commission=_non_negative(agent_commission, "agent_commission"),
        modification_cost=_non_negative(modification_cost, "modification_cost"),
        other_cost=_non_negative(other_cost, "other_cost"),
        remaining_amount_to_seller=max(ZERO, price - paid),
        purchase_date=purchase_date or record.purchase_date,
    )


def record_sale(record, sale_price, payment_breakdown=None, security_cheque=None, sale_date=None):
    """
    Record the sale of a vehicle.

    payment_breakdown maps payment modes (cash, bankTransfer, online, loan)
    to the amounts received at sale time. With an enabled security cheque
    the customer owes exactly the cheque amount; otherwise whatever part of
    the sale price was not received.
    """
    ensure_record(record)
    price = coerce_numeric(sale_price)
    if price <= 0:
        raise ValidationError(
            "Sale price must be greater than 0.",
            constraint="sale_price_positive",
            requested=price,
        )
    if record.status in (VehicleStatus.SOLD, VehicleStatus.DELETED):
        raise ValidationError(
            f"Cannot record a sale for a vehicle with status {record.status!r}.",
            constraint="vehicle_sellable",
        )

    instruments = {name: ZERO for name in PaymentMode.FIELDS.values()}
    for mode, amount in (payment_breakdown or {}).items():
        require_choice(mode, PaymentMode.VALUES, "payment_mode")
        instruments[PaymentMode.FIELDS[mode]] = _non_negative(amount, PaymentMode.FIELDS[mode])

    cheque = security_cheque or SecurityCheque()
    if cheque.enabled and cheque.amount <= 0:
        raise ValidationError(
            "Security cheque amount must be greater than 0.",
            constraint="security_cheque_amount_positive",
            requested=cheque.amount,
        )

    sold = replace(
        record,
        sale_price=price,
        security_cheque=cheque,
        status=VehicleStatus.SOLD,
        sale_date=sale_date or datetime.now(timezone.utc),
        **instruments,
    )
    if cheque.enabled:
        remaining = cheque.amount
    else:
        remaining = max(ZERO, price - total_payment_received(sold))
    return _with_balances(sold, remaining_amount=remaining)


def _target_field(settlement_type):
    if settlement_type == SettlementType.FROM_CUSTOMER:
        return "remaining_amount"
    return "remaining_amount_to_seller"


def apply_settlement(record, settlement_type, amount, mode, actor, notes=None, at=None):
    """
    Settle part or all of one outstanding balance.

    Appends a SettlementEvent and decrements the targeted balance. Customer
    payments are also added to the instrument they were paid through, since
    they are received money. Paying the seller leaves revenue alone because
    the purchase cost was fixed when the vehicle was bought.
    """
    ensure_record(record)
    if actor is None:
        raise InputShapeError("An acting user is required to settle a payment")
    require_choice(settlement_type, SettlementType.VALUES, "settlement_type")
    require_choice(mode, PaymentMode.VALUES, "payment_mode")

    target = _target_field(settlement_type)
    balance = getattr(record, target)
    amount = coerce_numeric(amount)
    if amount <= 0:
        raise ValidationError(
            "Settlement amount must be greater than 0.",
            constraint="amount_positive",
            balance=target,
            requested=amount,
            available=balance,
        )
    if amount > balance:
        raise ValidationError(
            f"Settlement amount {amount:.2f} exceeds the remaining balance of {balance:.2f}.",
            constraint="amount_within_balance",
            balance=target,
            requested=amount,
            available=balance,
        )

    from_customer = settlement_type == SettlementType.FROM_CUSTOMER
    event = SettlementEvent(
        settlement_type=settlement_type,
        amount=amount,
        payment_mode=mode,
        settled_at=_now(at),
        settled_by=actor,
        notes=notes or "",
        posted_to_instrument=from_customer,
    )
    changes = {
        target: balance - amount,
        "settlements": record.settlements + (event,),
    }
    if from_customer:
        instrument = PaymentMode.FIELDS[mode]
        changes[instrument] = getattr(record, instrument) + amount
        if record.security_cheque.enabled and changes[target] == 0:
            # the pledge is void once the customer has paid in full
            changes["security_cheque"] = replace(record.security_cheque, enabled=False)
    return _with_balances(record, **changes)


def reverse_settlement(record, reference, actor, notes=None, at=None):
    """
    Compensate a mistaken settlement with an equal and opposite event.

    The original event stays in the ledger. Its balance is reopened by the
    same amount and, for customer payments folded into an instrument, the
    instrument is reduced again. A security cheque voided by the original
    settlement is not re-enabled.
    """
    ensure_record(record)
    if actor is None:
        raise InputShapeError("An acting user is required to reverse a settlement")
    original = find_event(record, reference)
    if original.is_reversal:
        raise ValidationError(
            "A reversal cannot itself be reversed.",
            constraint="reversal_not_reversible",
        )
    if is_reversed(record, original.reference):
        raise ValidationError(
            f"Settlement {original.reference} has already been reversed.",
            constraint="reverse_once",
        )

    target = _target_field(original.settlement_type)
    changes = {target: getattr(record, target) + original.amount}
    if original.posted_to_instrument:
        instrument = PaymentMode.FIELDS[original.payment_mode]
        current = getattr(record, instrument)
        if original.amount > current:
            raise ValidationError(
                f"Reversing {original.amount:.2f} would make {instrument} negative.",
                constraint="instrument_non_negative",
                balance=instrument,
                requested=original.amount,
                available=current,
            )
        changes[instrument] = current - original.amount

    event = SettlementEvent(
        settlement_type=original.settlement_type,
        amount=original.amount,
        payment_mode=original.payment_mode,
        settled_at=_now(at),
        settled_by=actor,
        notes=notes or f"Reversal of settlement {original.reference}",
        posted_to_instrument=original.posted_to_instrument,
        reversal_of=original.reference,
    )
    changes["settlements"] = record.settlements + (event,)
    return _with_balances(record, **changes)
