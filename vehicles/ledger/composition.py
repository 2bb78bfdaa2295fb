from decimal import Decimal

from .records import PaymentMode, SettlementType, ensure_record


def instrument_total(record):
    """Sum of the four raw instruments (cash, bank transfer, online, loan)."""
    ensure_record(record)
    return sum((getattr(record, f) for f in PaymentMode.FIELDS.values()), Decimal("0"))


def unposted_customer_settlements(record):
    """
    Net customer settlements that are not already part of an instrument total.

    apply_settlement folds customer payments into the matching instrument, so
    only events imported without that posting are added on top.
    """
    ensure_record(record)
    return sum(
        (
            e.signed_amount
            for e in record.settlements
            if e.settlement_type == SettlementType.FROM_CUSTOMER and not e.posted_to_instrument
        ),
        Decimal("0"),
    )


def total_payment_received(record):
    """
    Recognized revenue for a vehicle.

    The security cheque is a pledge, not received money, and is never part
    of this figure, whether or not it is still enabled.
    """
    total = instrument_total(record) + unposted_customer_settlements(record)
    return max(total, Decimal("0"))
