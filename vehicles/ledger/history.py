"""
SETTLEMENT LEDGER (READ-ONLY)

Append-only audit trail of partial payments against either balance.
Events are never edited or removed; a mistaken settlement is corrected by a
compensating event (see balances.reverse_settlement).
"""

from decimal import Decimal

from .exceptions import ValidationError
from .records import SettlementType, ensure_record, require_choice


def history(record):
    """Settlement events, most recent first."""
    ensure_record(record)
    # ties keep the most recently appended event first
    return tuple(
        sorted(reversed(record.settlements), key=lambda e: e.settled_at, reverse=True)
    )


def settled_total(record, settlement_type):
    """Net amount settled so far for one settlement type."""
    ensure_record(record)
    require_choice(settlement_type, SettlementType.VALUES, "settlement_type")
    return sum(
        (e.signed_amount for e in record.settlements if e.settlement_type == settlement_type),
        Decimal("0"),
    )


def find_event(record, reference):
    ensure_record(record)
    for event in record.settlements:
        if str(event.reference) == str(reference):
            return event
    raise ValidationError(
        f"Settlement {reference} not found on this vehicle.",
        constraint="settlement_exists",
    )


def is_reversed(record, reference):
    ensure_record(record)
    return any(str(e.reversal_of) == str(reference) for e in record.settlements if e.is_reversal)


def is_settled(record):
    """A ledger is closed once nothing is owed in either direction."""
    ensure_record(record)
    return record.remaining_amount == 0 and record.remaining_amount_to_seller == 0
