# vehicles/services/settlement_service.py

"""
SETTLEMENT SERVICE (PERSISTENCE BOUNDARY)

Runs the ledger functions against stored vehicles.

RULES:
- One writer per vehicle: every mutation locks the row (select_for_update)
  inside a single transaction
- An optional expected_version guards against edits made from a stale screen
- The ledger computes; this module only loads, writes back and appends
  PaymentSettlement rows
- A rejected mutation writes nothing
"""

import logging

from django.db import transaction

from vehicles import ledger
from vehicles.ledger import SecurityCheque
from vehicles.models import PaymentSettlement, Vehicle
from vehicles.services.exceptions import StaleVehicleError, VehicleNotFoundError


logger = logging.getLogger(__name__)


def _locked_vehicle(vehicle_id, expected_version=None):
    try:
        vehicle = Vehicle.objects.select_for_update().get(pk=vehicle_id)
    except Vehicle.DoesNotExist as exc:
        logger.error("Vehicle not found for ledger update", extra={"vehicle_id": vehicle_id})
        raise VehicleNotFoundError(f"Vehicle {vehicle_id} not found") from exc

    if expected_version is not None and int(expected_version) != vehicle.version:
        logger.warning(
            "Rejected stale vehicle update",
            extra={
                "vehicle_id": vehicle_id,
                "expected_version": expected_version,
                "current_version": vehicle.version,
            },
        )
        raise StaleVehicleError(vehicle_id, expected_version, vehicle.version)
    return vehicle


def _commit(vehicle, before, after, user, updates=None):
    """Write `after` back onto the locked row and append its new events."""
    vehicle.apply_record(after)
    for name, value in (updates or {}).items():
        setattr(vehicle, name, value)
    vehicle.modified_by = user
    vehicle.version += 1
    vehicle.save()

    created = []
    for event in after.settlements[len(before.settlements):]:
        reversal_of = None
        if event.reversal_of is not None:
            reversal_of = PaymentSettlement.objects.get(
                vehicle=vehicle, reference=event.reversal_of
            )
        created.append(
            PaymentSettlement.objects.create(
                vehicle=vehicle,
                reference=event.reference,
                settlement_type=event.settlement_type,
                amount=ledger.to_money(event.amount),
                payment_mode=event.payment_mode,
                settled_at=event.settled_at,
                settled_by=user,
                notes=event.notes,
                posted_to_instrument=event.posted_to_instrument,
                reversal_of=reversal_of,
            )
        )
    return created


def _run(operation, vehicle_id, user, expected_version, mutate, updates=None, **context):
    vehicle = _locked_vehicle(vehicle_id, expected_version)
    before = vehicle.to_record()
    try:
        after = mutate(before)
    except ledger.ValidationError as exc:
        logger.warning(
            f"Rejected {operation}",
            extra={
                "vehicle_id": vehicle.pk,
                "user_id": getattr(user, "pk", None),
                "constraint": exc.constraint,
                **context,
            },
        )
        raise
    created = _commit(vehicle, before, after, user, updates)
    logger.info(
        f"Applied {operation}",
        extra={
            "vehicle_id": vehicle.pk,
            "user_id": getattr(user, "pk", None),
            "version": vehicle.version,
            "remaining_amount": str(vehicle.remaining_amount),
            "remaining_amount_to_seller": str(vehicle.remaining_amount_to_seller),
            **context,
        },
    )
    return vehicle, created


@transaction.atomic
def record_purchase(*, vehicle_id, user, purchase_price, expected_version=None, **costs):
    """
    RECORD PURCHASE (atomic)

    `costs` takes paid_cash, paid_bank_transfer, deductions,
    agent_commission, modification_cost, other_cost and purchase_date.
    """
    vehicle, _ = _run(
        "purchase",
        vehicle_id,
        user,
        expected_version,
        lambda record: ledger.record_purchase(record, purchase_price, **costs),
        purchase_price=str(purchase_price),
    )
    return vehicle


@transaction.atomic
def record_sale(
    *,
    vehicle_id,
    user,
    sale_price,
    payment_breakdown=None,
    security_cheque=None,
    sale_date=None,
    customer_name=None,
    customer_contact=None,
    expected_version=None,
):
    """
    RECORD SALE (atomic)

    security_cheque is a dict with enabled, bank_name, account_number,
    cheque_number and amount.
    """
    cheque = SecurityCheque(**security_cheque) if security_cheque else None
    updates = {}
    if customer_name is not None:
        updates["customer_name"] = customer_name
    if customer_contact is not None:
        updates["customer_contact"] = customer_contact
    vehicle, _ = _run(
        "sale",
        vehicle_id,
        user,
        expected_version,
        lambda record: ledger.record_sale(
            record, sale_price, payment_breakdown, cheque, sale_date
        ),
        updates=updates,
        sale_price=str(sale_price),
    )
    return vehicle


@transaction.atomic
def apply_settlement(
    *,
    vehicle_id,
    user,
    settlement_type,
    amount,
    payment_mode,
    notes=None,
    expected_version=None,
):
    """
    SETTLE PART OF A BALANCE (atomic)

    Returns (vehicle, settlement_row).
    """
    vehicle, created = _run(
        "settlement",
        vehicle_id,
        user,
        expected_version,
        lambda record: ledger.apply_settlement(
            record, settlement_type, amount, payment_mode, user.pk, notes
        ),
        settlement_type=settlement_type,
        amount=str(amount),
        payment_mode=payment_mode,
    )
    return vehicle, created[0]


@transaction.atomic
def reverse_settlement(*, vehicle_id, user, reference, notes=None, expected_version=None):
    """
    REVERSE A SETTLEMENT (atomic)

    Returns (vehicle, reversal_row).
    """
    vehicle, created = _run(
        "settlement reversal",
        vehicle_id,
        user,
        expected_version,
        lambda record: ledger.reverse_settlement(record, reference, user.pk, notes),
        reference=str(reference),
    )
    return vehicle, created[0]


@transaction.atomic
def delete_vehicle(*, vehicle_id, user, expected_version=None):
    """Soft delete: the row and its settlements stay for the audit trail."""
    vehicle = _locked_vehicle(vehicle_id, expected_version)
    vehicle.status = ledger.VehicleStatus.DELETED
    vehicle.modified_by = user
    vehicle.version += 1
    vehicle.save()
    logger.info(
        "Vehicle marked deleted",
        extra={"vehicle_id": vehicle.pk, "user_id": getattr(user, "pk", None)},
    )
    return vehicle
