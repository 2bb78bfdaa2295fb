"""
PROFIT / MARGIN CALCULATOR (READ-ONLY)

Per-vehicle and aggregate profitability of sold vehicles.

- Revenue is total_payment_received (security cheques excluded)
- Cost is recognized at commitment: the full purchase price counts even
  while part of it is still owed to the seller
- Filters are plain predicates over records, AND-composed, never mutating
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from .composition import total_payment_received
from .money import coerce_numeric, percentage
from .records import VehicleSaleRecord, ensure_record, require_choice

ZERO = Decimal("0")


def total_cost(record):
    ensure_record(record)
    return (
        record.purchase_price
        + record.modification_cost
        + record.agent_commission
        + record.other_cost
    )


def net_profit(record):
    return total_payment_received(record) - total_cost(record)


def margin(record):
    """Net profit as a percentage of recognized revenue (0 without revenue)."""
    return percentage(net_profit(record), total_payment_received(record))


@dataclass(frozen=True)
class VehicleProfit:
    record: VehicleSaleRecord
    total_revenue: Decimal
    total_cost: Decimal
    net_profit: Decimal
    margin: Decimal


def vehicle_profit(record):
    revenue = total_payment_received(record)
    cost = total_cost(record)
    return VehicleProfit(
        record=record,
        total_revenue=revenue,
        total_cost=cost,
        net_profit=revenue - cost,
        margin=percentage(revenue - cost, revenue),
    )


@dataclass(frozen=True)
class ProfitSummary:
    vehicles_sold: int
    total_revenue: Decimal
    total_cost: Decimal
    net_profit: Decimal
    margin: Decimal


def aggregate(records):
    rows = [vehicle_profit(r) for r in records]
    revenue = sum((row.total_revenue for row in rows), ZERO)
    cost = sum((row.total_cost for row in rows), ZERO)
    profit = sum((row.net_profit for row in rows), ZERO)
    return ProfitSummary(
        vehicles_sold=len(rows),
        total_revenue=revenue,
        total_cost=cost,
        net_profit=profit,
        margin=percentage(profit, revenue),
    )


# ============================================================
# FILTERS
# ============================================================

def _as_date(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def sale_date_between(start=None, end=None):
    """Inclusive on both ends; records without a sale date never match."""
    start, end = _as_date(start), _as_date(end)

    def predicate(record):
        sold_on = _as_date(record.sale_date)
        if sold_on is None:
            return False
        if start and sold_on < start:
            return False
        if end and sold_on > end:
            return False
        return True

    return predicate


def company_is(company):
    wanted = (company or "").strip().lower()
    return lambda record: (record.make or "").strip().lower() == wanted


def fuel_type_is(fuel_type):
    wanted = (fuel_type or "").strip().lower()
    return lambda record: (record.fuel_type or "").strip().lower() == wanted


def margin_between(low=None, high=None):
    low = coerce_numeric(low) if low is not None else None
    high = coerce_numeric(high) if high is not None else None

    def predicate(record):
        value = margin(record)
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False
        return True

    return predicate


PROFIT = "profit"
LOSS = "loss"


def profit_sign(sign):
    require_choice(sign, (PROFIT, LOSS), "profit_sign")
    if sign == PROFIT:
        return lambda record: net_profit(record) > 0
    return lambda record: net_profit(record) < 0


def sale_price_between(low=None, high=None):
    low = coerce_numeric(low) if low is not None else None
    high = coerce_numeric(high) if high is not None else None

    def predicate(record):
        if low is not None and record.sale_price < low:
            return False
        if high is not None and record.sale_price > high:
            return False
        return True

    return predicate


def all_of(*predicates):
    return lambda record: all(p(record) for p in predicates)


# ============================================================
# LISTINGS
# ============================================================

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _sale_sort_key(record):
    value = record.sale_date
    if value is None:
        return EPOCH
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def by_sale_date(records):
    """Newest sale first; a missing sale date sorts as the epoch (last)."""
    return sorted(records, key=_sale_sort_key, reverse=True)


def sold_vehicles(records, *predicates):
    matches = all_of(*predicates)
    sold = [ensure_record(r) for r in records if r is not None and r.is_sold]
    return by_sale_date(r for r in sold if matches(r))


ALL = "all"
FROM_CUSTOMER = "from_customer"
TO_SELLER = "to_seller"


def pending_payments(records, direction=ALL):
    """Vehicles that still have an open balance in the given direction."""
    require_choice(direction, (ALL, FROM_CUSTOMER, TO_SELLER), "direction")
    result = []
    for record in records:
        ensure_record(record)
        owed_by_customer = record.remaining_amount > 0
        owed_to_seller = record.remaining_amount_to_seller > 0
        if direction == FROM_CUSTOMER and not owed_by_customer:
            continue
        if direction == TO_SELLER and not owed_to_seller:
            continue
        if not (owed_by_customer or owed_to_seller):
            continue
        result.append(record)
    return by_sale_date(result)


# ============================================================
# PERIOD COMPARISON
# ============================================================

SIX_MONTHS = "6months"
QUARTERLY = "quarterly"
YEARLY = "yearly"


@dataclass(frozen=True)
class Period:
    label: str
    start: date
    end: date


def _shift_month(year, month, offset):
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def _month_end(year, month):
    return date(year, month, calendar.monthrange(year, month)[1])


def period_ranges(period_type, end=None):
    """Oldest period first."""
    require_choice(period_type, (SIX_MONTHS, QUARTERLY, YEARLY), "period_type")
    end = _as_date(end) or date.today()
    periods = []
    if period_type == SIX_MONTHS:
        for offset in range(-5, 1):
            year, month = _shift_month(end.year, end.month, offset)
            start = date(year, month, 1)
            periods.append(Period(start.strftime("%b %Y"), start, _month_end(year, month)))
    elif period_type == QUARTERLY:
        current = (end.month - 1) // 3
        for offset in range(-3, 1):
            year = end.year + (current + offset) // 4
            quarter = (current + offset) % 4
            first_month = quarter * 3 + 1
            periods.append(
                Period(
                    f"Q{quarter + 1} {year}",
                    date(year, first_month, 1),
                    _month_end(year, first_month + 2),
                )
            )
    else:
        for year in range(end.year - 2, end.year + 1):
            periods.append(Period(str(year), date(year, 1, 1), date(year, 12, 31)))
    return periods


@dataclass(frozen=True)
class PeriodMetrics:
    total_revenue: Decimal
    total_cost: Decimal
    net_profit: Decimal
    profit_margin: Decimal
    vehicles_sold: int
    vehicles_purchased: int
    total_expenses: Decimal
    avg_sale_price: Decimal


def _created_within(record, start, end):
    created = _as_date(record.created_at)
    return created is not None and start <= created <= end


def period_metrics(records, start, end):
    """
    Sales are counted by sale date, purchases by the date the vehicle was
    added. Expenses are the non-purchase costs of vehicles purchased in the
    period.
    """
    records = list(records)
    start, end = _as_date(start), _as_date(end)
    sold = sold_vehicles(records, sale_date_between(start, end))
    summary = aggregate(sold)
    purchased = [r for r in records if _created_within(r, start, end)]
    expenses = sum(
        (r.agent_commission + r.modification_cost + r.other_cost for r in purchased),
        ZERO,
    )
    average = summary.total_revenue / len(sold) if sold else ZERO
    return PeriodMetrics(
        total_revenue=summary.total_revenue,
        total_cost=summary.total_cost,
        net_profit=summary.net_profit,
        profit_margin=summary.margin,
        vehicles_sold=summary.vehicles_sold,
        vehicles_purchased=len(purchased),
        total_expenses=expenses,
        avg_sale_price=average,
    )


@dataclass(frozen=True)
class PeriodComparison:
    period: Period
    metrics: PeriodMetrics


def comparison_matrix(records, period_type, end=None):
    records = list(records)
    return [
        PeriodComparison(period, period_metrics(records, period.start, period.end))
        for period in period_ranges(period_type, end)
    ]
