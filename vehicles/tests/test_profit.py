from datetime import date, datetime, timezone
from decimal import Decimal

from django.test import SimpleTestCase

from vehicles import ledger
from vehicles.ledger import ValidationError, VehicleSaleRecord, VehicleStatus
from vehicles.ledger import profit as reports


def sold(vehicle_no, *, revenue, purchase_price, sale_date=None, **extra):
    values = {
        "vehicle_no": vehicle_no,
        "make": "Maruti Suzuki",
        "fuel_type": "Petrol",
        "status": VehicleStatus.SOLD,
        "purchase_price": purchase_price,
        "sale_price": revenue,
        "payment_cash": revenue,
        "sale_date": sale_date,
    }
    values.update(extra)
    return VehicleSaleRecord(**values)


def on(year, month, day):
    return datetime(year, month, day, 10, 30, tzinfo=timezone.utc)


class ProfitCalculationTests(SimpleTestCase):
    """
    GUARANTEES:
    - Cost counts the full purchase price, owed or not
    - Margin is profit over received revenue, 0 without revenue
    - Aggregate margin is total profit over total revenue
    """

    def setUp(self):
        self.winner = sold(
            "KA01AA0001",
            revenue=600000,
            purchase_price=500000,
            modification_cost=20000,
            agent_commission=10000,
            other_cost=0,
            remaining_amount_to_seller=50000,
            sale_date=on(2024, 3, 5),
        )
        self.loser = sold(
            "KA01AA0002",
            revenue=80000,
            purchase_price=100000,
            sale_date=on(2024, 2, 1),
            make="Tata",
            fuel_type="CNG",
        )

    def test_single_vehicle_profit(self):
        self.assertEqual(ledger.total_cost(self.winner), Decimal("530000"))
        self.assertEqual(ledger.net_profit(self.winner), Decimal("70000"))
        self.assertEqual(ledger.margin(self.winner), Decimal("11.67"))

        row = ledger.vehicle_profit(self.winner)
        self.assertEqual(row.total_revenue, Decimal("600000"))
        self.assertEqual(row.net_profit, Decimal("70000"))
        self.assertEqual(row.margin, Decimal("11.67"))

    def test_loss_gives_negative_margin(self):
        self.assertEqual(ledger.net_profit(self.loser), Decimal("-20000"))
        self.assertEqual(ledger.margin(self.loser), Decimal("-25.00"))

    def test_margin_without_revenue_is_zero(self):
        unpaid = sold("KA01AA0003", revenue=0, purchase_price=100000)

        self.assertEqual(ledger.margin(unpaid), Decimal("0"))

    def test_aggregate(self):
        summary = ledger.aggregate([self.winner, self.loser])

        self.assertEqual(summary.vehicles_sold, 2)
        self.assertEqual(summary.total_revenue, Decimal("680000"))
        self.assertEqual(summary.total_cost, Decimal("630000"))
        self.assertEqual(summary.net_profit, Decimal("50000"))
        self.assertEqual(summary.margin, Decimal("7.35"))

    def test_aggregate_of_nothing(self):
        summary = ledger.aggregate([])

        self.assertEqual(summary.vehicles_sold, 0)
        self.assertEqual(summary.margin, Decimal("0"))


class SoldVehicleFilterTests(SimpleTestCase):

    def setUp(self):
        self.march = sold("A1", revenue=600000, purchase_price=500000, sale_date=on(2024, 3, 5), make="Hyundai")
        self.feb = sold("A2", revenue=80000, purchase_price=100000, sale_date=on(2024, 2, 1), fuel_type="CNG")
        self.undated = sold("A3", revenue=300000, purchase_price=250000)
        self.in_stock = VehicleSaleRecord(vehicle_no="A4", status=VehicleStatus.IN_STOCK)
        self.records = [self.feb, self.undated, self.in_stock, self.march]

    def vehicle_nos(self, *predicates):
        return [r.vehicle_no for r in ledger.sold_vehicles(self.records, *predicates)]

    def test_only_sold_vehicles_newest_first_undated_last(self):
        self.assertEqual(self.vehicle_nos(), ["A1", "A2", "A3"])

    def test_sale_date_range_is_inclusive(self):
        self.assertEqual(
            self.vehicle_nos(reports.sale_date_between(date(2024, 2, 1), date(2024, 2, 29))),
            ["A2"],
        )
        self.assertEqual(self.vehicle_nos(reports.sale_date_between(start=date(2024, 3, 5))), ["A1"])

    def test_company_is_case_insensitive(self):
        self.assertEqual(self.vehicle_nos(reports.company_is("hyundai")), ["A1"])

    def test_fuel_type(self):
        self.assertEqual(self.vehicle_nos(reports.fuel_type_is("cng")), ["A2"])

    def test_profit_and_loss(self):
        self.assertEqual(self.vehicle_nos(reports.profit_sign(reports.PROFIT)), ["A1", "A3"])
        self.assertEqual(self.vehicle_nos(reports.profit_sign(reports.LOSS)), ["A2"])

        with self.assertRaises(ValidationError):
            reports.profit_sign("break-even")

    def test_margin_band(self):
        # A1 margin 16.67, A3 16.67, A2 -25
        self.assertEqual(self.vehicle_nos(reports.margin_between(low=0)), ["A1", "A3"])
        self.assertEqual(self.vehicle_nos(reports.margin_between(high=0)), ["A2"])

    def test_sale_price_range(self):
        self.assertEqual(self.vehicle_nos(reports.sale_price_between(100000, 400000)), ["A3"])

    def test_filters_combine_with_and(self):
        self.assertEqual(
            self.vehicle_nos(reports.profit_sign(reports.PROFIT), reports.company_is("Maruti Suzuki")),
            ["A3"],
        )

    def test_filtering_never_changes_records(self):
        before = list(self.records)
        self.vehicle_nos(reports.company_is("hyundai"), reports.margin_between(0, 50))

        self.assertEqual(self.records, before)


class PendingPaymentListingTests(SimpleTestCase):

    def setUp(self):
        self.customer_owes = sold("P1", revenue=500000, purchase_price=1, remaining_amount=100000, sale_date=on(2024, 1, 2))
        self.seller_owed = sold("P2", revenue=500000, purchase_price=1, remaining_amount_to_seller=50000, sale_date=on(2024, 1, 3))
        self.settled = sold("P3", revenue=500000, purchase_price=1, sale_date=on(2024, 1, 4))
        self.records = [self.customer_owes, self.seller_owed, self.settled]

    def test_directions(self):
        def nos(direction):
            return [r.vehicle_no for r in ledger.pending_payments(self.records, direction)]

        self.assertEqual(nos(reports.ALL), ["P2", "P1"])
        self.assertEqual(nos(reports.FROM_CUSTOMER), ["P1"])
        self.assertEqual(nos(reports.TO_SELLER), ["P2"])

    def test_unknown_direction(self):
        with self.assertRaises(ValidationError) as ctx:
            ledger.pending_payments(self.records, "sideways")
        self.assertEqual(ctx.exception.constraint, "direction")


class PeriodComparisonTests(SimpleTestCase):

    def test_six_month_ranges(self):
        periods = reports.period_ranges(reports.SIX_MONTHS, date(2024, 2, 15))

        self.assertEqual([p.label for p in periods], [
            "Sep 2023", "Oct 2023", "Nov 2023", "Dec 2023", "Jan 2024", "Feb 2024",
        ])
        self.assertEqual(periods[0].start, date(2023, 9, 1))
        self.assertEqual(periods[-1].end, date(2024, 2, 29))

    def test_quarterly_ranges_cross_year_boundary(self):
        periods = reports.period_ranges(reports.QUARTERLY, date(2024, 2, 15))

        self.assertEqual([p.label for p in periods], ["Q2 2023", "Q3 2023", "Q4 2023", "Q1 2024"])
        self.assertEqual(periods[0].start, date(2023, 4, 1))
        self.assertEqual(periods[-1].end, date(2024, 3, 31))

    def test_yearly_ranges(self):
        periods = reports.period_ranges(reports.YEARLY, date(2024, 6, 1))

        self.assertEqual([p.label for p in periods], ["2022", "2023", "2024"])
        self.assertEqual(periods[-1].end, date(2024, 12, 31))

    def test_unknown_period(self):
        with self.assertRaises(ValidationError) as ctx:
            ledger.comparison_matrix([], "weekly")
        self.assertEqual(ctx.exception.constraint, "period_type")

    def test_period_metrics(self):
        sold_in_jan = sold(
            "C1",
            revenue=400000,
            purchase_price=300000,
            agent_commission=10000,
            sale_date=on(2024, 1, 10),
            created_at=on(2023, 12, 1),
        )
        bought_in_jan = VehicleSaleRecord(
            vehicle_no="C2",
            status=VehicleStatus.IN_STOCK,
            purchase_price=200000,
            modification_cost=5000,
            created_at=on(2024, 1, 5),
        )

        matrix = ledger.comparison_matrix([sold_in_jan, bought_in_jan], reports.SIX_MONTHS, date(2024, 1, 31))
        january = matrix[-1]
        december = matrix[-2]

        self.assertEqual(len(matrix), 6)
        self.assertEqual(january.period.label, "Jan 2024")
        self.assertEqual(january.metrics.vehicles_sold, 1)
        self.assertEqual(january.metrics.vehicles_purchased, 1)
        self.assertEqual(january.metrics.total_revenue, Decimal("400000"))
        self.assertEqual(january.metrics.net_profit, Decimal("90000"))
        self.assertEqual(january.metrics.profit_margin, Decimal("22.50"))
        self.assertEqual(january.metrics.total_expenses, Decimal("5000"))
        self.assertEqual(january.metrics.avg_sale_price, Decimal("400000"))

        self.assertEqual(december.metrics.vehicles_sold, 0)
        self.assertEqual(december.metrics.vehicles_purchased, 1)
        self.assertEqual(december.metrics.total_expenses, Decimal("10000"))
        self.assertEqual(december.metrics.avg_sale_price, Decimal("0"))
