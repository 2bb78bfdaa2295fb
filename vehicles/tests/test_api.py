from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.contrib.auth import get_user_model
from django.db import connection
from django.test import override_settings
from django.test.utils import CaptureQueriesContext
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from vehicles.ledger import PendingPaymentType, SettlementType, VehicleStatus
from vehicles.api.serializers import VehicleDetailSerializer
from vehicles.models import PaymentSettlement, Vehicle
from vehicles.services import settlement_service

User = get_user_model()


class LedgerAPITestCase(APITestCase):
    """
    A vehicle bought for 4,00,000 (3,50,000 paid) and sold for 6,00,000
    (5,00,000 received in cash): the customer owes 1,00,000 and the seller
    is owed 50,000.
    """

    def setUp(self):
        self.admin = User.objects.create_user(
            email="admin@example.com", password="pass", role=User.ADMIN
        )
        self.purchaser = User.objects.create_user(
            email="purchase@example.com", password="pass", role=User.PURCHASE
        )
        self.seller = User.objects.create_user(
            email="sales@example.com", password="pass", role=User.SALES
        )
        self.vehicle = Vehicle.objects.create(
            vehicle_no="MH12AB1234",
            make="Hyundai",
            model_name="Creta",
            fuel_type="Diesel",
            status=VehicleStatus.IN_STOCK,
            created_by=self.purchaser,
        )
        settlement_service.record_purchase(
            vehicle_id=self.vehicle.pk,
            user=self.purchaser,
            purchase_price=Decimal("400000"),
            paid_cash=Decimal("350000"),
        )
        settlement_service.record_sale(
            vehicle_id=self.vehicle.pk,
            user=self.seller,
            sale_price=Decimal("600000"),
            payment_breakdown={"cash": Decimal("500000")},
        )
        self.vehicle.refresh_from_db()

    def settle(self, user, **payload):
        self.client.force_authenticate(user=user)
        return self.client.post(
            reverse("vehicles-settle", args=[self.vehicle.pk]), payload, format="json"
        )


class VehicleCrudAPITests(LedgerAPITestCase):

    def test_purchase_staff_can_create_vehicle(self):
        self.client.force_authenticate(user=self.purchaser)
        response = self.client.post(
            reverse("vehicles-list"),
            {"vehicle_no": "ka 01-ab 9999", "make": "Honda", "model_name": "City"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["vehicle_no"], "KA01AB9999")
        self.assertEqual(response.data["created_by_email"], "purchase@example.com")

    def test_sales_staff_cannot_create_vehicle(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.post(
            reverse("vehicles-list"), {"vehicle_no": "KA01AB9999", "make": "Honda"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_duplicate_vehicle_number_is_rejected(self):
        self.client.force_authenticate(user=self.purchaser)
        response = self.client.post(
            reverse("vehicles-list"), {"vehicle_no": "mh12-ab-1234", "make": "Honda"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("vehicle_no", response.data)

    def test_ledger_fields_are_read_only_on_update(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(
            reverse("vehicles-detail", args=[self.vehicle.pk]),
            {"remaining_amount": "0", "color": "White"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.remaining_amount, Decimal("100000.00"))
        self.assertEqual(self.vehicle.color, "White")

    def test_list_is_paginated(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.get(reverse("vehicles-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["pagination"]["total_items"], 1)
        self.assertEqual(response.data["results"][0]["remaining_amount_display"], "₹1.0L")

    def test_admin_delete_is_soft(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(reverse("vehicles-detail", args=[self.vehicle.pk]))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.status, VehicleStatus.DELETED)

        listing = self.client.get(reverse("vehicles-list"))
        self.assertEqual(listing.data["pagination"]["total_items"], 0)

    def test_detail_reads_settlements_once(self):
        self.settle(
            self.seller,
            settlement_type=SettlementType.FROM_CUSTOMER,
            amount="10000",
            payment_mode="cash",
        )
        vehicle = Vehicle.objects.get(pk=self.vehicle.pk)

        with CaptureQueriesContext(connection) as queries:
            data = VehicleDetailSerializer(vehicle).data

        settlement_reads = [
            q for q in queries.captured_queries if "vehicles_paymentsettlement" in q["sql"]
        ]
        self.assertEqual(len(settlement_reads), 1)
        self.assertEqual(data["total_payment_received"], "510000.00")
        self.assertEqual(data["total_cost"], "400000.00")
        self.assertEqual(data["net_profit"], "110000.00")
        self.assertEqual(data["margin"], "21.57")

    def test_unauthenticated_requests_are_rejected(self):
        response = self.client.get(reverse("vehicles-list"))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class LedgerActionAPITests(LedgerAPITestCase):
    """
    GUARANTEES:
    - Over-amount settlements come back as 400 with the balance details
    - Stale versions come back as 409
    - Each desk only settles its own direction
    - Only admins reverse settlements
    """

    def test_record_sale_on_sold_vehicle_is_rejected(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.post(
            reverse("vehicles-record-sale", args=[self.vehicle.pk]),
            {"sale_price": "700000"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["constraint"], "vehicle_sellable")

    def test_record_purchase_and_sale_with_security_cheque(self):
        vehicle = Vehicle.objects.create(vehicle_no="GJ05CD4321", make="Tata", created_by=self.purchaser)

        self.client.force_authenticate(user=self.purchaser)
        response = self.client.post(
            reverse("vehicles-record-purchase", args=[vehicle.pk]),
            {"purchase_price": "300000", "paid_bank_transfer": "300000", "other_cost": "5000"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["remaining_amount_to_seller"], "0.00")
        self.assertEqual(response.data["version"], 1)

        self.client.force_authenticate(user=self.seller)
        response = self.client.post(
            reverse("vehicles-record-sale", args=[vehicle.pk]),
            {
                "sale_price": "350000",
                "payment_breakdown": {"loan": "300000"},
                "security_cheque": {
                    "enabled": True,
                    "bank_name": "HDFC",
                    "cheque_number": "000123",
                    "amount": "50000",
                },
                "customer_name": "Ravi",
                "expected_version": 1,
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], VehicleStatus.SOLD)
        self.assertEqual(response.data["remaining_amount"], "50000.00")
        self.assertEqual(response.data["pending_payment_type"], PendingPaymentType.FROM_CUSTOMER)
        self.assertTrue(response.data["security_cheque"]["enabled"])
        self.assertEqual(response.data["customer_name"], "Ravi")

    def test_over_amount_is_rejected_with_details(self):
        response = self.settle(
            self.seller,
            settlement_type=SettlementType.FROM_CUSTOMER,
            amount="150000",
            payment_mode="cash",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["constraint"], "amount_within_balance")
        self.assertEqual(response.data["balance"], "remaining_amount")
        self.assertEqual(response.data["requested"], "150000.00")
        self.assertEqual(response.data["available"], "100000.00")
        self.assertFalse(PaymentSettlement.objects.exists())

    def test_non_positive_amount_is_rejected(self):
        response = self.settle(
            self.seller,
            settlement_type=SettlementType.FROM_CUSTOMER,
            amount="0",
            payment_mode="cash",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["constraint"], "amount_positive")

    def test_partial_settlement(self):
        response = self.settle(
            self.seller,
            settlement_type=SettlementType.FROM_CUSTOMER,
            amount="40000",
            payment_mode="online",
            expected_version=2,
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["remaining_amount"], "60000.00")
        self.assertEqual(response.data["payment_online"], "40000.00")
        self.assertEqual(response.data["total_payment_received"], "540000.00")
        self.assertEqual(response.data["version"], 3)
        self.assertEqual(response.data["settlement"]["settled_by_email"], "sales@example.com")
        self.assertTrue(response.data["settlement"]["posted_to_instrument"])

    def test_stale_version_conflicts(self):
        response = self.settle(
            self.seller,
            settlement_type=SettlementType.FROM_CUSTOMER,
            amount="1000",
            payment_mode="cash",
            expected_version=1,
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["constraint"], "version_current")
        self.assertEqual(response.data["current_version"], 2)

    def test_sales_staff_cannot_pay_seller(self):
        response = self.settle(
            self.seller,
            settlement_type=SettlementType.TO_SELLER,
            amount="1000",
            payment_mode="cash",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_purchase_staff_pay_seller(self):
        response = self.settle(
            self.purchaser,
            settlement_type=SettlementType.TO_SELLER,
            amount="50000",
            payment_mode="bankTransfer",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["remaining_amount_to_seller"], "0.00")
        self.assertEqual(response.data["pending_payment_type"], PendingPaymentType.FROM_CUSTOMER)
        self.assertEqual(response.data["total_payment_received"], "500000.00")

    def test_only_admin_reverses(self):
        settled = self.settle(
            self.seller,
            settlement_type=SettlementType.FROM_CUSTOMER,
            amount="40000",
            payment_mode="cash",
        )
        reference = settled.data["settlement"]["reference"]
        url = reverse("vehicles-reverse-settlement", args=[self.vehicle.pk])

        response = self.client.post(url, {"reference": reference}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        response = self.client.post(url, {"reference": reference, "notes": "Wrong vehicle"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["remaining_amount"], "100000.00")
        self.assertEqual(response.data["payment_cash"], "500000.00")
        self.assertEqual(str(response.data["settlement"]["reversal_of"]), reference)

        response = self.client.post(url, {"reference": reference}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["constraint"], "reverse_once")

    def test_settlement_history(self):
        self.settle(self.seller, settlement_type=SettlementType.FROM_CUSTOMER, amount="10000", payment_mode="cash")
        self.settle(self.purchaser, settlement_type=SettlementType.TO_SELLER, amount="20000", payment_mode="cash")

        response = self.client.get(reverse("vehicles-settlements", args=[self.vehicle.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["settlements"]), 2)
        self.assertEqual(response.data["settlements"][0]["settlement_type"], SettlementType.TO_SELLER)
        self.assertEqual(response.data["received_from_customer"], "10000.00")
        self.assertEqual(response.data["paid_to_seller"], "20000.00")
        self.assertFalse(response.data["is_settled"])

    def test_vehicle_profit(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.get(reverse("vehicles-profit", args=[self.vehicle.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total_revenue"], "500000.00")
        self.assertEqual(response.data["total_cost"], "400000.00")
        self.assertEqual(response.data["net_profit"], "100000.00")
        self.assertEqual(response.data["margin"], "20.00")

    def test_profit_of_unsold_vehicle(self):
        vehicle = Vehicle.objects.create(vehicle_no="GJ05CD4321", make="Tata")
        self.client.force_authenticate(user=self.seller)
        response = self.client.get(reverse("vehicles-profit", args=[vehicle.pk]))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PendingPaymentsAPITests(LedgerAPITestCase):

    def pending(self, kind):
        self.client.force_authenticate(user=self.admin)
        return self.client.get(reverse("vehicles-pending-payments"), {"type": kind})

    def test_directions(self):
        self.assertEqual(self.pending("all").data["pagination"]["total_items"], 1)
        self.assertEqual(self.pending("from_customer").data["pagination"]["total_items"], 1)

        self.settle(self.purchaser, settlement_type=SettlementType.TO_SELLER, amount="50000", payment_mode="cash")

        response = self.pending("to_seller")
        self.assertEqual(response.data["pagination"]["total_items"], 0)
        self.assertEqual(response.data["totals"]["to_seller"], "0.00")

        response = self.pending("from_customer")
        self.assertEqual(response.data["totals"]["from_customer"], "100000.00")

    def test_unknown_direction(self):
        response = self.pending("sideways")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["constraint"], "direction")


class ReportAPITests(LedgerAPITestCase):

    def setUp(self):
        super().setUp()
        self.client.force_authenticate(user=self.seller)

    def test_profit_report(self):
        response = self.client.get(reverse("profit-report"), {"result": "profit", "company": "hyundai"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["pagination"]["total_items"], 1)
        self.assertEqual(response.data["summary"]["net_profit"], "100000.00")
        self.assertEqual(response.data["summary"]["total_revenue_display"], "₹5.0L")

    def test_profit_report_loss_filter(self):
        response = self.client.get(reverse("profit-report"), {"result": "loss"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["results"], [])
        self.assertEqual(response.data["summary"]["vehicles_sold"], 0)

    def test_profit_report_rejects_bad_filters(self):
        response = self.client.get(reverse("profit-report"), {"result": "even"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["constraint"], "profit_sign")

        response = self.client.get(reverse("profit-report"), {"start_date": "05/03/2024"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["constraint"], "date_format")

        response = self.client.get(reverse("profit-report"), {"end_date": "2024-02-30"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["constraint"], "date_format")

    def test_profit_report_rejects_non_numeric_ranges(self):
        for name in ("min_margin", "max_margin", "min_price", "max_price"):
            with self.subTest(name=name):
                response = self.client.get(reverse("profit-report"), {name: "abc"})

                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertEqual(response.data["constraint"], "number_format")

        response = self.client.get(reverse("profit-report"), {"min_margin": "NaN"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_profit_report_numeric_ranges(self):
        # the vehicle sold for 6,00,000 at a 20% margin
        response = self.client.get(reverse("profit-report"), {"min_margin": "25"})
        self.assertEqual(response.data["pagination"]["total_items"], 0)

        response = self.client.get(reverse("profit-report"), {"min_price": "550000", "max_margin": "20"})
        self.assertEqual(response.data["pagination"]["total_items"], 1)

    @override_settings(TIME_ZONE="Asia/Kolkata")
    def test_sale_dates_follow_local_calendar(self):
        vehicle = Vehicle.objects.create(vehicle_no="KA05MN0001", make="Tata", status=VehicleStatus.IN_STOCK)
        settlement_service.record_sale(
            vehicle_id=vehicle.pk,
            user=self.seller,
            sale_price=Decimal("300000"),
            payment_breakdown={"cash": Decimal("300000")},
            sale_date=datetime(2024, 1, 1, 2, 0, tzinfo=ZoneInfo("Asia/Kolkata")),
        )

        on_new_year = self.client.get(
            reverse("profit-report"), {"start_date": "2024-01-01", "end_date": "2024-01-01"}
        )
        on_new_years_eve = self.client.get(
            reverse("profit-report"), {"start_date": "2023-12-31", "end_date": "2023-12-31"}
        )

        self.assertEqual(on_new_year.data["pagination"]["total_items"], 1)
        self.assertEqual(on_new_year.data["results"][0]["vehicle_no"], "KA05MN0001")
        self.assertEqual(on_new_years_eve.data["pagination"]["total_items"], 0)

    def test_comparison(self):
        response = self.client.get(reverse("comparison-report"), {"period": "quarterly"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["periods"]), 4)
        self.assertEqual(response.data["periods"][-1]["vehicles_sold"], 1)

    def test_comparison_rejects_unknown_period(self):
        response = self.client.get(reverse("comparison-report"), {"period": "weekly"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["constraint"], "period_type")

    def test_dashboard(self):
        response = self.client.get(reverse("dashboard-stats"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["overview"]["sold"], 1)
        self.assertEqual(response.data["outstanding"]["from_customer"], "100000.00")
        self.assertEqual(response.data["outstanding"]["to_seller"], "50000.00")
        self.assertEqual(response.data["profit"]["vehicles_sold"], 1)


class LoginAPITests(APITestCase):

    def setUp(self):
        self.user = User.objects.create_user(
            email="rajesh@example.com", password="secret123", role=User.PURCHASE
        )

    def test_login_returns_tokens(self):
        response = self.client.post(
            reverse("login"), {"email": "rajesh@example.com", "password": "secret123"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access_token", response.data)
        self.assertIn("refresh_token", response.data)
        self.assertEqual(response.data["role"], User.PURCHASE)
        self.assertTrue(response.data["can_record_purchase"])
        self.assertFalse(response.data["can_record_sale"])

    def test_wrong_password(self):
        response = self.client.post(
            reverse("login"), {"email": "rajesh@example.com", "password": "nope"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
