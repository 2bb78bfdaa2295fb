from rest_framework import serializers

from vehicles import ledger
from vehicles.ledger import PaymentMode, SettlementType, format_inr
from vehicles.models import PaymentSettlement, Vehicle


def money(value):
    return f"{value:.2f}"


class PaymentSettlementSerializer(serializers.ModelSerializer):
    settled_by_email = serializers.CharField(source='settled_by.email', read_only=True)
    reversal_of = serializers.UUIDField(source='reversal_of.reference', read_only=True, default=None)
    is_reversal = serializers.SerializerMethodField()
    is_reversed = serializers.SerializerMethodField()

    class Meta:
        model = PaymentSettlement
        fields = [
            "reference",
            "settlement_type",
            "amount",
            "payment_mode",
            "settled_at",
            "settled_by",
            "settled_by_email",
            "notes",
            "posted_to_instrument",
            "reversal_of",
            "is_reversal",
            "is_reversed",
        ]
        read_only_fields = fields

    def get_is_reversal(self, obj):
        return obj.reversal_of_id is not None

    def get_is_reversed(self, obj):
        return hasattr(obj, "reversed_by")


class VehicleListSerializer(serializers.ModelSerializer):
    """Minimal details for the inventory and pending-payment listings"""
    remaining_amount_display = serializers.SerializerMethodField()
    remaining_amount_to_seller_display = serializers.SerializerMethodField()

    class Meta:
        model = Vehicle
        fields = [
            "id",
            "vehicle_no",
            "make",
            "model_name",
            "fuel_type",
            "status",
            "customer_name",
            "seller_name",
            "sale_price",
            "sale_date",
            "remaining_amount",
            "remaining_amount_display",
            "remaining_amount_to_seller",
            "remaining_amount_to_seller_display",
            "pending_payment_type",
            "version",
        ]

    def get_remaining_amount_display(self, obj):
        return format_inr(obj.remaining_amount, show_nil=True)

    def get_remaining_amount_to_seller_display(self, obj):
        return format_inr(obj.remaining_amount_to_seller, show_nil=True)


LEDGER_FIELDS = [
    "status",
    "purchase_price",
    "purchase_date",
    "agent_commission",
    "modification_cost",
    "other_cost",
    "sale_price",
    "sale_date",
    "payment_cash",
    "payment_bank_transfer",
    "payment_online",
    "payment_loan",
    "remaining_amount",
    "remaining_amount_to_seller",
    "pending_payment_type",
]


class VehicleDetailSerializer(serializers.ModelSerializer):
    """
    Full vehicle view. Descriptive fields are writable here; everything the
    ledger owns is read-only and changes through the vehicle actions.
    """
    security_cheque = serializers.SerializerMethodField()
    total_payment_received = serializers.SerializerMethodField()
    total_cost = serializers.SerializerMethodField()
    net_profit = serializers.SerializerMethodField()
    margin = serializers.SerializerMethodField()
    is_settled = serializers.BooleanField(read_only=True)
    created_by_email = serializers.CharField(source='created_by.email', read_only=True, default=None)

    class Meta:
        model = Vehicle
        fields = [
            "id",
            "vehicle_no",
            "chassis_no",
            "make",
            "model_name",
            "year",
            "color",
            "fuel_type",
            "kilometers",
            "seller_name",
            "seller_contact",
            "agent_name",
            "deductions_notes",
            "asking_price",
            "customer_name",
            "customer_contact",
            *LEDGER_FIELDS,
            "security_cheque",
            "total_payment_received",
            "total_cost",
            "net_profit",
            "margin",
            "is_settled",
            "version",
            "created_by_email",
            "created",
            "modified",
        ]
        read_only_fields = LEDGER_FIELDS + ["version", "created", "modified"]

    def validate_vehicle_no(self, value):
        normalized = value.replace(" ", "").replace("-", "").upper()
        duplicates = Vehicle.objects.filter(vehicle_no=normalized)
        if self.instance:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError("A vehicle with this number already exists.")
        return normalized

    def get_security_cheque(self, obj):
        return {
            "enabled": obj.security_cheque_enabled,
            "bank_name": obj.security_cheque_bank_name,
            "account_number": obj.security_cheque_account_number,
            "cheque_number": obj.security_cheque_number,
            "amount": money(obj.security_cheque_amount),
        }

    def to_representation(self, instance):
        # one ledger snapshot (one settlements query) per vehicle
        self._record = instance.to_record()
        return super().to_representation(instance)

    def get_total_payment_received(self, obj):
        return money(ledger.total_payment_received(self._record))

    def get_total_cost(self, obj):
        return money(ledger.total_cost(self._record))

    def get_net_profit(self, obj):
        return money(ledger.net_profit(self._record))

    def get_margin(self, obj):
        return money(ledger.margin(self._record))


# -----------------------------------------------------------------------------
# Ledger action payloads
# -----------------------------------------------------------------------------

class VersionedSerializer(serializers.Serializer):
    expected_version = serializers.IntegerField(
        required=False,
        allow_null=True,
        min_value=0,
        help_text="Version the client last saw; stale versions are rejected with 409",
    )


class RecordPurchaseSerializer(VersionedSerializer):
    purchase_price = serializers.DecimalField(max_digits=15, decimal_places=2)
    paid_cash = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, default=0)
    paid_bank_transfer = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, default=0)
    deductions = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, default=0)
    agent_commission = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, default=0)
    modification_cost = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, default=0)
    other_cost = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, default=0)
    purchase_date = serializers.DateTimeField(required=False, allow_null=True)


class PaymentBreakdownSerializer(serializers.Serializer):
    cash = serializers.DecimalField(max_digits=15, decimal_places=2, required=False)
    bankTransfer = serializers.DecimalField(max_digits=15, decimal_places=2, required=False)
    online = serializers.DecimalField(max_digits=15, decimal_places=2, required=False)
    loan = serializers.DecimalField(max_digits=15, decimal_places=2, required=False)


class SecurityChequeSerializer(serializers.Serializer):
    enabled = serializers.BooleanField(default=False)
    bank_name = serializers.CharField(required=False, allow_blank=True, default="")
    account_number = serializers.CharField(required=False, allow_blank=True, default="")
    cheque_number = serializers.CharField(required=False, allow_blank=True, default="")
    amount = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, default=0)


class RecordSaleSerializer(VersionedSerializer):
    sale_price = serializers.DecimalField(max_digits=15, decimal_places=2)
    payment_breakdown = PaymentBreakdownSerializer(required=False)
    security_cheque = SecurityChequeSerializer(required=False, allow_null=True)
    sale_date = serializers.DateTimeField(required=False, allow_null=True)
    customer_name = serializers.CharField(required=False, allow_blank=True)
    customer_contact = serializers.CharField(required=False, allow_blank=True)


class SettleSerializer(VersionedSerializer):
    settlement_type = serializers.ChoiceField(choices=SettlementType.CHOICES)
    amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    payment_mode = serializers.ChoiceField(choices=PaymentMode.CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ReverseSettlementSerializer(VersionedSerializer):
    reference = serializers.UUIDField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")
