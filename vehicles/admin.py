from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from vehicles.api.serializers import LEDGER_FIELDS
from vehicles.ledger import PendingPaymentType, VehicleStatus, format_inr
from vehicles.models import PaymentSettlement, Vehicle


class PaymentSettlementInline(admin.TabularInline):
    """Read-only settlement history; corrections go through reversals"""
    model = PaymentSettlement
    fk_name = 'vehicle'
    extra = 0
    can_delete = False
    fields = ("settled_at", "settlement_type", "amount", "payment_mode", "settled_by", "reversal_of", "notes")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('settled_by', 'reversal_of')


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):

    list_display = (
        "vehicle_info", "status_badge", "financial_summary", "pending_badge", "profit_status"
    )
    list_filter = ("status", "fuel_type", "pending_payment_type", "make")
    search_fields = ("vehicle_no", "make", "model_name", "customer_name", "seller_name")
    ordering = ("-created",)

    fieldsets = (
        ('Basic Information', {
            'fields': (('vehicle_no', 'chassis_no'), ('make', 'model_name'), ('year', 'color'), ('fuel_type', 'kilometers'))
        }),
        ('Purchase', {
            'fields': (
                ('seller_name', 'seller_contact'),
                ('agent_name', 'asking_price'),
                'deductions_notes',
                ('purchase_price', 'purchase_date'),
                ('agent_commission', 'modification_cost', 'other_cost'),
            ),
        }),
        ('Sale', {
            'fields': (
                ('customer_name', 'customer_contact'),
                ('sale_price', 'sale_date'),
                ('payment_cash', 'payment_bank_transfer'),
                ('payment_online', 'payment_loan'),
            ),
        }),
        ('Security Cheque', {
            'fields': (
                'security_cheque_enabled',
                ('security_cheque_bank_name', 'security_cheque_account_number'),
                ('security_cheque_number', 'security_cheque_amount'),
            ),
            'classes': ('collapse',)
        }),
        ('Balances', {
            'fields': (
                ('remaining_amount', 'remaining_amount_to_seller'),
                ('status', 'pending_payment_type'),
                'version',
            ),
            'description': 'Maintained by the settlement ledger. Use the API actions to change them.'
        }),
    )

    readonly_fields = tuple(LEDGER_FIELDS) + (
        "security_cheque_enabled",
        "security_cheque_bank_name",
        "security_cheque_account_number",
        "security_cheque_number",
        "security_cheque_amount",
        "version",
    )

    inlines = [PaymentSettlementInline]

    def has_delete_permission(self, request, obj=None):
        return False

    def vehicle_info(self, obj):
        return format_html(
            '<strong>{} {}</strong><br>'
            '<small style="color: #666;">{}</small>',
            obj.make, obj.model_name or '', obj.vehicle_no
        )
    vehicle_info.short_description = 'Vehicle'

    def status_badge(self, obj):
        colors = {
            VehicleStatus.IN_STOCK: '#28a745',
            VehicleStatus.RESERVED: '#ffc107',
            VehicleStatus.SOLD: '#dc3545',
            VehicleStatus.ON_MODIFICATION: '#17a2b8',
        }
        color = colors.get(obj.status, '#6c757d')
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; '
            'border-radius: 3px; font-size: 11px; font-weight: bold;">{}</span>',
            color, obj.status.upper()
        )
    status_badge.short_description = 'Status'

    def financial_summary(self, obj):
        return format_html(
            '<div style="font-size: 12px;">'
            '<strong>Bought: {}</strong><br>'
            '<span style="color: #28a745;">Sold: {}</span>'
            '</div>',
            format_inr(obj.purchase_price, show_nil=True),
            format_inr(obj.sale_price, show_nil=True),
        )
    financial_summary.short_description = 'Financials'

    def pending_badge(self, obj):
        if obj.pending_payment_type == PendingPaymentType.NONE:
            return format_html('<span style="color: #28a745;">Settled</span>')
        return format_html(
            '<span style="color: #dc3545; font-weight: bold;">{}</span><br>'
            '<small>Customer: {} / Seller: {}</small>',
            obj.get_pending_payment_type_display(),
            format_inr(obj.remaining_amount, show_nil=True),
            format_inr(obj.remaining_amount_to_seller, show_nil=True),
        )
    pending_badge.short_description = 'Pending'

    def profit_status(self, obj):
        if obj.status != VehicleStatus.SOLD:
            return format_html('<span style="color: #6c757d;">Not Sold</span>')
        profit = obj.net_profit
        color = '#28a745' if profit > 0 else '#dc3545'
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span> <small>({}%)</small>',
            color, format_inr(profit), obj.margin
        )
    profit_status.short_description = 'Profit/Loss'


@admin.register(PaymentSettlement)
class PaymentSettlementAdmin(admin.ModelAdmin):
    """Audit view of every settlement. Rows cannot be edited or deleted."""

    list_display = ("reference", "vehicle_link", "settlement_type", "amount", "payment_mode", "settled_by", "settled_at", "is_reversal")
    list_filter = ("settlement_type", "payment_mode", "settled_at")
    search_fields = ("vehicle__vehicle_no", "settled_by__email", "notes")
    ordering = ("-settled_at",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('vehicle', 'settled_by')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def vehicle_link(self, obj):
        url = reverse('admin:vehicles_vehicle_change', args=[obj.vehicle.pk])
        return format_html('<a href="{}">{}</a>', url, obj.vehicle.vehicle_no)
    vehicle_link.short_description = 'Vehicle'

    def is_reversal(self, obj):
        return obj.reversal_of_id is not None
    is_reversal.boolean = True
    is_reversal.short_description = 'Reversal'
