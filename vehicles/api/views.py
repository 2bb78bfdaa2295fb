import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.core.paginator import Paginator
from django.db.models import Q, Sum
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from auths.api.permissions import VehiclePermission
from vehicles import ledger
from vehicles.ledger import SettlementType, VehicleStatus, format_inr
from vehicles.ledger import profit as reports
from vehicles.models import Vehicle
from vehicles.services import settlement_service
from vehicles.services.exceptions import StaleVehicleError
from .serializers import (
    PaymentSettlementSerializer,
    RecordPurchaseSerializer,
    RecordSaleSerializer,
    ReverseSettlementSerializer,
    SettleSerializer,
    VehicleDetailSerializer,
    VehicleListSerializer,
    money,
)

logger = logging.getLogger(__name__)


def ledger_error_response(exc):
    """Business-rule failures go back to the client, they are not server errors."""
    if isinstance(exc, StaleVehicleError):
        return Response(exc.as_dict(), status=status.HTTP_409_CONFLICT)
    return Response(exc.as_dict(), status=status.HTTP_400_BAD_REQUEST)


def paginate(request, items, serialize):
    page_size = int(request.query_params.get('page_size', settings.VEHICLES_PAGE_SIZE))
    page_number = request.query_params.get('page', 1)

    paginator = Paginator(items, page_size)
    page_obj = paginator.get_page(page_number)

    return {
        'results': [serialize(item) for item in page_obj],
        'pagination': {
            'current_page': page_obj.number,
            'total_pages': paginator.num_pages,
            'total_items': paginator.count,
            'page_size': page_size,
            'has_next': page_obj.has_next(),
            'has_previous': page_obj.has_previous(),
            'next_page': page_obj.next_page_number() if page_obj.has_next() else None,
            'previous_page': page_obj.previous_page_number() if page_obj.has_previous() else None
        }
    }


def active_vehicles():
    return Vehicle.objects.exclude(status=VehicleStatus.DELETED)


def profit_row(row):
    record = row.record
    return {
        "id": record.pk,
        "vehicle_no": record.vehicle_no,
        "make": record.make,
        "model": record.model,
        "fuel_type": record.fuel_type,
        "sale_date": record.sale_date,
        "sale_price": money(record.sale_price),
        "total_revenue": money(row.total_revenue),
        "total_cost": money(row.total_cost),
        "net_profit": money(row.net_profit),
        "net_profit_display": format_inr(row.net_profit),
        "margin": money(row.margin),
    }


def summary_dict(summary):
    return {
        "vehicles_sold": summary.vehicles_sold,
        "total_revenue": money(summary.total_revenue),
        "total_revenue_display": format_inr(summary.total_revenue),
        "total_cost": money(summary.total_cost),
        "net_profit": money(summary.net_profit),
        "net_profit_display": format_inr(summary.net_profit),
        "margin": money(summary.margin),
    }


class VehicleViewSet(viewsets.ModelViewSet):
    """
    Vehicles and their payment ledger.

    Standard CRUD covers descriptive fields only. Money moves through:
    - POST /vehicles/{id}/record_purchase/
    - POST /vehicles/{id}/record_sale/
    - POST /vehicles/{id}/settle/
    - POST /vehicles/{id}/reverse_settlement/ (admin)
    - GET /vehicles/{id}/settlements/
    - GET /vehicles/{id}/profit/
    - GET /vehicles/pending_payments/?type=all|from_customer|to_seller
    """
    permission_classes = [VehiclePermission]
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_serializer_class(self):
        if self.action in ['list', 'pending_payments']:
            return VehicleListSerializer
        return VehicleDetailSerializer

    def get_queryset(self):
        queryset = active_vehicles().select_related('created_by')

        vehicle_status = self.request.query_params.get('status')
        if vehicle_status:
            queryset = queryset.filter(status=vehicle_status)

        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(vehicle_no__icontains=search) |
                Q(make__icontains=search) |
                Q(model_name__icontains=search) |
                Q(customer_name__icontains=search) |
                Q(seller_name__icontains=search)
            )

        if self.action in ['retrieve', 'profit', 'pending_payments']:
            return queryset.prefetch_related('settlements__reversal_of')
        return queryset

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        serializer_class = self.get_serializer_class()
        context = self.get_serializer_context()
        data = paginate(
            request,
            queryset,
            lambda vehicle: serializer_class(vehicle, context=context).data,
        )
        return Response(data, status=status.HTTP_200_OK)

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user, modified_by=self.request.user)

    def perform_update(self, serializer):
        serializer.save(
            modified_by=self.request.user,
            version=serializer.instance.version + 1,
        )

    def destroy(self, request, *args, **kwargs):
        vehicle = self.get_object()
        try:
            settlement_service.delete_vehicle(
                vehicle_id=vehicle.pk,
                user=request.user,
                expected_version=request.query_params.get('expected_version'),
            )
        except StaleVehicleError as exc:
            return ledger_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _detail(self, vehicle, status_code=status.HTTP_200_OK, **extra):
        data = VehicleDetailSerializer(vehicle, context=self.get_serializer_context()).data
        return Response({**data, **extra}, status=status_code)

    @action(detail=True, methods=['post'])
    def record_purchase(self, request, pk=None):
        """Fix the purchase costs and open the balance owed to the seller"""
        vehicle = self.get_object()
        serializer = RecordPurchaseSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            vehicle = settlement_service.record_purchase(
                vehicle_id=vehicle.pk,
                user=request.user,
                **serializer.validated_data,
            )
        except (ledger.ValidationError, StaleVehicleError) as exc:
            return ledger_error_response(exc)
        return self._detail(vehicle)

    @action(detail=True, methods=['post'])
    def record_sale(self, request, pk=None):
        """Mark the vehicle sold and open the balance owed by the customer"""
        vehicle = self.get_object()
        serializer = RecordSaleSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            vehicle = settlement_service.record_sale(
                vehicle_id=vehicle.pk,
                user=request.user,
                sale_price=data['sale_price'],
                payment_breakdown=data.get('payment_breakdown'),
                security_cheque=data.get('security_cheque'),
                sale_date=data.get('sale_date'),
                customer_name=data.get('customer_name'),
                customer_contact=data.get('customer_contact'),
                expected_version=data.get('expected_version'),
            )
        except (ledger.ValidationError, StaleVehicleError) as exc:
            return ledger_error_response(exc)
        return self._detail(vehicle)

    @action(detail=True, methods=['post'])
    def settle(self, request, pk=None):
        """Record a partial or full payment against one of the two balances"""
        vehicle = self.get_object()
        serializer = SettleSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            vehicle, settlement = settlement_service.apply_settlement(
                vehicle_id=vehicle.pk,
                user=request.user,
                **serializer.validated_data,
            )
        except (ledger.ValidationError, StaleVehicleError) as exc:
            return ledger_error_response(exc)
        return self._detail(
            vehicle,
            status.HTTP_201_CREATED,
            settlement=PaymentSettlementSerializer(settlement).data,
        )

    @action(detail=True, methods=['post'])
    def reverse_settlement(self, request, pk=None):
        """Cancel a mistaken settlement with a compensating entry (admin only)"""
        vehicle = self.get_object()
        serializer = ReverseSettlementSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            vehicle, reversal = settlement_service.reverse_settlement(
                vehicle_id=vehicle.pk,
                user=request.user,
                **serializer.validated_data,
            )
        except (ledger.ValidationError, StaleVehicleError) as exc:
            return ledger_error_response(exc)
        return self._detail(
            vehicle,
            status.HTTP_201_CREATED,
            settlement=PaymentSettlementSerializer(reversal).data,
        )

    @action(detail=True, methods=['get'])
    def settlements(self, request, pk=None):
        """Settlement history, newest first, with net totals per direction"""
        vehicle = self.get_object()
        rows = vehicle.settlements.select_related('settled_by', 'reversal_of', 'reversed_by')
        record = vehicle.to_record()

        return Response({
            "vehicle_id": vehicle.id,
            "vehicle_no": vehicle.vehicle_no,
            "remaining_amount": money(vehicle.remaining_amount),
            "remaining_amount_to_seller": money(vehicle.remaining_amount_to_seller),
            "pending_payment_type": vehicle.pending_payment_type,
            "is_settled": ledger.is_settled(record),
            "received_from_customer": money(
                ledger.settled_total(record, SettlementType.FROM_CUSTOMER)
            ),
            "paid_to_seller": money(ledger.settled_total(record, SettlementType.TO_SELLER)),
            "settlements": PaymentSettlementSerializer(rows, many=True).data,
        }, status=status.HTTP_200_OK)

    @action(detail=True, methods=['get'])
    def profit(self, request, pk=None):
        """Revenue, cost, profit and margin for one vehicle"""
        vehicle = self.get_object()
        if vehicle.status != VehicleStatus.SOLD:
            return Response(
                {"error": "Vehicle has not been sold yet"},
                status=status.HTTP_400_BAD_REQUEST
            )
        row = ledger.vehicle_profit(vehicle.to_record())
        return Response(profit_row(row), status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'])
    def pending_payments(self, request):
        """Vehicles with money still owed in either direction"""
        direction = request.query_params.get('type', reports.ALL)
        queryset = self.get_queryset().filter(
            Q(remaining_amount__gt=0) | Q(remaining_amount_to_seller__gt=0)
        )
        vehicles = {vehicle.pk: vehicle for vehicle in queryset}

        try:
            records = reports.pending_payments(
                [vehicle.to_record() for vehicle in vehicles.values()], direction
            )
        except ledger.ValidationError as exc:
            return ledger_error_response(exc)

        context = self.get_serializer_context()
        data = paginate(
            request,
            records,
            lambda record: VehicleListSerializer(vehicles[record.pk], context=context).data,
        )
        data["totals"] = {
            "from_customer": money(sum(r.remaining_amount for r in records)),
            "to_seller": money(sum(r.remaining_amount_to_seller for r in records)),
        }
        return Response(data, status=status.HTTP_200_OK)


class ProfitReportAPIView(APIView):
    """
    Profit report over sold vehicles.

    Query params (all optional, AND-combined): start_date, end_date
    (YYYY-MM-DD), company, fuel_type, min_margin, max_margin,
    result=profit|loss, min_price, max_price, page, page_size.
    """
    permission_classes = [IsAuthenticated]

    def _number(self, params, name):
        raw = params.get(name)
        if not raw:
            return None
        try:
            value = Decimal(raw)
        except InvalidOperation:
            value = None
        if value is None or not value.is_finite():
            raise ledger.ValidationError(
                f"{name} must be a number.",
                constraint="number_format",
            )
        return value

    def _predicates(self, params):
        predicates = []
        start_date, end_date = params.get('start_date'), params.get('end_date')
        if start_date or end_date:
            try:
                start = parse_date(start_date) if start_date else None
                end = parse_date(end_date) if end_date else None
            except ValueError:
                start = end = None
            if (start_date and start is None) or (end_date and end is None):
                raise ledger.ValidationError(
                    "Dates must be in YYYY-MM-DD format.",
                    constraint="date_format",
                )
            predicates.append(reports.sale_date_between(start, end))
        if params.get('company'):
            predicates.append(reports.company_is(params['company']))
        if params.get('fuel_type'):
            predicates.append(reports.fuel_type_is(params['fuel_type']))
        min_margin, max_margin = self._number(params, "min_margin"), self._number(params, "max_margin")
        if min_margin is not None or max_margin is not None:
            predicates.append(reports.margin_between(min_margin, max_margin))
        if params.get('result'):
            predicates.append(reports.profit_sign(params['result']))
        min_price, max_price = self._number(params, "min_price"), self._number(params, "max_price")
        if min_price is not None or max_price is not None:
            predicates.append(reports.sale_price_between(min_price, max_price))
        return predicates

    def get(self, request):
        try:
            predicates = self._predicates(request.query_params)
        except ledger.ValidationError as exc:
            return ledger_error_response(exc)

        vehicles = Vehicle.objects.filter(status=VehicleStatus.SOLD).prefetch_related(
            'settlements__reversal_of'
        )
        records = ledger.sold_vehicles((v.to_record() for v in vehicles), *predicates)

        data = paginate(request, [ledger.vehicle_profit(r) for r in records], profit_row)
        data["summary"] = summary_dict(ledger.aggregate(records))
        return Response(data, status=status.HTTP_200_OK)


class ComparisonReportAPIView(APIView):
    """Side-by-side metrics for the last 6 months, 4 quarters or 3 years"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        period = request.query_params.get('period', reports.SIX_MONTHS)
        vehicles = active_vehicles().prefetch_related('settlements__reversal_of')
        try:
            matrix = ledger.comparison_matrix(
                [v.to_record() for v in vehicles], period, timezone.localdate()
            )
        except ledger.ValidationError as exc:
            return ledger_error_response(exc)

        return Response({
            "period_type": period,
            "periods": [
                {
                    "label": entry.period.label,
                    "start": entry.period.start,
                    "end": entry.period.end,
                    "total_revenue": money(entry.metrics.total_revenue),
                    "total_cost": money(entry.metrics.total_cost),
                    "net_profit": money(entry.metrics.net_profit),
                    "profit_margin": money(entry.metrics.profit_margin),
                    "vehicles_sold": entry.metrics.vehicles_sold,
                    "vehicles_purchased": entry.metrics.vehicles_purchased,
                    "total_expenses": money(entry.metrics.total_expenses),
                    "avg_sale_price": money(entry.metrics.avg_sale_price),
                }
                for entry in matrix
            ],
        }, status=status.HTTP_200_OK)


class DashboardStatsAPIView(APIView):
    """
    Dashboard statistics API
    Provides inventory, outstanding balance and profit overview
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        vehicles = active_vehicles()

        status_breakdown = {
            value: vehicles.filter(status=value).count()
            for value, _ in VehicleStatus.CHOICES
            if value != VehicleStatus.DELETED
        }
        outstanding = vehicles.aggregate(
            from_customer=Sum('remaining_amount'),
            to_seller=Sum('remaining_amount_to_seller'),
        )
        from_customer = outstanding['from_customer'] or 0
        to_seller = outstanding['to_seller'] or 0

        sold = vehicles.filter(status=VehicleStatus.SOLD).prefetch_related(
            'settlements__reversal_of'
        )
        records = ledger.sold_vehicles(v.to_record() for v in sold)
        summary = ledger.aggregate(records)

        stats = {
            "overview": {
                "total_vehicles": vehicles.count(),
                "in_stock": status_breakdown[VehicleStatus.IN_STOCK],
                "sold": status_breakdown[VehicleStatus.SOLD],
                "user_role": request.user.role,
                "is_superuser": request.user.is_superuser,
            },
            "outstanding": {
                "from_customer": money(from_customer),
                "from_customer_display": format_inr(from_customer, show_nil=True),
                "to_seller": money(to_seller),
                "to_seller_display": format_inr(to_seller, show_nil=True),
                "vehicles_pending_from_customer": vehicles.filter(remaining_amount__gt=0).count(),
                "vehicles_pending_to_seller": vehicles.filter(remaining_amount_to_seller__gt=0).count(),
            },
            "profit": summary_dict(summary),
            "recent_sales": [profit_row(ledger.vehicle_profit(r)) for r in records[:5]],
            "status_breakdown": status_breakdown,
        }
        return Response(stats, status=status.HTTP_200_OK)
