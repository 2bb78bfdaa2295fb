from rest_framework.permissions import BasePermission

from vehicles.ledger import SettlementType


SAFE_METHODS = ['GET', 'HEAD', 'OPTIONS']


class IsAdmin(BasePermission):
    """
    Only admins and superusers.
    """

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.is_admin_or_super
        )


class VehiclePermission(BasePermission):
    """
    Permission for vehicle operations:
    - Any staff member can read vehicles and reports
    - Purchase staff & admins: create vehicles, record purchases, pay sellers
    - Sales staff & admins: record sales, collect from customers
    - Only admins reverse settlements or delete vehicles
    """

    purchase_actions = ['create', 'update', 'partial_update', 'record_purchase']
    sale_actions = ['record_sale']
    admin_actions = ['destroy', 'reverse_settlement']

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False

        if request.method in SAFE_METHODS:
            return True

        action = getattr(view, 'action', None)
        if action in self.admin_actions:
            return user.is_admin_or_super
        if action in self.purchase_actions:
            return user.can_record_purchase
        if action in self.sale_actions:
            return user.can_record_sale
        if action == 'settle':
            # direction decides which desk owns the payment
            if request.data.get('settlement_type') == SettlementType.TO_SELLER:
                return user.can_record_purchase
            return user.can_record_sale

        return user.is_admin_or_super
