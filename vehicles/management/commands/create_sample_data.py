from datetime import timedelta
from decimal import Decimal
import random

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from vehicles.ledger import PaymentMode, SettlementType, VehicleStatus
from vehicles.models import Vehicle
from vehicles.services import settlement_service

User = get_user_model()

MODELS = {
    'Maruti Suzuki': ['Swift', 'Baleno', 'Dzire', 'Ertiga'],
    'Hyundai': ['i20', 'Creta', 'Venue', 'Verna'],
    'Honda': ['City', 'Amaze', 'Jazz'],
    'Toyota': ['Innova', 'Fortuner', 'Glanza'],
    'Mahindra': ['XUV500', 'Scorpio', 'Thar'],
    'Tata': ['Nexon', 'Harrier', 'Tiago'],
}
FUEL_TYPES = ['Petrol', 'Diesel', 'CNG', 'Electric', 'Hybrid']


class Command(BaseCommand):
    help = 'Create sample staff, vehicles, sales and settlements'

    def add_arguments(self, parser):
        parser.add_argument('--vehicles', type=int, default=12, help='Number of vehicles to create')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for repeatable data')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        self.stdout.write('Creating sample data...')

        staff = {}
        for email, role, first_name in [
            ('admin@vehicle.com', User.ADMIN, 'Admin'),
            ('rajesh@vehicle.com', User.PURCHASE, 'Rajesh'),
            ('priya@vehicle.com', User.SALES, 'Priya'),
        ]:
            user, created = User.objects.get_or_create(
                email=email,
                defaults={'role': role, 'first_name': first_name},
            )
            if created:
                user.set_password('password123')
                user.save()
                self.stdout.write(f'Created user: {user.email} ({role})')
            staff[role] = user

        now = timezone.now()
        for index in range(options['vehicles']):
            make = rng.choice(list(MODELS))
            purchase_price = Decimal(rng.randrange(200000, 700000, 1000))
            vehicle, created = Vehicle.objects.get_or_create(
                vehicle_no=f"MH{rng.randint(1, 50):02d}AB{1000 + index}",
                defaults={
                    'make': make,
                    'model_name': rng.choice(MODELS[make]),
                    'year': rng.randint(2012, 2023),
                    'fuel_type': rng.choice(FUEL_TYPES),
                    'seller_name': f'Seller {index + 1}',
                    'status': VehicleStatus.IN_STOCK,
                    'created_by': staff[User.PURCHASE],
                },
            )
            if not created:
                continue

            paid = (purchase_price * Decimal(rng.choice(['0.8', '0.9', '1.0']))).quantize(Decimal('1'))
            settlement_service.record_purchase(
                vehicle_id=vehicle.pk,
                user=staff[User.PURCHASE],
                purchase_price=purchase_price,
                paid_cash=paid / 2,
                paid_bank_transfer=paid - paid / 2,
                agent_commission=(purchase_price * Decimal('0.02')).quantize(Decimal('1')),
                modification_cost=(purchase_price * Decimal('0.1')).quantize(Decimal('1')),
                purchase_date=now - timedelta(days=rng.randint(60, 400)),
            )

            if index % 3 == 0:
                continue

            sale_price = (purchase_price * Decimal(rng.choice(['1.1', '1.2', '1.3']))).quantize(Decimal('1'))
            received = (sale_price * Decimal('0.7')).quantize(Decimal('1'))
            vehicle = settlement_service.record_sale(
                vehicle_id=vehicle.pk,
                user=staff[User.SALES],
                sale_price=sale_price,
                payment_breakdown={PaymentMode.BANK_TRANSFER: received},
                sale_date=now - timedelta(days=rng.randint(1, 180)),
                customer_name=f'Customer {index + 1}',
            )

            if vehicle.remaining_amount > 0 and index % 2 == 0:
                settlement_service.apply_settlement(
                    vehicle_id=vehicle.pk,
                    user=staff[User.SALES],
                    settlement_type=SettlementType.FROM_CUSTOMER,
                    amount=vehicle.remaining_amount,
                    payment_mode=PaymentMode.ONLINE,
                    notes='Balance cleared',
                )
            if vehicle.remaining_amount_to_seller > 0:
                settlement_service.apply_settlement(
                    vehicle_id=vehicle.pk,
                    user=staff[User.PURCHASE],
                    settlement_type=SettlementType.TO_SELLER,
                    amount=vehicle.remaining_amount_to_seller,
                    payment_mode=PaymentMode.CASH,
                )
            self.stdout.write(f'Created sold vehicle: {vehicle}')

        self.stdout.write(
            self.style.SUCCESS(
                f'Sample data ready: {Vehicle.objects.count()} vehicles, '
                f'{Vehicle.objects.filter(status=VehicleStatus.SOLD).count()} sold'
            )
        )
