"""
Management command to create sample data for trying the API.

Usage:
    python manage.py create_sample_data

This creates:
- 4 users (admin, two buyers, one seller)
- Products and variants covering the supported unit pairs
- 3 suppliers
- Yesterday's session, closed, with lots and prices
- Today's session, open, with a planned list
"""

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from decimal import Decimal
from datetime import timedelta

from apps.accounts.models import User, UserRole
from apps.catalog.models import Product, Variant, Supplier, SaleUnit, PurchaseUnit
from apps.pricing.models import DailyPrice, PricingSetting
from apps.purchasing.models import PurchaseSession, PurchaseLot, SessionItem, SessionStatus
from apps.purchasing.services import add_item, close_session, open_session
from apps.purchasing.services.lot_store import append_lots

# (product, category, variant, sale unit, purchase unit, factor, yesterday's unit cost)
CATALOG = [
    ('Tomato', 'Vegetables', 'Round', SaleUnit.WEIGHT, PurchaseUnit.BOX, '18', '16200'),
    ('Tomato', 'Vegetables', 'Cherry', SaleUnit.WEIGHT, PurchaseUnit.WEIGHT, None, '2400'),
    ('Lettuce', 'Vegetables', 'Iceberg', SaleUnit.PIECE, PurchaseUnit.BOX, '12', '6000'),
    ('Parsley', 'Herbs', 'Flat leaf', SaleUnit.BUNCH, PurchaseUnit.BALE, '20', '4000'),
    ('Egg', 'Farm', 'Free range', SaleUnit.TRAY, PurchaseUnit.BOX, '6', '21000'),
    ('Potato', 'Vegetables', 'Washed', SaleUnit.BAG, PurchaseUnit.BOX, '4', '8800'),
    ('Mango', 'Fruit', 'Tommy', SaleUnit.WEIGHT, PurchaseUnit.BOX, None, None),
]

SUPPLIERS = ['Stall 12 - Greens', 'Stall 40 - Fruit', 'Farm Cooperative']


class Command(BaseCommand):
    help = 'Create sample data for trying the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')

        users = self.create_users()
        variants = self.create_catalog()
        suppliers = self.create_suppliers()
        self.create_yesterday(users, variants, suppliers)
        self.create_today(users, variants)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  admin@example.com / admin123 (admin)')
        self.stdout.write('  ana@example.com / password123 (buyer)')
        self.stdout.write('  bruno@example.com / password123 (buyer)')
        self.stdout.write('  carla@example.com / password123 (seller)')

    def clear_data(self):
        """Clear all data from the database."""
        DailyPrice.objects.all().delete()
        PurchaseLot.objects.all().delete()
        SessionItem.objects.all().delete()
        PurchaseSession.objects.all().delete()
        Variant.objects.all().delete()
        Product.objects.all().delete()
        Supplier.objects.all().delete()
        PricingSetting.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()
        self.stdout.write('  Data cleared.')

    def create_users(self):
        """Create sample users."""
        users = {}

        admin, created = User.objects.get_or_create(
            email='admin@example.com',
            defaults={
                'display_name': 'Admin',
                'role': UserRole.ADMIN,
                'is_staff': True,
                'is_superuser': True,
            }
        )
        if created:
            admin.set_password('admin123')
            admin.save()
        users['admin'] = admin

        for key, email, name, role in [
            ('ana', 'ana@example.com', 'Ana', UserRole.BUYER),
            ('bruno', 'bruno@example.com', 'Bruno', UserRole.BUYER),
            ('carla', 'carla@example.com', 'Carla', UserRole.SELLER),
        ]:
            user, created = User.objects.get_or_create(
                email=email,
                defaults={'display_name': name, 'role': role},
            )
            if created:
                user.set_password('password123')
                user.save()
            users[key] = user

        self.stdout.write(f'  Created {len(users)} users')
        return users

    def create_catalog(self):
        """Create products and variants. Returns list of (variant, unit cost)."""
        variants = []
        for product_name, category, name, sale_unit, purchase_unit, factor, cost in CATALOG:
            product, _ = Product.objects.get_or_create(
                name=product_name,
                defaults={'category': category},
            )
            variant, _ = Variant.objects.get_or_create(
                product=product,
                name=name,
                defaults={
                    'sale_unit': sale_unit,
                    'purchase_unit': purchase_unit,
                    'conversion_factor': Decimal(factor) if factor else None,
                },
            )
            variants.append((variant, Decimal(cost) if cost else None))

        self.stdout.write(f'  Created {len(variants)} variants')
        return variants

    def create_suppliers(self):
        suppliers = [Supplier.objects.get_or_create(name=name)[0] for name in SUPPLIERS]
        self.stdout.write(f'  Created {len(suppliers)} suppliers')
        return suppliers

    def create_yesterday(self, users, variants, suppliers):
        """Closed session with one purchase per priced variant."""
        yesterday = timezone.localdate() - timedelta(days=1)
        if PurchaseSession.objects.filter(date_key=yesterday).exists():
            self.stdout.write(f'  Session {yesterday} already exists, skipped')
            return

        session = PurchaseSession.objects.create(
            date_key=yesterday,
            created_by=users['admin'],
            status=SessionStatus.PLANNING,
        )
        open_session(session_id=session.id)

        for index, (variant, cost) in enumerate(variants):
            if cost is None:
                continue
            append_lots(
                session=session,
                variant=variant,
                supplier=suppliers[index % len(suppliers)],
                quantity=Decimal('2'),
                unit_cost=cost,
                purchase_unit=variant.purchase_unit,
                purchased_by=users['ana'],
            )

        close_session(session_id=session.id)
        self.stdout.write(f'  Created closed session {yesterday} with prices')

    def create_today(self, users, variants):
        """Open session with every variant on the list."""
        today = timezone.localdate()
        if PurchaseSession.objects.filter(date_key=today).exists():
            self.stdout.write(f'  Session {today} already exists, skipped')
            return

        session = PurchaseSession.objects.create(
            date_key=today,
            created_by=users['admin'],
            status=SessionStatus.PLANNING,
        )
        for variant, _ in variants:
            add_item(session_id=session.id, variant_id=variant.id, planned_quantity=Decimal('3'))
        open_session(session_id=session.id)

        self.stdout.write(f'  Created open session {today} with {len(variants)} items')
