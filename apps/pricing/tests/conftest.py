import pytest
from datetime import date, timedelta
from decimal import Decimal
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.catalog.models import Product, Variant, Supplier, SaleUnit, PurchaseUnit
from apps.pricing.models import DailyPrice, PriceStatus
from apps.purchasing.models import PurchaseLot, PurchaseSession, SessionStatus

TODAY = date(2026, 10, 19)


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def admin_user(db):
    """Create and return a pricing admin."""
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        display_name='Market Admin',
        role=UserRole.ADMIN,
    )


@pytest.fixture
def buyer(db):
    """Create and return a buyer."""
    return User.objects.create_user(
        email='buyer@example.com',
        password='TestPass123!',
        role=UserRole.BUYER,
    )


@pytest.fixture
def seller(db):
    """Create and return a seller."""
    return User.objects.create_user(
        email='seller@example.com',
        password='TestPass123!',
        role=UserRole.SELLER,
    )


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def seller_client(seller):
    return _client_for(seller)


@pytest.fixture
def product(db):
    return Product.objects.create(name='Banana', category='Fruit')


@pytest.fixture
def kg_variant(product):
    """Bought and sold by the kilogram."""
    return Variant.objects.create(
        product=product,
        name='Cavendish',
        sale_unit=SaleUnit.WEIGHT,
        purchase_unit=PurchaseUnit.WEIGHT,
    )


@pytest.fixture
def box_variant(product):
    """Bought by the box, sold by the kilogram. No factor set yet."""
    return Variant.objects.create(
        product=product,
        name='Plantain',
        sale_unit=SaleUnit.WEIGHT,
        purchase_unit=PurchaseUnit.BOX,
    )


@pytest.fixture
def supplier(db):
    return Supplier.objects.create(name='Central Market 3')


@pytest.fixture
def make_session(admin_user):
    """Factory for sessions on a given day."""
    def _make_session(date_key=TODAY, status=SessionStatus.OPEN):
        return PurchaseSession.objects.create(
            date_key=date_key,
            created_by=admin_user,
            status=status,
        )
    return _make_session


@pytest.fixture
def open_session(make_session):
    return make_session()


@pytest.fixture
def make_lot(supplier, buyer):
    """Factory for lots; ``minutes`` offsets purchased_at from a fixed start."""
    start = timezone.now() - timedelta(hours=2)

    def _make_lot(session, variant, unit_cost, minutes=0, **extra):
        return PurchaseLot.objects.create(
            session=session,
            variant=variant,
            supplier=supplier,
            quantity=extra.pop('quantity', Decimal('1')),
            unit_cost=Decimal(unit_cost),
            purchase_unit=extra.pop('purchase_unit', variant.purchase_unit),
            purchased_by=buyer,
            purchased_at=start + timedelta(minutes=minutes),
            **extra,
        )
    return _make_lot


@pytest.fixture
def make_price(db):
    """Factory for stored daily prices; READY when a sale price is given."""
    def _make_price(session, variant, sale_price=None, **extra):
        return DailyPrice.objects.create(
            session=session,
            variant=variant,
            sale_unit=variant.sale_unit,
            margin_pct=Decimal('0.35'),
            sale_price=None if sale_price is None else Decimal(sale_price),
            status=extra.pop('status', PriceStatus.READY if sale_price is not None else PriceStatus.PENDING),
            **extra,
        )
    return _make_price
