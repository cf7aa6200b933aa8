import pytest
from datetime import date, timedelta
from decimal import Decimal
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.catalog.models import Product, Variant, Supplier, SaleUnit, PurchaseUnit
from apps.purchasing.models import (
    PurchaseSession,
    SessionItem,
    SessionStatus,
    ItemState,
    PurchaseLot,
)

SESSION_DAY = date(2026, 10, 19)


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
        display_name='Buyer One',
        role=UserRole.BUYER,
    )


@pytest.fixture
def other_buyer(db):
    """Create and return a second buyer."""
    return User.objects.create_user(
        email='buyer2@example.com',
        password='TestPass123!',
        display_name='Buyer Two',
        role=UserRole.BUYER,
    )


@pytest.fixture
def seller(db):
    """Create and return a seller (reads prices only)."""
    return User.objects.create_user(
        email='seller@example.com',
        password='TestPass123!',
        display_name='Seller',
        role=UserRole.SELLER,
    )


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def buyer_client(buyer):
    return _client_for(buyer)


@pytest.fixture
def other_buyer_client(other_buyer):
    return _client_for(other_buyer)


@pytest.fixture
def seller_client(seller):
    return _client_for(seller)


@pytest.fixture
def tomato(db):
    """Create and return a product."""
    return Product.objects.create(name='Tomato', category='Vegetables')


@pytest.fixture
def kg_variant(tomato):
    """Bought and sold by the kilogram."""
    return Variant.objects.create(
        product=tomato,
        name='Round',
        sale_unit=SaleUnit.WEIGHT,
        purchase_unit=PurchaseUnit.WEIGHT,
    )


@pytest.fixture
def box_variant(tomato):
    """Bought by the box (18 kg nominal), sold by the kilogram."""
    return Variant.objects.create(
        product=tomato,
        name='Cherry',
        sale_unit=SaleUnit.WEIGHT,
        purchase_unit=PurchaseUnit.BOX,
        conversion_factor=Decimal('18'),
    )


@pytest.fixture
def unconfigured_variant(tomato):
    """Sold by the piece, no purchase unit set."""
    return Variant.objects.create(
        product=tomato,
        name='Heirloom',
        sale_unit=SaleUnit.PIECE,
    )


@pytest.fixture
def supplier(db):
    """Create and return an active supplier."""
    return Supplier.objects.create(name='Stall 42')


@pytest.fixture
def planning_session(admin_user):
    """Session still being planned."""
    return PurchaseSession.objects.create(
        date_key=SESSION_DAY,
        created_by=admin_user,
        status=SessionStatus.PLANNING,
    )


@pytest.fixture
def open_session(admin_user):
    """Session open for buying."""
    return PurchaseSession.objects.create(
        date_key=SESSION_DAY,
        created_by=admin_user,
        status=SessionStatus.OPEN,
        opened_at=timezone.now(),
    )


@pytest.fixture
def previous_session(admin_user):
    """Closed session of the day before."""
    return PurchaseSession.objects.create(
        date_key=SESSION_DAY - timedelta(days=1),
        created_by=admin_user,
        status=SessionStatus.CLOSED,
    )


@pytest.fixture
def kg_item(open_session, kg_variant):
    """Pending item for the kg variant in the open session."""
    return SessionItem.objects.create(
        session=open_session,
        variant=kg_variant,
        planned_quantity=Decimal('20'),
        reference_purchase_unit=PurchaseUnit.WEIGHT,
    )


@pytest.fixture
def box_item(open_session, box_variant):
    """Pending item for the box variant in the open session."""
    return SessionItem.objects.create(
        session=open_session,
        variant=box_variant,
        planned_quantity=Decimal('3'),
        reference_purchase_unit=PurchaseUnit.BOX,
    )


@pytest.fixture
def expired_reservation(kg_item, buyer):
    """Item reserved by buyer, reservation already run out."""
    SessionItem.objects.filter(id=kg_item.id).update(
        state=ItemState.RESERVED,
        reserved_by=buyer,
        reservation_expires_at=timezone.now() - timedelta(minutes=1),
    )
    kg_item.refresh_from_db()
    return kg_item


@pytest.fixture
def make_lot(supplier, buyer):
    """Factory for lots written straight to the store."""
    def _make_lot(session, variant, unit_cost, purchase_unit=None, **extra):
        return PurchaseLot.objects.create(
            session=session,
            variant=variant,
            supplier=supplier,
            quantity=extra.pop('quantity', Decimal('1')),
            unit_cost=Decimal(unit_cost),
            purchase_unit=purchase_unit or variant.purchase_unit,
            purchased_by=buyer,
            **extra,
        )
    return _make_lot
