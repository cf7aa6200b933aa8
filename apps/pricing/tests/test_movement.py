import pytest
from datetime import date, timedelta
from decimal import Decimal
from django.utils import timezone

from apps.pricing.models import PriceStatus, PricingMode
from apps.pricing.services import (
    Movement,
    resolve_movement,
    get_daily_price,
    list_daily_prices,
    list_pending_prices,
    DailyPriceNotFoundError,
    SessionNotFoundError,
)
from apps.purchasing.models import SessionStatus

TODAY = date(2026, 10, 19)


class TestResolveMovement:

    def test_up(self):
        assert resolve_movement(Decimal('120'), Decimal('100')) == (Movement.UP, Decimal('20'))

    def test_down(self):
        assert resolve_movement(Decimal('80'), Decimal('100')) == (Movement.DOWN, Decimal('-20'))

    def test_same(self):
        assert resolve_movement(Decimal('100'), Decimal('100')) == (Movement.SAME, Decimal('0'))

    def test_no_previous(self):
        assert resolve_movement(Decimal('100'), None) == (Movement.NEW, None)

    def test_no_price_today(self):
        assert resolve_movement(None, Decimal('100')) == (Movement.NEW, None)


@pytest.mark.django_db
class TestPriceHistory:
    """Test movement against the nearest earlier READY price."""

    @pytest.fixture
    def sessions(self, make_session):
        return [
            make_session(date_key=TODAY - timedelta(days=2), status=SessionStatus.CLOSED),
            make_session(date_key=TODAY - timedelta(days=1), status=SessionStatus.CLOSED),
            make_session(date_key=TODAY),
        ]

    def test_price_went_up(self, sessions, kg_variant, make_price):
        make_price(sessions[1], kg_variant, '100')
        make_price(sessions[2], kg_variant, '120')

        view = get_daily_price(session_id=sessions[2].id, variant_id=kg_variant.id)

        assert view.movement == Movement.UP
        assert view.delta == Decimal('20')
        assert view.previous_price == Decimal('100')
        assert view.previous_date_key == TODAY - timedelta(days=1)

    def test_first_price_is_new(self, sessions, kg_variant, make_price):
        make_price(sessions[2], kg_variant, '120')

        view = get_daily_price(session_id=sessions[2].id, variant_id=kg_variant.id)

        assert view.movement == Movement.NEW
        assert view.delta is None
        assert view.previous_price is None

    def test_sessions_without_ready_price_are_skipped(self, sessions, kg_variant, make_price):
        make_price(sessions[0], kg_variant, '150')
        make_price(sessions[1], kg_variant, status=PriceStatus.PARTIAL)
        make_price(sessions[2], kg_variant, '120')

        view = get_daily_price(session_id=sessions[2].id, variant_id=kg_variant.id)

        assert view.movement == Movement.DOWN
        assert view.delta == Decimal('-30')
        assert view.previous_date_key == TODAY - timedelta(days=2)

    def test_later_sessions_are_ignored(self, sessions, kg_variant, make_price):
        make_price(sessions[1], kg_variant, '100')
        make_price(sessions[2], kg_variant, '90')

        view = get_daily_price(session_id=sessions[1].id, variant_id=kg_variant.id)

        assert view.movement == Movement.NEW

    def test_pending_price_today_is_new(self, sessions, kg_variant, make_price):
        make_price(sessions[1], kg_variant, '100')
        make_price(sessions[2], kg_variant)

        view = get_daily_price(session_id=sessions[2].id, variant_id=kg_variant.id)

        assert view.movement == Movement.NEW
        assert view.previous_price == Decimal('100')

    def test_missing_price(self, sessions, kg_variant):
        with pytest.raises(DailyPriceNotFoundError):
            get_daily_price(session_id=sessions[2].id, variant_id=kg_variant.id)

    def test_list_only_ready(self, sessions, kg_variant, box_variant, make_price):
        make_price(sessions[2], kg_variant, '120')
        make_price(sessions[2], box_variant, status=PriceStatus.PARTIAL)

        everything = list_daily_prices(session_id=sessions[2].id)
        published = list_daily_prices(session_id=sessions[2].id, only_ready=True)

        assert len(everything) == 2
        assert [view.price.variant_id for view in published] == [kg_variant.id]

    def test_list_unknown_session(self, kg_variant):
        with pytest.raises(SessionNotFoundError):
            list_daily_prices(session_id=kg_variant.id)


@pytest.mark.django_db
class TestPendingPrices:

    def test_suggests_last_manual_price(self, make_session, box_variant, kg_variant, make_price, admin_user):
        yesterday = make_session(date_key=TODAY - timedelta(days=1), status=SessionStatus.CLOSED)
        today = make_session(date_key=TODAY)
        make_price(
            yesterday, box_variant, '700',
            pricing_mode=PricingMode.MANUAL,
            manual_price=Decimal('700'),
            manual_set_by=admin_user,
            manual_set_at=timezone.now(),
        )
        make_price(today, box_variant, status=PriceStatus.PARTIAL)
        make_price(today, kg_variant, '1350')

        pending = list_pending_prices(session_id=today.id)

        assert len(pending) == 1
        assert pending[0].variant_id == box_variant.id
        assert pending[0].suggested_price == Decimal('700')

    def test_no_suggestion_without_history(self, open_session, box_variant, make_price):
        make_price(open_session, box_variant)

        pending = list_pending_prices(session_id=open_session.id)

        assert pending[0].suggested_price is None
