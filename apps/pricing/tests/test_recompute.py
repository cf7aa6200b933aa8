import pytest
from datetime import date
from decimal import Decimal
from django.utils import timezone

from apps.catalog.models import SaleUnit, Variant
from apps.pricing.models import DailyPrice, PriceStatus, PricingMode, PricingSetting, PricingSettingKey
from apps.pricing.services import (
    recompute_daily_price,
    recompute_session,
    recompute_open_sessions,
    change_pricing_settings,
    set_manual_price,
    clear_manual_price,
    set_conversion_factor,
    get_pricing_snapshot,
    update_pricing_settings,
    normalize_margin,
    ClosedSessionError,
    DailyPriceNotFoundError,
    InvalidConversionError,
    InvalidManualPriceError,
    InvalidPricingSettingError,
    PricingConfigError,
    SessionNotFoundError,
)
from apps.purchasing.models import SessionStatus

TODAY = date(2026, 10, 19)


@pytest.mark.django_db
class TestRecomputeDailyPrice:
    """Test the automatic price of one (session, variant)."""

    def test_no_lots_is_pending(self, open_session, kg_variant):
        price = recompute_daily_price(session_id=open_session.id, variant_id=kg_variant.id)

        assert price.status == PriceStatus.PENDING
        assert price.sale_price is None
        assert price.normalized_cost is None

    def test_unconvertible_lots_are_partial(self, open_session, box_variant, make_lot):
        make_lot(open_session, box_variant, '18000')

        price = recompute_daily_price(session_id=open_session.id, variant_id=box_variant.id)

        assert price.status == PriceStatus.PARTIAL
        assert price.sale_price is None
        assert price.anchor_lot is None

    def test_highest_cost_sets_price(self, open_session, kg_variant, make_lot):
        expensive = make_lot(open_session, kg_variant, '1200', minutes=0)
        make_lot(open_session, kg_variant, '1000', minutes=10)

        price = recompute_daily_price(session_id=open_session.id, variant_id=kg_variant.id)

        assert price.anchor_lot == expensive
        assert price.normalized_cost == Decimal('1200.00')
        # 1200 * 1.35 = 1620 -> 1650
        assert price.sale_price == Decimal('1650.00')
        assert price.margin_pct == Decimal('0.35')
        assert price.status == PriceStatus.READY

    def test_tie_goes_to_most_recent_lot(self, open_session, kg_variant, make_lot):
        make_lot(open_session, kg_variant, '10', minutes=0)
        make_lot(open_session, kg_variant, '12', minutes=10)
        latest = make_lot(open_session, kg_variant, '12', minutes=20)

        price = recompute_daily_price(session_id=open_session.id, variant_id=kg_variant.id)

        assert price.anchor_lot == latest
        assert price.normalized_cost == Decimal('12.00')

    def test_weighing_time_counts_for_ties(self, open_session, box_variant, make_lot):
        box_variant.conversion_factor = Decimal('18')
        box_variant.save()
        # 240 over a measured 20 kg, weighed after the other lot was bought
        weighed = make_lot(
            open_session, box_variant, '240', minutes=0,
            measured_weight=Decimal('20'), weighed_at=timezone.now(),
        )
        # 216 over the nominal 18 kg
        make_lot(open_session, box_variant, '216', minutes=10)

        price = recompute_daily_price(session_id=open_session.id, variant_id=box_variant.id)

        assert price.anchor_lot == weighed
        assert price.normalized_cost == Decimal('12.00')

    def test_recompute_is_idempotent(self, open_session, kg_variant, make_lot):
        make_lot(open_session, kg_variant, '1000')

        first = recompute_daily_price(session_id=open_session.id, variant_id=kg_variant.id)
        second = recompute_daily_price(session_id=open_session.id, variant_id=kg_variant.id)

        assert first.id == second.id
        assert second.sale_price == first.sale_price
        assert second.anchor_lot_id == first.anchor_lot_id
        assert DailyPrice.objects.count() == 1

    def test_unknown_session(self, kg_variant):
        with pytest.raises(SessionNotFoundError):
            recompute_daily_price(session_id=kg_variant.id, variant_id=kg_variant.id)

    def test_settings_are_read_every_time(self, open_session, kg_variant, make_lot):
        make_lot(open_session, kg_variant, '1000')
        recompute_daily_price(session_id=open_session.id, variant_id=kg_variant.id)

        update_pricing_settings(margin_pct=Decimal('0.5'), round_step=Decimal('100'))
        price = recompute_daily_price(session_id=open_session.id, variant_id=kg_variant.id)

        assert price.margin_pct == Decimal('0.5')
        assert price.sale_price == Decimal('1500.00')

    def test_unusable_stored_settings(self, open_session, kg_variant, make_lot):
        make_lot(open_session, kg_variant, '1000')
        PricingSetting.objects.create(key=PricingSettingKey.ROUND_STEP, value=Decimal('0'))

        with pytest.raises(PricingConfigError):
            recompute_daily_price(session_id=open_session.id, variant_id=kg_variant.id)

        assert not DailyPrice.objects.exists()


@pytest.mark.django_db
class TestSessionSweeps:

    def test_recompute_session_covers_every_bought_variant(
        self, open_session, kg_variant, box_variant, make_lot
    ):
        make_lot(open_session, kg_variant, '1000')
        make_lot(open_session, kg_variant, '1100')
        make_lot(open_session, box_variant, '18000')

        prices = recompute_session(session_id=open_session.id)

        assert len(prices) == 2
        statuses = {price.variant_id: price.status for price in prices}
        assert statuses[kg_variant.id] == PriceStatus.READY
        assert statuses[box_variant.id] == PriceStatus.PARTIAL

    def test_open_sessions_only(self, make_session, kg_variant, make_lot):
        open_one = make_session()
        closed_one = make_session(date_key=TODAY.replace(day=18), status=SessionStatus.CLOSED)
        make_lot(open_one, kg_variant, '1000')
        make_lot(closed_one, kg_variant, '900')

        prices = recompute_open_sessions()

        assert [price.session_id for price in prices] == [open_one.id]
        assert not DailyPrice.objects.filter(session=closed_one).exists()

    def test_closed_session_prices_are_final(self, make_session, kg_variant, make_lot, make_price):
        closed = make_session(status=SessionStatus.CLOSED)
        make_lot(closed, kg_variant, '900')
        make_price(closed, kg_variant, '1250')

        with pytest.raises(ClosedSessionError):
            recompute_daily_price(session_id=closed.id, variant_id=kg_variant.id)
        with pytest.raises(ClosedSessionError):
            recompute_session(session_id=closed.id)

        assert DailyPrice.objects.get(session=closed).sale_price == Decimal('1250.00')


@pytest.mark.django_db
class TestManualOverride:
    """Test manual prices and their interaction with recomputes."""

    def test_manual_price_survives_new_lots(self, open_session, kg_variant, make_lot, admin_user):
        make_lot(open_session, kg_variant, '1000')
        recompute_daily_price(session_id=open_session.id, variant_id=kg_variant.id)

        set_manual_price(
            session_id=open_session.id,
            variant_id=kg_variant.id,
            price='999',
            actor=admin_user,
            note='Competitor match',
        )
        make_lot(open_session, kg_variant, '2000', minutes=30)
        price = recompute_daily_price(session_id=open_session.id, variant_id=kg_variant.id)

        assert price.pricing_mode == PricingMode.MANUAL
        assert price.sale_price == Decimal('999.00')
        assert price.status == PriceStatus.READY
        assert price.manual_set_by == admin_user

    def test_manual_price_without_lots(self, open_session, kg_variant, admin_user):
        price = set_manual_price(
            session_id=open_session.id,
            variant_id=kg_variant.id,
            price=Decimal('450'),
            actor=admin_user,
        )

        assert price.status == PriceStatus.READY
        assert price.sale_price == Decimal('450.00')
        assert price.margin_pct == Decimal('0.35')
        assert price.normalized_cost is None

    def test_clear_returns_to_computed_price(self, open_session, kg_variant, make_lot, admin_user):
        make_lot(open_session, kg_variant, '1000')
        set_manual_price(
            session_id=open_session.id,
            variant_id=kg_variant.id,
            price='999',
            actor=admin_user,
        )

        price = clear_manual_price(session_id=open_session.id, variant_id=kg_variant.id)

        assert price.pricing_mode == PricingMode.AUTO
        assert price.manual_price is None
        assert price.manual_set_by is None
        assert price.sale_price == Decimal('1350.00')

    def test_clear_without_price(self, open_session, kg_variant):
        with pytest.raises(DailyPriceNotFoundError):
            clear_manual_price(session_id=open_session.id, variant_id=kg_variant.id)

    @pytest.mark.parametrize('bad_price', ['0', '-5', 'abc', 'NaN'])
    def test_invalid_manual_price(self, open_session, kg_variant, admin_user, bad_price):
        with pytest.raises(InvalidManualPriceError):
            set_manual_price(
                session_id=open_session.id,
                variant_id=kg_variant.id,
                price=bad_price,
                actor=admin_user,
            )

    def test_closed_session_rejects_override(self, make_session, kg_variant, admin_user):
        closed = make_session(status=SessionStatus.CLOSED)

        with pytest.raises(ClosedSessionError):
            set_manual_price(
                session_id=closed.id,
                variant_id=kg_variant.id,
                price='100',
                actor=admin_user,
            )


@pytest.mark.django_db
class TestPricingSettings:

    def test_defaults_without_rows(self):
        snapshot = get_pricing_snapshot()

        assert snapshot.margin_pct == Decimal('0.35')
        assert snapshot.round_step == Decimal('50')

    def test_percentage_margin_is_stored_as_fraction(self):
        snapshot = update_pricing_settings(margin_pct=35)

        assert snapshot.margin_pct == Decimal('0.35')
        stored = PricingSetting.objects.get(key=PricingSettingKey.MARGIN_PCT)
        assert stored.value == Decimal('0.35')

    @pytest.mark.parametrize('margin', [0, -1, 250, 'abc'])
    def test_invalid_margin(self, margin):
        with pytest.raises(InvalidPricingSettingError):
            normalize_margin(margin)

    def test_invalid_round_step(self):
        with pytest.raises(InvalidPricingSettingError):
            update_pricing_settings(round_step=0)

        assert not PricingSetting.objects.exists()

    def test_change_reprices_open_sessions_only(self, make_session, kg_variant, make_lot, make_price):
        open_one = make_session()
        closed_one = make_session(date_key=TODAY.replace(day=18), status=SessionStatus.CLOSED)
        make_lot(open_one, kg_variant, '1000')
        make_price(closed_one, kg_variant, '1250')

        snapshot, prices = change_pricing_settings(margin_pct='0.80')

        assert snapshot.margin_pct == Decimal('0.80')
        assert [price.sale_price for price in prices] == [Decimal('1800.00')]
        assert DailyPrice.objects.get(session=closed_one).sale_price == Decimal('1250.00')

    def test_change_without_values_skips_sweep(self, open_session, kg_variant, make_lot):
        make_lot(open_session, kg_variant, '1000')

        snapshot, prices = change_pricing_settings()

        assert snapshot.margin_pct == Decimal('0.35')
        assert prices == []
        assert not DailyPrice.objects.exists()

    def test_failed_sweep_keeps_old_settings(self, open_session, monkeypatch):
        def broken_sweep():
            raise PricingConfigError("Pricing settings are unavailable")

        monkeypatch.setattr('apps.pricing.services.recompute.recompute_open_sessions', broken_sweep)

        with pytest.raises(PricingConfigError):
            change_pricing_settings(margin_pct='0.50')

        assert not PricingSetting.objects.exists()
        assert get_pricing_snapshot().margin_pct == Decimal('0.35')


@pytest.mark.django_db
class TestConversionFactor:

    def test_factor_turns_partial_into_ready(self, open_session, box_variant, make_lot):
        make_lot(open_session, box_variant, '18000')
        recompute_daily_price(session_id=open_session.id, variant_id=box_variant.id)

        prices = set_conversion_factor(variant_id=box_variant.id, conversion_factor='18')

        assert len(prices) == 1
        assert prices[0].status == PriceStatus.READY
        assert prices[0].normalized_cost == Decimal('1000.00')
        box_variant.refresh_from_db()
        assert box_variant.conversion_factor == Decimal('18')

    def test_comma_decimal_accepted(self, box_variant):
        set_conversion_factor(variant_id=box_variant.id, conversion_factor='18,5')

        box_variant.refresh_from_db()
        assert box_variant.conversion_factor == Decimal('18.5')

    def test_closed_sessions_are_left_alone(self, make_session, box_variant, make_lot):
        closed = make_session(status=SessionStatus.CLOSED)
        make_lot(closed, box_variant, '18000')

        prices = set_conversion_factor(variant_id=box_variant.id, conversion_factor='18')

        assert prices == []

    def test_closed_session_cannot_be_targeted(self, make_session, box_variant, make_lot):
        closed = make_session(status=SessionStatus.CLOSED)
        make_lot(closed, box_variant, '18000')

        with pytest.raises(ClosedSessionError):
            set_conversion_factor(
                variant_id=box_variant.id,
                conversion_factor='18',
                session_id=closed.id,
            )

        box_variant.refresh_from_db()
        assert box_variant.conversion_factor is None
        assert not DailyPrice.objects.exists()

    def test_factor_requires_purchase_unit(self, product):
        variant = Variant.objects.create(product=product, name='Loose', sale_unit=SaleUnit.PIECE)

        with pytest.raises(InvalidConversionError):
            set_conversion_factor(variant_id=variant.id, conversion_factor='10')

    def test_non_positive_factor(self, box_variant):
        with pytest.raises(InvalidConversionError):
            set_conversion_factor(variant_id=box_variant.id, conversion_factor='0')
