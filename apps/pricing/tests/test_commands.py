import pytest
from io import StringIO
from datetime import date
from decimal import Decimal
from django.core.management import call_command
from django.core.management.base import CommandError

from apps.pricing.models import DailyPrice, PriceStatus, PricingSetting, PricingSettingKey
from apps.purchasing.models import SessionStatus


def run(*args):
    out = StringIO()
    call_command('recompute_prices', *args, stdout=out)
    return out.getvalue()


@pytest.mark.django_db
class TestRecomputePricesCommand:

    def test_open_sessions_by_default(self, open_session, make_session, kg_variant, make_lot):
        closed = make_session(date_key=date(2026, 10, 18), status=SessionStatus.CLOSED)
        make_lot(open_session, kg_variant, '1000')
        make_lot(closed, kg_variant, '900')

        output = run()

        assert 'Recomputed 1 price(s), 1 ready.' in output
        assert DailyPrice.objects.get(session=open_session).status == PriceStatus.READY
        assert not DailyPrice.objects.filter(session=closed).exists()

    def test_single_session_by_date(self, open_session, kg_variant, make_lot):
        make_lot(open_session, kg_variant, '900')

        run('--date', '2026-10-19')

        price = DailyPrice.objects.get(session=open_session)
        # 900 * 1.35 = 1215 -> 1250
        assert price.sale_price == Decimal('1250.00')

    def test_closed_session_is_refused(self, make_session, kg_variant, make_lot, make_price):
        closed = make_session(date_key=date(2026, 10, 18), status=SessionStatus.CLOSED)
        make_lot(closed, kg_variant, '900')
        make_price(closed, kg_variant, '1250')
        PricingSetting.objects.create(key=PricingSettingKey.MARGIN_PCT, value=Decimal('0.8'))

        with pytest.raises(CommandError):
            run('--date', '2026-10-18')

        assert DailyPrice.objects.get(session=closed).sale_price == Decimal('1250.00')

    def test_dry_run_writes_nothing(self, open_session, kg_variant, make_lot):
        make_lot(open_session, kg_variant, '1000')

        output = run('--dry-run')

        assert '1 variant(s)' in output
        assert 'No changes made' in output
        assert not DailyPrice.objects.exists()

    def test_nothing_open(self, db):
        assert 'No open sessions' in run()

    def test_unknown_date(self, open_session):
        with pytest.raises(CommandError):
            run('--date', '2020-01-01')

    def test_malformed_session_id(self, db):
        with pytest.raises(CommandError):
            run('--session', 'not-a-uuid')

    def test_broken_settings(self, open_session, kg_variant, make_lot):
        make_lot(open_session, kg_variant, '1000')
        PricingSetting.objects.create(key=PricingSettingKey.MARGIN_PCT, value=Decimal('5'))

        with pytest.raises(CommandError):
            run()
