"""
Management command to recompute daily prices.

Rebuilds prices from lots after pricing settings or unit data were fixed
outside the API. Without arguments every open session is recomputed.
Closed sessions keep the prices they were closed with.

Usage:
    python manage.py recompute_prices
    python manage.py recompute_prices --date 2026-10-19
    python manage.py recompute_prices --session <uuid> --dry-run
"""

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from apps.pricing.models import PriceStatus
from apps.pricing.services import (
    recompute_open_sessions,
    recompute_session,
    PricingServiceError,
)
from apps.purchasing.models import PurchaseLot, PurchaseSession, SessionStatus


class Command(BaseCommand):
    help = 'Recompute daily prices of one session or of every open session'

    def add_arguments(self, parser):
        target = parser.add_mutually_exclusive_group()
        target.add_argument('--session', help='Session id')
        target.add_argument('--date', help='Session business day (YYYY-MM-DD)')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be recomputed without making changes',
        )

    def _target_sessions(self, options):
        if options['session']:
            sessions = PurchaseSession.objects.filter(id=options['session'])
        elif options['date']:
            sessions = PurchaseSession.objects.filter(date_key=options['date'])
        else:
            return PurchaseSession.objects.filter(status=SessionStatus.OPEN)

        if not sessions.exists():
            raise CommandError('No purchase session matches the given session or date.')
        if not sessions.exclude(status=SessionStatus.CLOSED).exists():
            raise CommandError('The session is closed; its prices are final.')
        return sessions

    def handle(self, *args, **options):
        try:
            sessions = list(self._target_sessions(options))
        except ValidationError as exc:
            raise CommandError(f'Invalid session or date: {exc}')

        if not sessions:
            self.stdout.write(self.style.SUCCESS('No open sessions to recompute.'))
            return

        for session in sessions:
            variants = (
                PurchaseLot.objects
                .filter(session=session)
                .order_by('variant_id')
                .values_list('variant_id', flat=True)
                .distinct()
                .count()
            )
            self.stdout.write(f'  - {session.date_key} ({session.status}): {variants} variant(s)')

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('\n--dry-run mode: No changes made.'))
            return

        try:
            if options['session'] or options['date']:
                prices = []
                for session in sessions:
                    prices.extend(recompute_session(session_id=session.id))
            else:
                prices = recompute_open_sessions()
        except PricingServiceError as exc:
            raise CommandError(str(exc))

        ready = sum(1 for price in prices if price.status == PriceStatus.READY)
        self.stdout.write(
            self.style.SUCCESS(f'\nRecomputed {len(prices)} price(s), {ready} ready.')
        )
