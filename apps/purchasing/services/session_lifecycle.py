"""Session lifecycle service - PLANNING -> OPEN -> CLOSED transitions."""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from django.db import transaction, IntegrityError
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.core import events
from apps.pricing.services.recompute import recompute_session
from apps.purchasing.models import PurchaseSession, SessionStatus
from .exceptions import (
    DuplicateSessionDateError,
    InvalidSessionTransitionError,
    SessionNotFoundError,
)

logger = logging.getLogger(__name__)


def get_session(*, session_id: UUID) -> PurchaseSession:
    """
    Retrieve a session by ID.

    Raises:
        SessionNotFoundError: If session doesn't exist
    """
    try:
        return PurchaseSession.objects.select_related('created_by').get(id=session_id)
    except PurchaseSession.DoesNotExist:
        raise SessionNotFoundError("Purchase session not found")


def lock_session(session_id: UUID) -> PurchaseSession:
    """Fetch a session row for update. Caller must hold a transaction."""
    try:
        return PurchaseSession.objects.select_for_update().get(id=session_id)
    except PurchaseSession.DoesNotExist:
        raise SessionNotFoundError("Purchase session not found")


def list_sessions(
    *,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> QuerySet[PurchaseSession]:
    queryset = PurchaseSession.objects.select_related('created_by')
    if status:
        queryset = queryset.filter(status=status)
    if date_from:
        queryset = queryset.filter(date_key__gte=date_from)
    if date_to:
        queryset = queryset.filter(date_key__lte=date_to)
    return queryset.order_by('-date_key')


@transaction.atomic
def create_session(*, date_key: date, created_by: User) -> PurchaseSession:
    """
    Create a session in PLANNING for a business day.

    Raises:
        DuplicateSessionDateError: If a session already exists for the date
    """
    if PurchaseSession.objects.filter(date_key=date_key).exists():
        raise DuplicateSessionDateError(f"A session already exists for {date_key}")

    try:
        session = PurchaseSession.objects.create(
            date_key=date_key,
            created_by=created_by,
            status=SessionStatus.PLANNING,
        )
    except IntegrityError:
        raise DuplicateSessionDateError(f"A session already exists for {date_key}")

    logger.info("Session %s created for %s by %s", session.id, date_key, created_by.email)
    return session


@transaction.atomic
def reschedule_session(*, session_id: UUID, date_key: date) -> PurchaseSession:
    """
    Move a PLANNING session to another business day.

    Raises:
        SessionNotFoundError: If session doesn't exist
        InvalidSessionTransitionError: If session is no longer planning
        DuplicateSessionDateError: If the new date is taken
    """
    session = lock_session(session_id)

    if session.status != SessionStatus.PLANNING:
        raise InvalidSessionTransitionError("Only planning sessions can be rescheduled")

    if PurchaseSession.objects.filter(date_key=date_key).exclude(id=session.id).exists():
        raise DuplicateSessionDateError(f"A session already exists for {date_key}")

    session.date_key = date_key
    session.save(update_fields=['date_key', 'updated_at'])
    return session


@transaction.atomic
def open_session(*, session_id: UUID) -> PurchaseSession:
    """
    Start buying: PLANNING -> OPEN.

    Raises:
        SessionNotFoundError: If session doesn't exist
        InvalidSessionTransitionError: If session is not planning
    """
    session = lock_session(session_id)

    if session.status != SessionStatus.PLANNING:
        raise InvalidSessionTransitionError(
            f"Cannot open a session in status '{session.status}'"
        )

    session.status = SessionStatus.OPEN
    session.opened_at = timezone.now()
    session.save(update_fields=['status', 'opened_at', 'updated_at'])

    logger.info("Session %s opened", session.id)
    events.emit_on_commit(events.session_opened, PurchaseSession, session_id=session.id)
    return session


@transaction.atomic
def close_session(*, session_id: UUID) -> PurchaseSession:
    """
    Finish buying: OPEN -> CLOSED.

    Every variant with lots gets a final recompute before the status flips,
    in the same transaction, so a closed session always carries consistent
    prices.

    Raises:
        SessionNotFoundError: If session doesn't exist
        InvalidSessionTransitionError: If session is not open
    """
    session = lock_session(session_id)

    if session.status != SessionStatus.OPEN:
        raise InvalidSessionTransitionError(
            f"Cannot close a session in status '{session.status}'"
        )

    prices = recompute_session(session_id=session.id)

    session.status = SessionStatus.CLOSED
    session.closed_at = timezone.now()
    session.save(update_fields=['status', 'closed_at', 'updated_at'])

    logger.info("Session %s closed, %d prices swept", session.id, len(prices))
    events.emit_on_commit(events.session_closed, PurchaseSession, session_id=session.id)
    return session
