"""
Notification events emitted after each committed mutation.

Receivers (for example a pub/sub fan-out to session subscribers) connect to
these signals. Every signal is sent with keyword arguments identifying the
affected records only: ``session_id``, and where relevant ``variant_id``,
``item_id`` and ``lot_ids``.
"""

import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger(__name__)


item_added = Signal()
item_updated = Signal()
item_removed = Signal()
item_reserved = Signal()
item_released = Signal()
item_cancelled = Signal()
item_confirmed = Signal()
daily_price_updated = Signal()
session_opened = Signal()
session_closed = Signal()

ALL_EVENTS = {
    'item_added': item_added,
    'item_updated': item_updated,
    'item_removed': item_removed,
    'item_reserved': item_reserved,
    'item_released': item_released,
    'item_cancelled': item_cancelled,
    'item_confirmed': item_confirmed,
    'daily_price_updated': daily_price_updated,
    'session_opened': session_opened,
    'session_closed': session_closed,
}


def emit_on_commit(signal, sender, **payload):
    """Send ``signal`` once the surrounding transaction commits."""
    transaction.on_commit(lambda: signal.send(sender=sender, **payload))


def _log_event(event_name):
    def handler(sender, **kwargs):
        kwargs.pop('signal', None)
        logger.debug("event %s %s", event_name, kwargs)
    return handler


_log_handlers = {}
for _name, _signal in ALL_EVENTS.items():
    _log_handlers[_name] = _log_event(_name)
    _signal.connect(_log_handlers[_name], dispatch_uid=f'log_{_name}')
