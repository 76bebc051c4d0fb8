"""
Call-scoped re-entrancy guard.

Operations that mutate sale or votation state and then hand control to an
external collaborator (ledger transfer, payout) run inside
``non_reentrant(key)``. A nested attempt to enter the same key from the same
thread, e.g. a payout sink calling back into ``buy_tokens``, is rejected.
Row locks (``select_for_update``) serialize different threads; this guard
covers the same-thread callback case those locks cannot see.
"""

import logging
import threading
from contextlib import contextmanager

from .exceptions import ReentrancyError

logger = logging.getLogger(__name__)

_state = threading.local()


def _held_keys():
    keys = getattr(_state, 'keys', None)
    if keys is None:
        keys = _state.keys = set()
    return keys


@contextmanager
def non_reentrant(key):
    held = _held_keys()
    if key in held:
        logger.warning("Rejected re-entrant call for %s", key)
        raise ReentrancyError(f"Re-entrant call rejected for {key}")
    held.add(key)
    try:
        yield
    finally:
        held.discard(key)


def is_locked(key):
    return key in _held_keys()
