"""
Token custody and payout collaborators.

The sale and votation services only depend on the ``Ledger`` and
``PayoutSink`` contracts below. ``DatabaseLedger`` and ``DatabasePayoutSink``
are the reference implementations backed by this app's tables; they join the
caller's transaction, so a rollback upstream undoes their writes as well.
"""

from __future__ import annotations

import logging
from typing import Protocol

from django.db import transaction
from django.db.models import F

from organizations.exceptions import (
    ArithmeticOverflowError,
    InsufficientBalanceError,
    ZeroAmountError,
)

from .constants import MAX_AMOUNT
from .models import Payout, TokenBalance

logger = logging.getLogger(__name__)


class Ledger(Protocol):
    def mint(self, owner: str, token_id: int, amount: int) -> None: ...

    def burn(self, owner: str, token_id: int, amount: int) -> None: ...

    def transfer(self, sender: str, recipient: str, token_id: int, amount: int) -> None: ...

    def balance_of(self, holder: str, token_id: int) -> int: ...


class PayoutSink(Protocol):
    def send(self, recipient: str, value: int) -> bool: ...


def _require_positive(amount: int) -> None:
    if amount <= 0:
        raise ZeroAmountError()


class DatabaseLedger:
    """Ledger kept in ``TokenBalance`` rows, one per (holder, token)."""

    def balance_of(self, holder: str, token_id: int) -> int:
        row = TokenBalance.objects.filter(holder=holder, token_id=token_id).values_list('amount', flat=True).first()
        return int(row or 0)

    def _locked_row(self, holder: str, token_id: int) -> TokenBalance:
        row, _ = TokenBalance.objects.select_for_update().get_or_create(
            holder=holder,
            token_id=token_id,
            defaults={'amount': 0},
        )
        return row

    def _credit(self, holder: str, token_id: int, amount: int) -> None:
        row = self._locked_row(holder, token_id)
        if row.amount + amount > MAX_AMOUNT:
            raise ArithmeticOverflowError(
                f"Crediting {amount} would overflow the balance of {holder} for token #{token_id}"
            )
        TokenBalance.objects.filter(pk=row.pk).update(amount=F('amount') + amount)

    def _debit(self, holder: str, token_id: int, amount: int) -> None:
        row = self._locked_row(holder, token_id)
        if row.amount < amount:
            raise InsufficientBalanceError(
                f"{holder} holds {row.amount} of token #{token_id}, needs {amount}"
            )
        TokenBalance.objects.filter(pk=row.pk).update(amount=F('amount') - amount)

    def mint(self, owner: str, token_id: int, amount: int) -> None:
        _require_positive(amount)
        with transaction.atomic():
            self._credit(owner, token_id, amount)
        logger.info("Minted %s of token #%s to %s", amount, token_id, owner)

    def burn(self, owner: str, token_id: int, amount: int) -> None:
        _require_positive(amount)
        with transaction.atomic():
            self._debit(owner, token_id, amount)
        logger.info("Burned %s of token #%s from %s", amount, token_id, owner)

    def transfer(self, sender: str, recipient: str, token_id: int, amount: int) -> None:
        _require_positive(amount)
        with transaction.atomic():
            # Lock rows in a stable order so two opposite transfers cannot deadlock
            for holder in sorted({sender, recipient}):
                self._locked_row(holder, token_id)
            self._debit(sender, token_id, amount)
            self._credit(recipient, token_id, amount)
        logger.info("Transferred %s of token #%s from %s to %s", amount, token_id, sender, recipient)


class DatabasePayoutSink:
    """Records every forwarded payment as a ``Payout`` row."""

    def send(self, recipient: str, value: int) -> bool:
        if value < 0 or value > MAX_AMOUNT:
            logger.warning("Refusing payout of %s to %s: value out of range", value, recipient)
            return False
        if value == 0:
            # Free purchases (e.g. price not set yet) forward nothing
            return True
        Payout.objects.create(recipient=recipient, value=value)
        logger.info("Forwarded %s micro units to %s", value, recipient)
        return True


def get_default_ledger() -> Ledger:
    return DatabaseLedger()


def get_default_payout_sink() -> PayoutSink:
    return DatabasePayoutSink()
