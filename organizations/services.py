"""
Sale account operations: registration, pricing configuration, supply
adjustments and purchases.

Every mutation runs in a single database transaction with the organization
row locked, so a failure at any step (including the payout) leaves counters,
balances and purchase records exactly as they were.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import IntegrityError, transaction
from django.db.models import Max

from ledger.constants import MAX_AMOUNT
from ledger.services import Ledger, PayoutSink, get_default_ledger, get_default_payout_sink

from .access import AccessGate, DatabaseAccessGate, require_admin, require_not_treasury, treasury_address
from .exceptions import (
    ArithmeticOverflowError,
    InsufficientAvailabilityError,
    InvalidValueError,
    OrganizationAlreadyRegisteredError,
    OrganizationNotFoundError,
    PaymentMismatchError,
    PayoutFailedError,
    SaleModeError,
    ZeroAmountError,
)
from .locks import non_reentrant
from .models import Organization, OrganizationAdmin, TokenPurchase
from .pricing import FIXED_PRICE, FIXED_QUANTITY, SALE_MODE_CHOICES, quote_total_price

logger = logging.getLogger(__name__)

SALE_MODES = {value for value, _ in SALE_MODE_CHOICES}


@dataclass(frozen=True)
class OrganizationSnapshot:
    """Read-only view of an organization's sale account."""

    address: str
    payout_address: str
    token_id: int
    sale_mode: str
    price_per_token: int
    tokens_available: int
    tokens_sold: int
    next_votation_id: int

    @classmethod
    def from_model(cls, organization: Organization) -> "OrganizationSnapshot":
        return cls(
            address=organization.address,
            payout_address=organization.payout_address,
            token_id=organization.token_id,
            sale_mode=organization.sale_mode,
            price_per_token=organization.price_per_token,
            tokens_available=organization.tokens_available,
            tokens_sold=organization.tokens_sold,
            next_votation_id=organization.next_votation_id,
        )


def get_organization_for_update(address: str) -> Organization:
    """Lock and return the organization row. Must run inside a transaction."""
    try:
        return Organization.objects.select_for_update().get(address=address)
    except Organization.DoesNotExist:
        raise OrganizationNotFoundError(f"Organization {address} is not registered")


def get_organization_model(address: str) -> Organization:
    try:
        return Organization.objects.get(address=address)
    except Organization.DoesNotExist:
        raise OrganizationNotFoundError(f"Organization {address} is not registered")


def get_organization(address: str) -> OrganizationSnapshot:
    return OrganizationSnapshot.from_model(get_organization_model(address))


class SaleService:
    """
    Sale account operations for every registered organization.

    Collaborators are injected so tests and alternative deployments can swap
    the ledger, the role store or the payout channel.
    """

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        access_gate: Optional[AccessGate] = None,
        payout_sink: Optional[PayoutSink] = None,
    ):
        self.ledger = ledger or get_default_ledger()
        self.access_gate = access_gate or DatabaseAccessGate(self.ledger)
        self.payout_sink = payout_sink or get_default_payout_sink()

    def register_organization(
        self,
        address: str,
        sale_mode: str,
        initial_supply: int,
        payout_address: Optional[str] = None,
    ) -> OrganizationSnapshot:
        require_not_treasury(address, "an organization address")
        require_not_treasury(payout_address, "a payout address")
        if sale_mode not in SALE_MODES:
            raise SaleModeError(f"Unknown sale mode {sale_mode!r}")
        if initial_supply <= 0:
            raise ZeroAmountError("Initial supply must be greater than zero")
        if initial_supply > MAX_AMOUNT:
            raise ArithmeticOverflowError()

        try:
            with transaction.atomic():
                if Organization.objects.filter(address=address).exists():
                    raise OrganizationAlreadyRegisteredError(f"Organization {address} is already registered")

                last_token_id = Organization.objects.aggregate(last=Max('token_id'))['last'] or 0
                organization = Organization.objects.create(
                    address=address,
                    payout_address=payout_address or address,
                    token_id=last_token_id + 1,
                    sale_mode=sale_mode,
                    tokens_available=initial_supply,
                    tokens_sold=0,
                    next_votation_id=1,
                )
                self.ledger.mint(treasury_address(), organization.token_id, initial_supply)
        except IntegrityError:
            # Lost a race against a concurrent registration of the same address
            if Organization.objects.filter(address=address).exists():
                raise OrganizationAlreadyRegisteredError(f"Organization {address} is already registered")
            raise

        logger.info(
            "Registered organization %s: token #%s, mode=%s, supply=%s",
            address, organization.token_id, sale_mode, initial_supply,
        )
        return OrganizationSnapshot.from_model(organization)

    def grant_admin(self, address: str, caller: str, admin_address: str) -> None:
        with transaction.atomic():
            organization = get_organization_for_update(address)
            require_admin(self.access_gate, organization, caller)
            if not admin_address:
                raise InvalidValueError("Admin address must not be empty")
            require_not_treasury(admin_address, "an admin address")
            OrganizationAdmin.objects.get_or_create(
                organization=organization,
                address=admin_address,
                defaults={'granted_by': caller},
            )
        logger.info("Granted admin on %s to %s (by %s)", address, admin_address, caller)

    def set_price(self, address: str, caller: str, price: int) -> OrganizationSnapshot:
        with transaction.atomic():
            organization = get_organization_for_update(address)
            require_admin(self.access_gate, organization, caller)
            if organization.sale_mode != FIXED_PRICE:
                raise SaleModeError("Price can only be set on fixed price sales")
            if price < 0:
                raise InvalidValueError("Price must not be negative")
            if price > MAX_AMOUNT:
                raise ArithmeticOverflowError()
            organization.price_per_token = price
            organization.save(update_fields=['price_per_token', 'updated_at'])

        logger.info("Price of %s set to %s by %s", address, price, caller)
        return OrganizationSnapshot.from_model(organization)

    def adjust_available(self, address: str, caller: str, delta: int) -> OrganizationSnapshot:
        """Mint (positive delta) or burn (negative delta) unsold treasury units."""
        with transaction.atomic():
            organization = get_organization_for_update(address)
            require_admin(self.access_gate, organization, caller)
            if organization.sale_mode != FIXED_QUANTITY:
                raise SaleModeError("Availability can only be adjusted on fixed quantity sales")
            if delta == 0:
                raise ZeroAmountError("Adjustment must not be zero")

            if delta > 0:
                # Sold plus available is the total supply and must stay representable
                if organization.total_supply > MAX_AMOUNT - delta:
                    raise ArithmeticOverflowError()
                self.ledger.mint(treasury_address(), organization.token_id, delta)
                organization.tokens_available += delta
            else:
                if organization.tokens_available < -delta:
                    raise InsufficientAvailabilityError(
                        f"Cannot burn {-delta} units, only {organization.tokens_available} available"
                    )
                self.ledger.burn(treasury_address(), organization.token_id, -delta)
                organization.tokens_available += delta
            organization.save(update_fields=['tokens_available', 'updated_at'])

        logger.info("Availability of %s adjusted by %s (now %s)", address, delta, organization.tokens_available)
        return OrganizationSnapshot.from_model(organization)

    def quote_purchase(self, address: str, amount: int) -> int:
        """Exact value a ``buy_tokens`` call for ``amount`` units must pay right now."""
        organization = get_organization_model(address)
        return quote_total_price(
            organization.sale_mode,
            organization.price_per_token,
            organization.tokens_sold,
            amount,
        )

    def buy_tokens(self, address: str, buyer: str, amount: int, paid_value: int) -> TokenPurchase:
        with non_reentrant(f"sale:{address}"), transaction.atomic():
            organization = get_organization_for_update(address)
            require_not_treasury(buyer, "a buyer")
            if amount <= 0:
                raise ZeroAmountError()
            if organization.tokens_available < amount:
                raise InsufficientAvailabilityError(
                    f"Requested {amount} units, only {organization.tokens_available} available"
                )

            total_price = quote_total_price(
                organization.sale_mode,
                organization.price_per_token,
                organization.tokens_sold,
                amount,
            )
            if paid_value != total_price:
                raise PaymentMismatchError(f"Expected exactly {total_price}, received {paid_value}")

            tokens_sold_before = organization.tokens_sold
            organization.tokens_available -= amount
            organization.tokens_sold += amount
            organization.save(update_fields=['tokens_available', 'tokens_sold', 'updated_at'])

            self.ledger.transfer(treasury_address(), buyer, organization.token_id, amount)
            purchase = TokenPurchase.objects.create(
                organization=organization,
                buyer=buyer,
                amount=amount,
                total_price=total_price,
                tokens_sold_before=tokens_sold_before,
            )

            if not self.payout_sink.send(organization.payout_address, total_price):
                logger.error(
                    "Payout of %s to %s failed, rolling back purchase of %s units by %s",
                    total_price, organization.payout_address, amount, buyer,
                )
                raise PayoutFailedError()

        logger.info(
            "%s bought %s units of %s for %s (sold %s -> %s)",
            buyer, amount, address, total_price, tokens_sold_before, tokens_sold_before + amount,
        )
        return purchase
