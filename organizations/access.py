"""
Admin and donor eligibility checks.

The services ask an ``AccessGate`` two questions and never look at role
storage directly. ``DatabaseAccessGate`` answers them from
``OrganizationAdmin`` rows and the token ledger.

The treasury holds every organization's unsold supply in custody. It is never
a caller: it cannot register, administer, buy, propose or vote.
"""

from __future__ import annotations

from typing import Optional, Protocol

from django.conf import settings

from ledger.services import Ledger, get_default_ledger

from .exceptions import NotAdminError, NotDonorError, ReservedAddressError
from .models import OrganizationAdmin


def treasury_address() -> str:
    return getattr(settings, 'TOKEN_TREASURY_ADDRESS', 'orgtoken-treasury')


def is_treasury(address: Optional[str]) -> bool:
    return bool(address) and address == treasury_address()


def require_not_treasury(address: Optional[str], role: str) -> None:
    if is_treasury(address):
        raise ReservedAddressError(f"The treasury address cannot be used as {role}")


class AccessGate(Protocol):
    def is_admin(self, organization, address: str) -> bool: ...

    def is_donor(self, organization, address: str) -> bool: ...


class DatabaseAccessGate:
    def __init__(self, ledger: Optional[Ledger] = None):
        self.ledger = ledger or get_default_ledger()

    def is_admin(self, organization, address: str) -> bool:
        if not address or is_treasury(address):
            return False
        # The organization account administers itself
        if address == organization.address:
            return True
        return OrganizationAdmin.objects.filter(organization_id=organization.pk, address=address).exists()

    def is_donor(self, organization, address: str) -> bool:
        if not address or is_treasury(address):
            return False
        return self.ledger.balance_of(address, organization.token_id) > 0


def require_admin(gate: AccessGate, organization, address: str) -> None:
    if not gate.is_admin(organization, address):
        raise NotAdminError(f"{address or 'anonymous caller'} is not an admin of {organization.address}")


def require_donor(gate: AccessGate, organization, address: str) -> None:
    if not gate.is_donor(organization, address):
        raise NotDonorError(f"{address or 'anonymous caller'} holds no tokens of {organization.address}")
