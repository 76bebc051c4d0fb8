"""
Votation lifecycle.

    proposed --approve--> approved --finalize--> finalized
        |                     |
        +------reject-------> rejected <--finalize (quorum/majority failed)

Rejected and finalized votations never change again. Time-dependent
transitions compare against the ``now`` supplied by the caller; nothing here
runs on a timer.

Only options 0 and 1 feed ``votes_for`` / ``votes_against`` and therefore
quorum and majority. Weight cast on any later option is tallied per option
but does not influence the outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional, Sequence, Tuple

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from ledger.constants import MAX_AMOUNT
from ledger.services import Ledger, get_default_ledger
from organizations.access import AccessGate, DatabaseAccessGate, require_admin, require_donor, require_not_treasury
from organizations.exceptions import (
    ArithmeticOverflowError,
    EmptyTopicError,
    InsufficientBalanceError,
    InvalidQuorumError,
    InvalidVotationStateError,
    OptionCountError,
    OptionIndexError,
    VotationNotFoundError,
    VotingClosedError,
    VotingNotEndedError,
    ZeroAmountError,
)
from organizations.locks import non_reentrant
from organizations.services import get_organization_for_update, get_organization_model

from .models import Ballot, Votation, VotationOption, VoterSpend

logger = logging.getLogger(__name__)

DEFAULT_VOTING_PERIOD_SECONDS = 7 * 24 * 60 * 60


def get_voting_period() -> timedelta:
    seconds = getattr(settings, 'VOTATION_VOTING_PERIOD_SECONDS', DEFAULT_VOTING_PERIOD_SECONDS)
    return timedelta(seconds=int(seconds))


def get_option_bounds() -> Tuple[int, int]:
    return (
        getattr(settings, 'VOTATION_MIN_OPTIONS', 2),
        getattr(settings, 'VOTATION_MAX_OPTIONS', 10),
    )


@dataclass(frozen=True)
class VotationSnapshot:
    organization: str
    votation_id: int
    proposer: str
    topic: str
    options: Tuple[str, ...]
    quorum: int
    state: str
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    votes_for: int
    votes_against: int

    @property
    def total_votes(self) -> int:
        return self.votes_for + self.votes_against

    @classmethod
    def from_model(cls, votation: Votation) -> "VotationSnapshot":
        return cls(
            organization=votation.organization.address,
            votation_id=votation.votation_id,
            proposer=votation.proposer,
            topic=votation.topic,
            options=tuple(votation.options),
            quorum=votation.quorum,
            state=votation.state,
            start_time=votation.start_time,
            end_time=votation.end_time,
            votes_for=votation.votes_for,
            votes_against=votation.votes_against,
        )


def _lookup(organization, votation_id: int, for_update: bool = False) -> Votation:
    queryset = Votation.objects.select_related('organization')
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(organization=organization, votation_id=votation_id)
    except Votation.DoesNotExist:
        raise VotationNotFoundError(f"Votation {votation_id} not found for {organization.address}")


def get_votation(organization_address: str, votation_id: int) -> VotationSnapshot:
    organization = get_organization_model(organization_address)
    return VotationSnapshot.from_model(_lookup(organization, votation_id))


def get_votes(organization_address: str, votation_id: int, option_index: Optional[int] = None):
    """
    Accumulated weight per option.

    Returns ``{index: weight}`` for every option, or the weight of a single
    option when ``option_index`` is given.
    """
    organization = get_organization_model(organization_address)
    votation = _lookup(organization, votation_id)
    tallies: Dict[int, int] = dict(votation.option_tallies.values_list('index', 'votes'))
    if option_index is None:
        return tallies
    if option_index not in tallies:
        raise OptionIndexError(f"Option {option_index} does not exist on votation {votation_id}")
    return tallies[option_index]


def get_votes_spent(organization_address: str, votation_id: int, voter: str) -> int:
    organization = get_organization_model(organization_address)
    votation = _lookup(organization, votation_id)
    spent = votation.voter_spends.filter(voter=voter).values_list('amount', flat=True).first()
    return int(spent or 0)


def list_expired_votations(now: Optional[datetime] = None, organization_address: Optional[str] = None):
    """Approved votations whose voting window has closed and are ready to finalize."""
    now = now or timezone.now()
    queryset = Votation.objects.filter(
        state=Votation.STATE_APPROVED,
        end_time__lt=now,
    ).select_related('organization')
    if organization_address:
        queryset = queryset.filter(organization__address=organization_address)
    return queryset.order_by('end_time', 'id')


class VotationService:
    def __init__(self, ledger: Optional[Ledger] = None, access_gate: Optional[AccessGate] = None):
        self.ledger = ledger or get_default_ledger()
        self.access_gate = access_gate or DatabaseAccessGate(self.ledger)

    def propose(
        self,
        organization_address: str,
        proposer: str,
        topic: str,
        options: Sequence[str],
        quorum: int,
    ) -> VotationSnapshot:
        with transaction.atomic():
            organization = get_organization_for_update(organization_address)
            require_not_treasury(proposer, "a proposer")
            require_donor(self.access_gate, organization, proposer)

            min_options, max_options = get_option_bounds()
            options = list(options or [])
            if not min_options <= len(options) <= max_options:
                raise OptionCountError(
                    f"A votation needs between {min_options} and {max_options} options, got {len(options)}"
                )
            if not topic or not topic.strip():
                raise EmptyTopicError()
            if quorum <= 0:
                raise InvalidQuorumError()
            if quorum > MAX_AMOUNT:
                raise ArithmeticOverflowError()

            votation = Votation.objects.create(
                organization=organization,
                votation_id=organization.next_votation_id,
                proposer=proposer,
                topic=topic,
                quorum=quorum,
                state=Votation.STATE_PROPOSED,
            )
            VotationOption.objects.bulk_create([
                VotationOption(votation=votation, index=index, label=label)
                for index, label in enumerate(options)
            ])
            organization.next_votation_id += 1
            organization.save(update_fields=['next_votation_id', 'updated_at'])

        logger.info(
            "Votation %s proposed on %s by %s (%s options, quorum %s)",
            votation.votation_id, organization_address, proposer, len(options), quorum,
        )
        return VotationSnapshot.from_model(votation)

    def approve(
        self,
        organization_address: str,
        votation_id: int,
        caller: str,
        now: Optional[datetime] = None,
    ) -> VotationSnapshot:
        now = now or timezone.now()
        with transaction.atomic():
            organization = get_organization_model(organization_address)
            require_admin(self.access_gate, organization, caller)
            votation = _lookup(organization, votation_id, for_update=True)
            self._require_state(votation, Votation.STATE_PROPOSED)

            votation.state = Votation.STATE_APPROVED
            votation.start_time = now
            votation.end_time = now + get_voting_period()
            votation.save(update_fields=['state', 'start_time', 'end_time', 'updated_at'])

        logger.info(
            "Votation %s of %s approved by %s, voting open until %s",
            votation_id, organization_address, caller, votation.end_time.isoformat(),
        )
        return VotationSnapshot.from_model(votation)

    def reject(
        self,
        organization_address: str,
        votation_id: int,
        caller: str,
        now: Optional[datetime] = None,
    ) -> VotationSnapshot:
        now = now or timezone.now()
        with transaction.atomic():
            organization = get_organization_model(organization_address)
            require_admin(self.access_gate, organization, caller)
            votation = _lookup(organization, votation_id, for_update=True)
            self._require_state(votation, Votation.STATE_PROPOSED)

            votation.state = Votation.STATE_REJECTED
            votation.resolved_at = now
            votation.save(update_fields=['state', 'resolved_at', 'updated_at'])

        logger.info("Votation %s of %s rejected by %s", votation_id, organization_address, caller)
        return VotationSnapshot.from_model(votation)

    def vote(
        self,
        organization_address: str,
        votation_id: int,
        voter: str,
        option_index: int,
        amount: int,
        now: Optional[datetime] = None,
    ) -> VotationSnapshot:
        """
        Cast ``amount`` units of weight on ``option_index``.

        The units are burned from the voter, not locked: a vote permanently
        consumes them. A voter may vote any number of times, on any options,
        as long as they still hold tokens.
        """
        now = now or timezone.now()
        key = f"vote:{organization_address}:{votation_id}"
        with non_reentrant(key), transaction.atomic():
            organization = get_organization_model(organization_address)
            votation = _lookup(organization, votation_id, for_update=True)
            require_not_treasury(voter, "a voter")
            require_donor(self.access_gate, organization, voter)
            self._require_state(votation, Votation.STATE_APPROVED)
            if now > votation.end_time:
                raise VotingClosedError(f"Voting on votation {votation_id} closed at {votation.end_time.isoformat()}")

            option = votation.option_tallies.select_for_update().filter(index=option_index).first()
            if option is None:
                raise OptionIndexError(
                    f"Option {option_index} out of range (0..{votation.option_tallies.count() - 1})"
                )
            if amount <= 0:
                raise ZeroAmountError()
            balance = self.ledger.balance_of(voter, organization.token_id)
            if balance < amount:
                raise InsufficientBalanceError(f"{voter} holds {balance} tokens, tried to vote with {amount}")

            spend, _ = VoterSpend.objects.select_for_update().get_or_create(votation=votation, voter=voter)
            tallies = [option.votes, spend.amount]
            if option_index == 0:
                tallies.append(votation.votes_for)
            elif option_index == 1:
                tallies.append(votation.votes_against)
            if any(current > MAX_AMOUNT - amount for current in tallies):
                raise ArithmeticOverflowError(f"Casting {amount} would overflow the tallies of votation {votation_id}")

            self.ledger.burn(voter, organization.token_id, amount)

            VotationOption.objects.filter(pk=option.pk).update(votes=F('votes') + amount)
            VoterSpend.objects.filter(pk=spend.pk).update(amount=F('amount') + amount)
            Ballot.objects.create(
                votation=votation,
                voter=voter,
                option_index=option_index,
                amount=amount,
                cast_at=now,
            )

            update_fields = ['updated_at']
            if option_index == 0:
                votation.votes_for += amount
                update_fields.append('votes_for')
            elif option_index == 1:
                votation.votes_against += amount
                update_fields.append('votes_against')
            votation.save(update_fields=update_fields)

        logger.info(
            "%s cast %s on option %s of votation %s (%s)",
            voter, amount, option_index, votation_id, organization_address,
        )
        return VotationSnapshot.from_model(votation)

    def finalize(
        self,
        organization_address: str,
        votation_id: int,
        now: Optional[datetime] = None,
    ) -> VotationSnapshot:
        """Resolve an approved votation once its window has closed. Anyone may call this."""
        now = now or timezone.now()
        with transaction.atomic():
            organization = get_organization_model(organization_address)
            votation = _lookup(organization, votation_id, for_update=True)
            self._require_state(votation, Votation.STATE_APPROVED)
            if now <= votation.end_time:
                raise VotingNotEndedError(
                    f"Votation {votation_id} can be finalized after {votation.end_time.isoformat()}"
                )

            passed = votation.total_votes >= votation.quorum and votation.votes_for > votation.votes_against
            votation.state = Votation.STATE_FINALIZED if passed else Votation.STATE_REJECTED
            votation.resolved_at = now
            votation.save(update_fields=['state', 'resolved_at', 'updated_at'])

        logger.info(
            "Votation %s of %s resolved as %s (for=%s against=%s quorum=%s)",
            votation_id, organization_address, votation.state,
            votation.votes_for, votation.votes_against, votation.quorum,
        )
        return VotationSnapshot.from_model(votation)

    @staticmethod
    def _require_state(votation: Votation, expected: str) -> None:
        if votation.state != expected:
            raise InvalidVotationStateError(
                f"Votation {votation.votation_id} is {votation.state}, expected {expected}"
            )