from django.db import models

from organizations.models import Organization


class Votation(models.Model):
    """A token-weighted vote proposed by a donor of an organization"""
    STATE_PROPOSED = 'proposed'
    STATE_APPROVED = 'approved'
    STATE_REJECTED = 'rejected'
    STATE_FINALIZED = 'finalized'

    STATE_CHOICES = [
        (STATE_PROPOSED, 'Proposed'),
        (STATE_APPROVED, 'Approved'),
        (STATE_REJECTED, 'Rejected'),
        (STATE_FINALIZED, 'Finalized'),
    ]
    TERMINAL_STATES = (STATE_REJECTED, STATE_FINALIZED)

    organization = models.ForeignKey(
        Organization,
        on_delete=models.PROTECT,
        related_name='votations'
    )
    votation_id = models.PositiveBigIntegerField(help_text="Sequential id within the organization, starting at 1")
    proposer = models.CharField(max_length=128)
    topic = models.TextField()
    quorum = models.PositiveBigIntegerField(help_text="Minimum votes for + against needed to pass")
    state = models.CharField(max_length=20, choices=STATE_CHOICES, default=STATE_PROPOSED)
    start_time = models.DateTimeField(null=True, blank=True)
    end_time = models.DateTimeField(null=True, blank=True)
    votes_for = models.PositiveBigIntegerField(default=0, help_text="Weight cast on option 0")
    votes_against = models.PositiveBigIntegerField(default=0, help_text="Weight cast on option 1")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['organization', 'votation_id']
        unique_together = ['organization', 'votation_id']
        indexes = [
            models.Index(fields=['state', 'end_time'], name='votation_state_end'),
        ]

    def __str__(self):
        return f"Votation {self.votation_id} of {self.organization.address}: {self.topic[:40]}"

    @property
    def options(self):
        return [option.label for option in self.option_tallies.order_by('index')]

    @property
    def is_terminal(self):
        return self.state in self.TERMINAL_STATES

    @property
    def total_votes(self):
        """Weight that counts toward quorum (options 0 and 1 only)"""
        return self.votes_for + self.votes_against


class VotationOption(models.Model):
    """One option of a votation with its accumulated vote weight"""
    votation = models.ForeignKey(
        Votation,
        on_delete=models.CASCADE,
        related_name='option_tallies'
    )
    index = models.PositiveSmallIntegerField()
    label = models.TextField()
    votes = models.PositiveBigIntegerField(default=0)

    class Meta:
        ordering = ['votation', 'index']
        unique_together = ['votation', 'index']

    def __str__(self):
        return f"#{self.index} {self.label}: {self.votes}"


class VoterSpend(models.Model):
    """Cumulative weight a voter has committed to a votation"""
    votation = models.ForeignKey(
        Votation,
        on_delete=models.CASCADE,
        related_name='voter_spends'
    )
    voter = models.CharField(max_length=128)
    amount = models.PositiveBigIntegerField(default=0)

    class Meta:
        unique_together = ['votation', 'voter']

    def __str__(self):
        return f"{self.voter} spent {self.amount}"


class Ballot(models.Model):
    """A single vote call, kept for auditing"""
    votation = models.ForeignKey(
        Votation,
        on_delete=models.CASCADE,
        related_name='ballots'
    )
    voter = models.CharField(max_length=128)
    option_index = models.PositiveSmallIntegerField()
    amount = models.PositiveBigIntegerField()
    cast_at = models.DateTimeField()

    class Meta:
        ordering = ['cast_at', 'id']
        indexes = [
            models.Index(fields=['votation', 'voter'], name='ballot_votation_voter'),
        ]

    def __str__(self):
        return f"{self.voter} -> #{self.option_index} x{self.amount}"
