from django.db import models


class TokenBalance(models.Model):
    """Units of one organization token held by one address"""
    holder = models.CharField(max_length=128, db_index=True)
    token_id = models.PositiveBigIntegerField()
    amount = models.PositiveBigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ['holder', 'token_id']
        indexes = [
            models.Index(fields=['token_id', 'holder'], name='ledger_balance_token_holder'),
        ]

    def __str__(self):
        return f"{self.holder} - {self.amount} of token #{self.token_id}"


class Payout(models.Model):
    """Native value forwarded to an organization's payout address"""
    recipient = models.CharField(max_length=128, db_index=True)
    value = models.PositiveBigIntegerField(help_text="Micro units (6 decimals)")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.value} -> {self.recipient}"
