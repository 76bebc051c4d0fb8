from django.db import models

from .pricing import FIXED_PRICE, FIXED_QUANTITY, SALE_MODE_CHOICES


class Organization(models.Model):
    """An organization and the sale account of its membership token"""
    address = models.CharField(max_length=128, unique=True)
    payout_address = models.CharField(
        max_length=128,
        help_text="Address receiving the proceeds of every token purchase"
    )
    token_id = models.PositiveBigIntegerField(unique=True)
    sale_mode = models.CharField(max_length=20, choices=SALE_MODE_CHOICES, editable=False)
    price_per_token = models.PositiveBigIntegerField(
        default=0,
        help_text="Micro units per token, only used by fixed price sales"
    )
    tokens_available = models.PositiveBigIntegerField(default=0)
    tokens_sold = models.PositiveBigIntegerField(default=0)
    next_votation_id = models.PositiveBigIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['token_id']

    def __str__(self):
        return f"{self.address} (token #{self.token_id})"

    @property
    def is_fixed_price(self):
        return self.sale_mode == FIXED_PRICE

    @property
    def is_fixed_quantity(self):
        return self.sale_mode == FIXED_QUANTITY

    @property
    def total_supply(self):
        """Units still for sale plus units already sold"""
        return self.tokens_available + self.tokens_sold


class OrganizationAdmin(models.Model):
    """Address holding administrative capability over an organization"""
    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name='admins'
    )
    address = models.CharField(max_length=128)
    granted_by = models.CharField(max_length=128, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ['organization', 'address']

    def __str__(self):
        return f"{self.address} admin of {self.organization.address}"


class TokenPurchase(models.Model):
    """Records individual token purchases"""
    organization = models.ForeignKey(
        Organization,
        on_delete=models.PROTECT,
        related_name='purchases'
    )
    buyer = models.CharField(max_length=128)
    amount = models.PositiveBigIntegerField()
    total_price = models.PositiveBigIntegerField(help_text="Micro units paid")
    tokens_sold_before = models.PositiveBigIntegerField(
        help_text="Cumulative units sold when this purchase was priced"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['organization', 'buyer'], name='org_purchase_org_buyer'),
        ]

    def __str__(self):
        return f"{self.buyer} - {self.amount} tokens for {self.total_price}"
