from django.contrib import admin

from .models import Payout, TokenBalance


@admin.register(TokenBalance)
class TokenBalanceAdmin(admin.ModelAdmin):
    list_display = ['holder', 'token_id', 'amount', 'updated_at']
    list_filter = ['token_id']
    search_fields = ['holder']
    readonly_fields = ['holder', 'token_id', 'amount', 'updated_at']

    def has_add_permission(self, request):
        # Balances only move through the sale and votation services
        return False


@admin.register(Payout)
class PayoutAdmin(admin.ModelAdmin):
    list_display = ['recipient', 'value', 'created_at']
    search_fields = ['recipient']
    readonly_fields = ['recipient', 'value', 'created_at']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False
