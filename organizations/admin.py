from django.contrib import admin
from django.utils.html import format_html

from ledger.constants import MICRO_MULTIPLIER

from .models import Organization, OrganizationAdmin, TokenPurchase
from .pricing import unit_price


def format_micro(value):
    return f"{value / MICRO_MULTIPLIER:,.6f}"


class OrganizationAdminInline(admin.TabularInline):
    model = OrganizationAdmin
    extra = 0
    fields = ['address', 'granted_by', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Organization)
class OrganizationModelAdmin(admin.ModelAdmin):
    list_display = [
        'address',
        'token_id',
        'sale_mode',
        'formatted_price',
        'tokens_available',
        'tokens_sold',
        'sold_progress',
        'created_at',
    ]
    list_filter = ['sale_mode', 'created_at']
    search_fields = ['address', 'payout_address']
    inlines = [OrganizationAdminInline]
    # Counters only move through the sale service
    readonly_fields = [
        'token_id',
        'sale_mode',
        'tokens_available',
        'tokens_sold',
        'next_votation_id',
        'current_unit_price',
        'created_at',
        'updated_at',
    ]

    fieldsets = (
        ('Organization', {
            'fields': ('address', 'payout_address', 'token_id')
        }),
        ('Sale', {
            'fields': ('sale_mode', 'price_per_token', 'current_unit_price', 'tokens_available', 'tokens_sold')
        }),
        ('Governance', {
            'fields': ('next_votation_id',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def formatted_price(self, obj):
        return format_micro(obj.price_per_token) if obj.is_fixed_price else '-'
    formatted_price.short_description = 'Price'

    def current_unit_price(self, obj):
        return format_micro(unit_price(obj.sale_mode, obj.price_per_token, obj.tokens_sold))
    current_unit_price.short_description = 'Next unit price'

    def sold_progress(self, obj):
        total = obj.total_supply
        percentage = (obj.tokens_sold * 100 / total) if total else 0
        return format_html(
            '<div style="width:100px;background:#eee;"><div style="width:{}px;background:#72BE44;height:10px;"></div></div> {}%',
            int(percentage),
            f"{percentage:.1f}",
        )
    sold_progress.short_description = 'Sold'

    def has_add_permission(self, request):
        # Use the register_organization command so the supply gets minted
        return False


@admin.register(TokenPurchase)
class TokenPurchaseAdmin(admin.ModelAdmin):
    list_display = ['organization', 'buyer', 'amount', 'formatted_total', 'tokens_sold_before', 'created_at']
    list_filter = ['organization', 'created_at']
    search_fields = ['buyer', 'organization__address']
    readonly_fields = ['organization', 'buyer', 'amount', 'total_price', 'tokens_sold_before', 'created_at']
    date_hierarchy = 'created_at'

    def formatted_total(self, obj):
        return format_micro(obj.total_price)
    formatted_total.short_description = 'Total paid'

    def has_add_permission(self, request):
        return False
