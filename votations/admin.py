from django.contrib import admin
from django.utils.html import format_html

from .models import Ballot, Votation, VotationOption, VoterSpend


class VotationOptionInline(admin.TabularInline):
    model = VotationOption
    extra = 0
    fields = ['index', 'label', 'votes']
    readonly_fields = ['index', 'label', 'votes']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Votation)
class VotationAdmin(admin.ModelAdmin):
    list_display = [
        'votation_id',
        'organization',
        'topic_short',
        'state_colored',
        'votes_for',
        'votes_against',
        'quorum',
        'end_time',
    ]
    list_filter = ['state', 'created_at']
    search_fields = ['topic', 'proposer', 'organization__address']
    inlines = [VotationOptionInline]
    # State changes go through the votation service only
    readonly_fields = [
        'organization',
        'votation_id',
        'proposer',
        'topic',
        'quorum',
        'state',
        'start_time',
        'end_time',
        'votes_for',
        'votes_against',
        'resolved_at',
        'created_at',
        'updated_at',
    ]

    def topic_short(self, obj):
        return obj.topic[:60]
    topic_short.short_description = 'Topic'

    def state_colored(self, obj):
        colors = {
            Votation.STATE_PROPOSED: '#6B7280',
            Votation.STATE_APPROVED: '#3B82F6',
            Votation.STATE_REJECTED: '#EF4444',
            Votation.STATE_FINALIZED: '#10B981',
        }
        return format_html(
            '<span style="color:{};font-weight:bold;">{}</span>',
            colors.get(obj.state, '#000'),
            obj.get_state_display(),
        )
    state_colored.short_description = 'State'

    def has_add_permission(self, request):
        return False


@admin.register(VoterSpend)
class VoterSpendAdmin(admin.ModelAdmin):
    list_display = ['votation', 'voter', 'amount']
    search_fields = ['voter']
    readonly_fields = ['votation', 'voter', 'amount']

    def has_add_permission(self, request):
        return False


@admin.register(Ballot)
class BallotAdmin(admin.ModelAdmin):
    list_display = ['votation', 'voter', 'option_index', 'amount', 'cast_at']
    list_filter = ['cast_at']
    search_fields = ['voter']
    readonly_fields = ['votation', 'voter', 'option_index', 'amount', 'cast_at']

    def has_add_permission(self, request):
        return False
