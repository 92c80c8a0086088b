# ==========================================
# apps/groups/admin.py
# ==========================================

from django.contrib import admin
from apps.groups.models import Group, GroupMember
from apps.expenses.services import ExpenseLedgerService


class GroupMemberInline(admin.TabularInline):
    """Inline admin for group members."""
    model = GroupMember
    extra = 0
    fields = ['member', 'balance', 'position', 'joined_at']
    readonly_fields = ['member', 'balance', 'joined_at']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    """Admin interface for Groups."""

    list_display = [
        'name',
        'owner',
        'member_count',
        'budget',
        'currency',
        'closed',
        'created_at'
    ]
    list_filter = ['closed', 'currency', 'created_at']
    search_fields = ['name', 'owner__name']
    readonly_fields = ['closed', 'closed_at', 'created_at', 'updated_at']
    inlines = [GroupMemberInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'owner', 'color')
        }),
        ('Budget', {
            'fields': ('budget', 'currency')
        }),
        ('State', {
            'fields': ('closed', 'closed_at')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def member_count(self, obj):
        """Show number of members."""
        return obj.memberships.count()
    member_count.short_description = 'Members'

    actions = ['audit_balances']

    def audit_balances(self, request, queryset):
        """Recompute balances from expense shares and report drift."""
        drifted = 0
        for group in queryset:
            report = ExpenseLedgerService.recalculate_balances(group_id=group.id)
            if any(row['drift'] for row in report.values()):
                drifted += 1
        self.message_user(request, f"Audited {queryset.count()} groups, {drifted} with balance drift")
    audit_balances.short_description = "Audit balances"
