from django.contrib import admin
from apps.members.models import Member


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    """Admin interface for catalog members."""

    list_display = ['name', 'contact_id', 'user', 'group_count', 'created_at']
    search_fields = ['name', 'contact_id', 'user__username']
    readonly_fields = ['created_at']
    ordering = ['name']

    def group_count(self, obj):
        """Show number of groups the member belongs to."""
        return obj.group_memberships.count()
    group_count.short_description = 'Groups'
