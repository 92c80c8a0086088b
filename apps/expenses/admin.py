from django.contrib import admin
from .models import Expense, ExpenseShare


class ExpenseShareInline(admin.TabularInline):
    """Inline admin for shares within an expense."""
    model = ExpenseShare
    extra = 0
    fields = ['member', 'weight', 'amount']
    readonly_fields = ['member', 'weight', 'amount']

    def has_add_permission(self, request, obj=None):
        """Shares are created by the ledger service."""
        return False


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ['description', 'group', 'payer', 'amount', 'split_mode', 'category', 'date']
    list_filter = ['category', 'split_mode', 'date']
    search_fields = ['description', 'group__name', 'payer__name']
    readonly_fields = [
        'id', 'group', 'payer', 'description', 'amount',
        'split_mode', 'category', 'position', 'date', 'created_at',
    ]
    inlines = [ExpenseShareInline]

    def has_add_permission(self, request):
        """Expenses go through the ledger so balances stay in step."""
        return False
