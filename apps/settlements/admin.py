from django.contrib import admin
from .models import Transaction, TransactionStatus
from .services import cancel_transaction, complete_transaction


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['reference', 'kind', 'from_member', 'to_member', 'amount', 'status', 'group', 'created_at']
    list_filter = ['kind', 'status', 'created_at']
    search_fields = ['description', 'from_member__name', 'to_member__name', 'group__name']
    readonly_fields = [
        'reference', 'group', 'from_member', 'to_member',
        'amount', 'kind', 'status', 'created_at', 'updated_at',
    ]
    actions = ['mark_completed', 'mark_cancelled']

    @admin.action(description='Mark selected pending transactions as completed')
    def mark_completed(self, request, queryset):
        pending = queryset.filter(status=TransactionStatus.PENDING)
        count = 0
        for txn in pending:
            complete_transaction(reference=txn.reference)
            count += 1
        self.message_user(request, f"{count} transactions completed.")

    @admin.action(description='Cancel selected pending transactions')
    def mark_cancelled(self, request, queryset):
        pending = queryset.filter(status=TransactionStatus.PENDING)
        count = 0
        for txn in pending:
            cancel_transaction(reference=txn.reference)
            count += 1
        self.message_user(request, f"{count} transactions cancelled.")
