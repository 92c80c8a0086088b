from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class TransactionKind(models.TextChoices):
    PAYMENT = 'payment', 'Payment'
    REQUEST = 'request', 'Request'


class TransactionStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class Transaction(models.Model):
    """
    A money movement between two members.

    ``from_member`` pays ``to_member``. For a request, ``to_member`` asked
    ``from_member`` for the money and it stays pending until paid.

    The auto-incrementing primary key defines insertion order; ``reference``
    is the stable public identifier.
    """

    reference = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)

    # Null for peer-to-peer transfers outside a group
    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='transactions'
    )
    from_member = models.ForeignKey(
        'members.Member',
        on_delete=models.PROTECT,
        related_name='outgoing_transactions'
    )
    to_member = models.ForeignKey(
        'members.Member',
        on_delete=models.PROTECT,
        related_name='incoming_transactions'
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    kind = models.CharField(max_length=20, choices=TransactionKind.choices)
    status = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
        default=TransactionStatus.PENDING
    )
    description = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'transactions'
        indexes = [
            models.Index(fields=['group', 'id'], name='transactions_group_idx'),
            models.Index(fields=['from_member', 'status'], name='transactions_from_status_idx'),
            models.Index(fields=['to_member', 'status'], name='transactions_to_status_idx'),
        ]
        ordering = ['id']

    def __str__(self):
        return (
            f"{self.get_kind_display()} {self.amount}: "
            f"{self.from_member.name} -> {self.to_member.name} ({self.status})"
        )

    @property
    def is_pending(self):
        return self.status == TransactionStatus.PENDING

    def involves(self, member):
        return member is not None and member.pk in (self.from_member_id, self.to_member_id)
