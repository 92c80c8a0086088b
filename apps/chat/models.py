from django.db import models
import uuid


class MessageKind(models.TextChoices):
    TEXT = 'text', 'Text'
    EXPENSE = 'expense', 'Expense'
    SYSTEM = 'system', 'System'


class ChatMessage(models.Model):
    """
    One entry in a group's message log.

    The auto-incrementing primary key defines insertion order; ``reference``
    is the stable public identifier.
    """

    reference = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)

    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='messages'
    )
    # Null for system messages
    sender = models.ForeignKey(
        'members.Member',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='chat_messages'
    )
    sender_name = models.CharField(max_length=200)

    content = models.TextField(max_length=2000)
    kind = models.CharField(
        max_length=20,
        choices=MessageKind.choices,
        default=MessageKind.TEXT
    )
    related_expense = models.ForeignKey(
        'expenses.Expense',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='messages'
    )

    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'chat_messages'
        indexes = [
            models.Index(fields=['group', 'id'], name='chat_messages_group_idx'),
        ]
        ordering = ['id']

    def __str__(self):
        return f"[{self.kind}] {self.sender_name}: {self.content[:50]}"

    @property
    def is_system(self):
        return self.kind == MessageKind.SYSTEM
