from django.conf import settings
from django.db import models
import uuid


class Member(models.Model):
    """A person that can participate in group ledgers."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    contact_id = models.CharField(max_length=50, blank=True)

    # Identity link to the host application's user (optional)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ledger_member'
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'members'
        indexes = [
            models.Index(fields=['name'], name='members_name_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return self.name

    def get_initial(self):
        return self.name[:1].upper()
