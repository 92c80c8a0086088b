"""
Management command to seed the participant catalog.

Usage:
    python manage.py seed_members

Creates the default participants the mobile app ships with. Existing
entries with the same name are left untouched.
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.members.models import Member


DEFAULT_MEMBERS = [
    ('Janez Novak', '+386 40 123 456'),
    ('ALJAŽ V.', '+386 40 102 030'),
    ('MARTA K.', '+386 41 234 567'),
    ('PETRA M.', '+386 42 345 678'),
    ('MIHA M.', '+386 43 456 789'),
    ('ANA S.', '+386 44 567 890'),
    ('MARKO P.', '+386 45 678 901'),
    ('LARA T.', '+386 46 789 012'),
]


class Command(BaseCommand):
    help = 'Seed the member catalog with the default participants'

    @transaction.atomic
    def handle(self, *args, **options):
        created = 0
        for name, contact_id in DEFAULT_MEMBERS:
            _, was_created = Member.objects.get_or_create(
                name=name,
                defaults={'contact_id': contact_id},
            )
            if was_created:
                created += 1
                self.stdout.write(f'  + {name} ({contact_id})')

        self.stdout.write(self.style.SUCCESS(
            f'Catalog ready: {created} created, {Member.objects.count()} total'
        ))
