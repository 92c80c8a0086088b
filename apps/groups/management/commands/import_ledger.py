"""
Management command to replace the ledger with a JSON snapshot.

Usage:
    python manage.py import_ledger ledger.json
    python manage.py import_ledger ledger.json --dry-run
"""

import json

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from apps.groups.snapshot import InvalidSnapshotError, load_state


class Command(BaseCommand):
    help = 'Replace groups, expenses, transactions and messages with a JSON snapshot'

    def add_arguments(self, parser):
        parser.add_argument('path', help='Snapshot file written by export_ledger')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Validate and load the snapshot, then roll back',
        )

    def handle(self, *args, **options):
        try:
            with open(options['path'], encoding='utf-8') as fh:
                state = json.load(fh)
        except (OSError, ValueError) as e:
            raise CommandError(f"Cannot read {options['path']}: {e}")

        try:
            with transaction.atomic():
                counts = load_state(state)
                if options['dry_run']:
                    transaction.set_rollback(True)
        except InvalidSnapshotError as e:
            raise CommandError(str(e))

        summary = ', '.join(f'{count} {name}' for name, count in counts.items())
        if options['dry_run']:
            self.stdout.write(self.style.WARNING(f'--dry-run mode: snapshot is valid ({summary}), no changes made.'))
            return

        self.stdout.write(self.style.SUCCESS(f'Imported {summary}'))
