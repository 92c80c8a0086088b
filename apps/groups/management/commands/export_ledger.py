"""
Management command to write the ledger to a JSON snapshot.

Usage:
    python manage.py export_ledger ledger.json
    python manage.py export_ledger -    # print to stdout
"""

import json

from django.core.management.base import BaseCommand

from apps.groups.snapshot import dump_state


class Command(BaseCommand):
    help = 'Export groups, expenses, transactions and messages to a JSON snapshot'

    def add_arguments(self, parser):
        parser.add_argument('path', help='Output file, or - for stdout')
        parser.add_argument(
            '--indent',
            type=int,
            default=2,
            help='JSON indentation (default 2)',
        )

    def handle(self, *args, **options):
        state = dump_state()
        payload = json.dumps(state, indent=options['indent'], ensure_ascii=False)

        if options['path'] == '-':
            self.stdout.write(payload)
            return

        with open(options['path'], 'w', encoding='utf-8') as fh:
            fh.write(payload)

        self.stdout.write(self.style.SUCCESS(
            f"Exported {len(state['groups'])} groups, "
            f"{len(state['transactions'])} transactions and "
            f"{len(state['messages'])} messages to {options['path']}"
        ))
