"""
Members App - Participant Catalog

The catalog of people that can take part in group ledgers. Every group
member, expense payer and transaction party references an entry here.

Key Features:
- Fixed catalog of participants (name + contact identifier)
- Lookups by id and by exact name
- Fuzzy name search for contact pickers
- Optional link to the host application's auth user (acting identity)
"""
