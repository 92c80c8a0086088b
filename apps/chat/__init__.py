"""
Chat App - Group Message Log

Append-only per-group message log. Members post text messages; the ledger
posts system messages when expenses are added and when a group settles up.
"""
