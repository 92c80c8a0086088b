"""
Settlements App - Settle-up Engine and Transaction Log

Closes a group by turning every member's balance into a transaction with
the group owner, and keeps the append-only log of payments and requests
(including peer-to-peer ones outside any group).

Architecture:
- Models: Transaction
- Services: settle_up, preview_settlement, send_money, request_money,
  complete_transaction, cancel_transaction
- Views: TransactionViewSet
"""
