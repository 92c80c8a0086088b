"""
Expenses App - Group Expense Ledger

This app records expenses paid inside a group, splits each expense among
its participants and keeps every member's running balance in step.

Key Features:
- Cent-precise split calculation (equal, shares, percentage)
- Running balances that always sum to zero within a group
- Soft budget signal when a group's spending passes its budget
- Expense notifications posted to the group chat
- Balance audit (recompute balances from recorded shares)

Architecture:
- Models: Expense, ExpenseShare
- Splitting: compute_shares (pure, no database access)
- Services: ExpenseLedgerService
- Views: ExpenseViewSet
- Exceptions: ExpenseServiceError hierarchy
"""
