"""
Commands - CLI command implementations for ProtectedPay.

Each module groups related top-level commands:
- keygen:    Create or show the local wallet key
- users:     Register and look up usernames
- transfers: Send, claim, refund and list pending transfers
- group:     Group payments (create, contribute, show)
- pot:       Savings pots (create, contribute, break, show)
- profile:   Resolved profile and transfer history
- watch:     Stream contract events
"""
