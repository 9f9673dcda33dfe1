"""
Contract - typed access to the ProtectedPay contract.

Modules:
- models: Records, statuses and event shapes
- identifiers: Wire ids, addresses and claim identifier parsing
- decoding: Return-tuple schemas
- events: Event decoding and subscription
- client: The contract client facade
"""
