"""
Wallet - keys, EIP-1193 providers and the session lifecycle.

Modules:
- eth: Local key generation and storage
- provider: Provider protocol and the local key-backed provider
- signer: Signing identity bound to a provider
- session: Connection lifecycle and session context
"""
