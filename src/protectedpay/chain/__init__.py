"""
Chain - JSON-RPC transport, ABI handling and transaction submission.

Modules:
- abi: Contract ABI loading, selectors and event topics
- rpc: Async JSON-RPC client and call encoding
- tx: Local transaction building, signing and receipt polling
"""
