"""
Ledger - Soroban interaction layer for orbitctl.

Contract id derivation, footprints, operation encoding, the JSON-RPC client
and the build/sign/submit/poll transaction pipeline, plus the high-level
install/deploy/bump/invoke actions built on top of them.

Uses httpx for JSON-RPC and stellar-sdk for XDR and transaction assembly.
"""
