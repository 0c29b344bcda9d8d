"""
Core domain models, fixed-point arithmetic, commitments and contracts.

This package is independent of the settlement layer (chain, RPC, wallets).
"""
