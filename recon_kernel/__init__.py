"""
recon_kernel -- persistence, logging and domain types for bill/receipt
reconciliation.

The kernel owns the ORM models, the engine and transaction scope, the
structured logger, the typed exceptions and the read-only snapshot
selector.  Pure classification lives in ``recon_engines``; repair and
reporting live in ``recon_services``.
"""
