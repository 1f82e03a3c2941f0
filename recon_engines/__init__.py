"""
recon_engines -- pure calculation over bill and receipt snapshots.

Nothing in this package opens a session or writes a row.
"""
