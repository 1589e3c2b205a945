"""Infrastructure Layer: Supabase adapters, local store, logging and background tasks.

Invariants:
    - Infrastructure never imports from services/
    - All remote failures mapped to BoardSyncError subclasses (core/errors.py)
"""
