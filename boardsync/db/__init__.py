"""Local Database: SQLAlchemy Base for the local key-value store.

Invariants:
    - Only client-local state lives here; boards and board_data are remote
"""
