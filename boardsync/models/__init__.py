"""ORM Models: SQLAlchemy declarative models for the local store.

Invariants:
    - All models inherit from Base (db/base.py)
    - All models imported here so create_all() sees every table
"""

from boardsync.models.kv_entry import KeyValueEntry  # noqa: F401
