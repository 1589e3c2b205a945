"""SQLAlchemy Declarative Base: shared base class for the local store models.

Invariants:
    - All local models inherit from Base
    - Base is the single source of truth for local table metadata
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for boardsync ORM models."""
    pass
