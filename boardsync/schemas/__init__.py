"""Pydantic Schemas: validation of rows and payloads crossing the HTTP boundary.

Invariants:
    - Schemas validate remote responses before they reach the cache
    - Unknown fields from the backend are ignored

Design Decisions:
    - Separate from core/domain_types: schemas are wire contracts, domain types are cache values
"""
