"""Core Layer: pure domain logic, no IO, no async, no network.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - Cache mutations are synchronous and never suspend

Design Decisions:
    - Functional core separated from the imperative shell (services/ + infrastructure/)
"""
