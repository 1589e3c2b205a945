"""boardsync: local-first cache and remote sync layer for the Gantt board editor.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
