"""Services Layer: the cache components and the accessor facade.

Invariants:
    - Every service consults CapabilityGate before touching the remote backend
    - Remote writes are spawned on the shared BackgroundTaskRunner, never awaited by setters

Design Decisions:
    - One file per component (gate, tracker, project list, board content, lifecycle)
    - GanttStorage (storage.py) is the only class the UI needs to import
"""
