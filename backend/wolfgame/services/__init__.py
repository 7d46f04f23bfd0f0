"""Services Layer — imperative shell around the pure core.

Invariants:
    - Services talk to storage only through StorageCollaborator
    - Only RoundController writes room.status
"""
