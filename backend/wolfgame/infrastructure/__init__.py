"""Infrastructure Layer — database sessions, storage adapter, change bus, logging.

Invariants:
    - Only this layer touches SQLAlchemy engines and sessions
    - All driver exceptions are mapped to core/errors.py types here
"""
