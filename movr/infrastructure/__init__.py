"""Infrastructure Layer — database engine, transaction executor, and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or api/
    - All driver failures mapped to the MovR error taxonomy before leaving this layer
"""
