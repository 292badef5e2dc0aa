"""MovR Application Package — transactional access layer for geo-partitioned ride data.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
