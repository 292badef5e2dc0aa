"""Pydantic Schemas — plain structured records returned by operations and API request bodies.

Invariants:
    - Records are built from ORM rows inside the transaction (from_attributes=True)
    - Operations never hand live ORM objects to callers
    - Request bodies validate at the system boundary (API input)

Design Decisions:
    - Separate from models: schemas are contracts, models are persistence
"""
