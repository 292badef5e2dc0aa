"""Database Schema Root — SQLAlchemy declarative Base shared by all models.

Invariants:
    - Single async engine per process (owned by infrastructure/database.py)
    - All sessions are async (AsyncSession)
"""
