"""API Layer — thin FastAPI adapter over the operation library.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses

Design Decisions:
    - Thin routes delegate to services; no transaction handling here
"""
