"""Operation Library — named MovR transactions (reads and writes).

Invariants:
    - Every operation runs through run_transaction, never against a bare session
    - Every operation takes the DatabaseSessionManager as its first argument
    - Results are pydantic records (schemas/), never live ORM objects

Design Decisions:
    - One module per aggregate (users, vehicles, rides, promo_codes)
    - Each public operation wraps a private *_txn(session, ...) callback so the
      callback can be re-run on every retry attempt
"""
