"""Database Infrastructure — SQLAlchemy Base and the resolver-managed instance mixin.

Invariants:
    - All sessions are async (AsyncSession)
    - Single async engine per process (initialized via infrastructure.database.init_db)
"""
