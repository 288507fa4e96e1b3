"""
models/__init__.py — imports all ORM models so Alembic's env.py
sees them via Base.metadata.
"""
from finanznavigator.models.lead import LeadORM

__all__ = ["LeadORM"]
