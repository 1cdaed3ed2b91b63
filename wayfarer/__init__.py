"""
Wayfarer Backend - Application Package
========================================

Tourist spots API: browse, rate, comment on and photograph points of
interest, with admin bulk import/export.

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← aggregator, import/export, cache-aside
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  PostgreSQL │ MongoDB │ Redis │ disk│  ← built in the lifespan
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
