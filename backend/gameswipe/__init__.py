"""
GameSwipe Backend: Application Package
======================================

Layered architecture:

    ┌─────────────────────────────────────┐
    │   Routes + Middleware (HTTP layer)  │  ← status codes, cookies, headers
    ├─────────────────────────────────────┤
    │       Services (business rules)     │  ← rooms, sessions, Steam
    ├─────────────────────────────────────┤
    │     Models & Schemas (data shapes)  │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │       Database (persistence)        │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘

Routes never touch SQL; services never touch HTTP objects.
"""

__version__ = "0.1.0"
