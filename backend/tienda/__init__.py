"""
Tienda Services: Package Initializer
======================================

Five small REST services for a storefront (usuarios, productos, categorias,
boletas, detalle) built from one FastAPI scaffold (tienda.main).

Architecture Note:

    ┌─────────────────────────────────────┐
    │       Routes (one module/service)   │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← coercion, validation, rules
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Store (Persistence)          │  ← engine, sessions, bootstrap
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
