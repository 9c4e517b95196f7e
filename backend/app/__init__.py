"""
Blogstack Backend — Application Package Initializer
===================================================

What: Marks the `app` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is a layered FastAPI service:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Auth, blogs, uploads
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Database (Persistence) │ Storage   │  ← Async sessions │ disk/S3/Cloudinary
    └─────────────────────────────────────┘

    `app.client` sits outside these layers: it is the HTTP client that
    front-ends (and scripts) use to talk to the API.
"""

__version__ = "1.0.0"
