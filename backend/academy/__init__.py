"""
Football Academy Backend
=========================

What:  REST API for running a youth football academy: accounts, teams,
       players, trainings with QR check-in, matches, billing and
       announcements.
How:   Layered architecture. Routes handle HTTP, services own the business
       rules and permission checks, models map tables.

Layers:
    routes/      → HTTP request/response handling (FastAPI routers)
    services/    → Business rules, role checks, billing arithmetic
    models/      → SQLAlchemy ORM models (database tables)
    schemas/     → Pydantic models (request/response validation)
    middleware/  → Cross-cutting concerns (logging, rate limiting, request IDs)
"""

__version__ = "1.0.0"
