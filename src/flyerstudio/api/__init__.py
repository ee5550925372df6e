"""FlyerStudio — FastAPI REST API layer.

This package contains the FastAPI application, Pydantic request models, and
the in-memory editing session store.

Modules
-------
main
    FastAPI application with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for API request validation.
session_store
    Bounded, lock-protected store of live mask editing sessions.
"""
