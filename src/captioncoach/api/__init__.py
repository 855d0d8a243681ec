"""Caption Coach — FastAPI REST API layer.

This package contains the FastAPI application and the Pydantic response
models.

Modules
-------
main
    FastAPI application with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for API response serialisation.
"""
