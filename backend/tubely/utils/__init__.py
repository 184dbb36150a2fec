"""
Utilities Package for the Tubely backend.

Modules:
--------
logger:
    Structured logging configuration (JSON and text formatters, Uvicorn
    integration, context adapters).

media_types:
    Media-type parsing and allow-list classification.

staging:
    Request-scoped temporary files for uploaded bytes.
"""
