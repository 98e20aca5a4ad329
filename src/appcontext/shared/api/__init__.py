"""
Shared API Layer
================

Middleware and exception handlers for FastAPI services.
"""
