"""
Bridge dev server.

A FastAPI application hosting the in-memory remote authority over HTTP, for
local development against HttpBackend and for transport tests.
"""

from .app import create_app

__all__ = ["create_app"]
