"""
Bridge client test suite.

This package contains:
- unit/: Component tests against in-memory fakes and mocks
- integration/: HttpBackend against the FastAPI dev server (in-process ASGI)
"""
