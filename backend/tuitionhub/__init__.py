"""Application package for the tuition marketplace backend.

This package exposes the service, repository and model modules used by
the FastAPI application, plus the tuition code allocator under
`utils`. Individual modules contain the concrete implementations and
documentation.
"""
