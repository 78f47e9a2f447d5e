"""
Backend package for the department website.

This package provides a FastAPI application with a persistence gateway
(SQLAlchemy or in-memory) and bearer-token auth for the content API
consumed by the public site and the admin dashboard.
"""
