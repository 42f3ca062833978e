"""HTTP middleware applied in app.main."""

from app.middleware.cors import ScopedCORSMiddleware

__all__ = ["ScopedCORSMiddleware"]
