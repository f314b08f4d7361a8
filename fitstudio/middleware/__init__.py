"""
Middleware package for the application.
"""

from fitstudio.middleware.request_id import RequestIDMiddleware

__all__ = [
    "RequestIDMiddleware",
]
